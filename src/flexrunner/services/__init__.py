"""Service layer — state store, backups, and the ServiceResult contract."""
