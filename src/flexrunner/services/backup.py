"""BackupService — export the load to a JSON document and import it back.

Import is all-or-nothing at the document level: a document that is not
JSON, or not a JSON object, changes nothing. Within a usable document each
field is taken on its own, so a backup missing ``delivered`` still
restores its packages.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from flexrunner.domain.backup import (
    BackupDecodeError,
    BackupErrorKind,
    decode_backup,
    encode_backup,
    format_timestamp,
)
from flexrunner.services.base import BaseService
from flexrunner.services.result import ErrorCode, ServiceResult, failure

if TYPE_CHECKING:
    from flexrunner.services.store import StateStore

log = structlog.get_logger(__name__)

IMPORT_ERROR_MESSAGE = "Error importing data. Invalid file format."


def _utcnow() -> datetime:
    return datetime.now(UTC)


def backup_filename(moment: datetime) -> str:
    """Default file name for a backup taken at *moment*."""
    return f"flexrunner-backup-{moment.astimezone(UTC).date().isoformat()}.json"


class BackupService(BaseService):
    """Import/export of the persisted fields (packages, delivered, range)."""

    def __init__(self, store: StateStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        super().__init__(store)
        self._clock = clock

    def export_data(self) -> ServiceResult:
        """Serialize the current state; the document is in ``data["document"]``."""
        moment = self._clock()
        model = self._store.model
        document = encode_backup(model, moment)
        return ServiceResult(
            ok=True,
            op="export",
            data={
                "document": document,
                "export_date": format_timestamp(moment),
                "package_count": len(model.packages),
                "delivered_count": len(model.delivered),
                "filename": backup_filename(moment),
            },
        )

    def write_backup(self, output: Path | None = None) -> ServiceResult:
        """Export to *output* (default: dated file name in the cwd)."""
        op = "export_file"
        exported = self.export_data()
        target = output or Path.cwd() / exported.data["filename"]
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(exported.data["document"], encoding="utf-8")
        except OSError as exc:
            log.error("backup_write_failed", path=str(target), error=str(exc))
            return failure(op, ErrorCode.FILE_ERROR, "Error creating backup file", path=str(target))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(target),
                "export_date": exported.data["export_date"],
                "package_count": exported.data["package_count"],
                "delivered_count": exported.data["delivered_count"],
            },
        )

    def import_data(self, text: str) -> ServiceResult:
        """Restore state from a backup document and persist it immediately."""
        op = "import"
        try:
            fields = decode_backup(text)
        except BackupDecodeError as exc:
            code = (
                ErrorCode.IMPORT_MALFORMED
                if exc.kind is BackupErrorKind.MALFORMED_DOCUMENT
                else ErrorCode.IMPORT_PARSE_FAILED
            )
            log.warning("import_rejected", kind=exc.kind.value, reason=str(exc))
            return failure(op, code, IMPORT_ERROR_MESSAGE, reason=str(exc))

        applied = self._store.replace_data(
            packages=fields.packages,
            delivered=fields.delivered,
            package_range=fields.package_range,
        )
        warnings = [f"Skipped {name}: {reason}" for name, reason in fields.skipped.items()]
        warnings.extend(applied.warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "message": "Data imported successfully!",
                "imported": fields.imported_fields,
                "skipped": sorted(fields.skipped),
                "version": fields.version,
                "package_count": len(self._store.model.packages),
            },
            warnings=warnings,
        )

    def import_file(self, path: Path) -> ServiceResult:
        """Read *path* and import its contents."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.error("backup_read_failed", path=str(path), error=str(exc))
            return failure("import", ErrorCode.FILE_ERROR, "Error reading file", path=str(path))
        return self.import_data(text)
