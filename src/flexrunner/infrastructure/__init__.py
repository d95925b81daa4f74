"""Infrastructure layer — durable key-value storage and the persistence gateway."""
