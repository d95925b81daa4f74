"""Backup document codec.

Export writes ``{packages, delivered, packageRange, exportDate, version}``.
Import accepts any JSON object and takes each data field independently:
a field that is missing or has the wrong shape is skipped, so partial and
legacy documents still restore whatever is valid. ``version`` is carried
for information only and never checked.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from flexrunner.domain.model import LoadModel
from flexrunner.domain.types import Zone
from flexrunner.domain.validation import (
    check_delivered,
    check_document,
    check_packages,
    check_range,
)

BACKUP_VERSION = "v10"


class BackupErrorKind(StrEnum):
    MALFORMED_DOCUMENT = "malformed_document"
    PARSE_FAILURE = "parse_failure"


class BackupDecodeError(ValueError):
    """Raised when a backup document cannot be used at all."""

    def __init__(self, kind: BackupErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class BackupFields:
    """Fields recovered from a backup document; None means "not imported"."""

    packages: dict[str, Zone] | None = None
    delivered: list[str] | None = None
    package_range: int | None = None
    version: str | None = None
    export_date: str | None = None
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def imported_fields(self) -> list[str]:
        names = []
        if self.packages is not None:
            names.append("packages")
        if self.delivered is not None:
            names.append("delivered")
        if self.package_range is not None:
            names.append("packageRange")
        return names


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision (``...123Z``)."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_document(model: LoadModel, exported_at: datetime) -> dict[str, Any]:
    return {
        "packages": {num: zone.value for num, zone in model.packages.items()},
        "delivered": list(model.delivered),
        "packageRange": model.package_range,
        "exportDate": format_timestamp(exported_at),
        "version": BACKUP_VERSION,
    }


def encode_backup(model: LoadModel, exported_at: datetime) -> str:
    """Serialize *model* into a backup document (pretty-printed JSON)."""
    return json.dumps(build_document(model, exported_at), indent=2)


def decode_backup(text: str) -> BackupFields:
    """Parse a backup document.

    Raises:
        BackupDecodeError: ``PARSE_FAILURE`` if *text* is not JSON,
            ``MALFORMED_DOCUMENT`` if the top level is not an object.
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise BackupDecodeError(BackupErrorKind.PARSE_FAILURE, f"Invalid JSON: {exc}") from exc

    document = check_document(raw)
    if not document.ok:
        raise BackupDecodeError(BackupErrorKind.MALFORMED_DOCUMENT, str(document.error))
    data = document.unwrap()

    skipped: dict[str, str] = {}
    packages = delivered = package_range = None

    if "packages" in data:
        checked_packages = check_packages(data["packages"])
        if checked_packages.ok:
            packages = checked_packages.value
        else:
            skipped["packages"] = str(checked_packages.error)

    if "delivered" in data:
        checked_delivered = check_delivered(data["delivered"])
        if checked_delivered.ok:
            delivered = checked_delivered.value
        else:
            skipped["delivered"] = str(checked_delivered.error)

    if "packageRange" in data:
        checked_range = check_range(data["packageRange"])
        if checked_range.ok:
            package_range = checked_range.value
        else:
            skipped["packageRange"] = str(checked_range.error)

    version = data.get("version")
    export_date = data.get("exportDate")
    return BackupFields(
        packages=packages,
        delivered=delivered,
        package_range=package_range,
        version=version if isinstance(version, str) else None,
        export_date=export_date if isinstance(export_date, str) else None,
        skipped=skipped,
    )
