"""Parse-then-validate helpers for package numbers, ranges, and payloads.

Raw values arriving from storage, backup documents, or the command line
are loosely typed. Each ``check_*`` function validates one shape and
returns a :class:`Checked` value instead of raising, so callers decide
whether a bad field is fatal, skipped, or replaced by a default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, StrictInt, TypeAdapter, ValidationError

from flexrunner.domain.types import MAX_PACKAGE_RANGE, MIN_PACKAGE_RANGE, Zone

_DIGITS_RE = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class Checked[T]:
    """Outcome of validating one raw value: a value or an error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the validated value; raise ``ValueError`` if invalid."""
        if self.error is not None:
            raise ValueError(self.error)
        assert self.value is not None
        return self.value


def _coerce_package_number(value: Any) -> str:
    """Normalize ``7``, ``"7"`` and ``"07"`` to the canonical key ``"7"``."""
    if isinstance(value, bool):
        msg = "package number must be an integer"
        raise ValueError(msg)
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DIGITS_RE.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        msg = f"invalid package number: {value!r}"
        raise ValueError(msg)
    if not MIN_PACKAGE_RANGE <= number <= MAX_PACKAGE_RANGE:
        msg = f"package number out of bounds: {number}"
        raise ValueError(msg)
    return str(number)


PackageNumber = Annotated[str, BeforeValidator(_coerce_package_number)]
PackageRange = Annotated[StrictInt, Field(ge=MIN_PACKAGE_RANGE, le=MAX_PACKAGE_RANGE)]

_PACKAGES = TypeAdapter(dict[PackageNumber, Zone])
_DELIVERED = TypeAdapter(list[PackageNumber])
_RANGE = TypeAdapter(PackageRange)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first['msg']}" if loc else first["msg"]


def check_packages(raw: object) -> Checked[dict[str, Zone]]:
    """Validate an assignment map (package number -> zone id)."""
    if not isinstance(raw, dict):
        return Checked(error=f"expected a mapping, got {type(raw).__name__}")
    try:
        return Checked(value=_PACKAGES.validate_python(raw))
    except ValidationError as exc:
        return Checked(error=_first_error(exc))


def check_delivered(raw: object) -> Checked[list[str]]:
    """Validate a delivered list; duplicates collapse, first position wins."""
    if not isinstance(raw, list):
        return Checked(error=f"expected a sequence, got {type(raw).__name__}")
    try:
        numbers = _DELIVERED.validate_python(raw)
    except ValidationError as exc:
        return Checked(error=_first_error(exc))
    return Checked(value=list(dict.fromkeys(numbers)))


def check_range(raw: object) -> Checked[int]:
    """Validate a package range taken from a JSON document (must be an int)."""
    try:
        return Checked(value=_RANGE.validate_python(raw))
    except ValidationError as exc:
        return Checked(error=_first_error(exc))


def parse_range_text(text: str) -> Checked[int]:
    """Parse a package range stored as text."""
    try:
        value = int(text.strip())
    except ValueError:
        return Checked(error=f"not an integer: {text!r}")
    return check_range(value)


def check_document(raw: object) -> Checked[dict[str, Any]]:
    """Require the top level of a backup document to be a JSON object."""
    if not isinstance(raw, dict):
        return Checked(error=f"expected a JSON object, got {type(raw).__name__}")
    return Checked(value=raw)


def check_package_number(value: object, package_range: int) -> Checked[str]:
    """Validate a user-entered package number against the current range."""
    try:
        number = _coerce_package_number(value)
    except ValueError:
        return Checked(error=f"Must be 1-{package_range}")
    if int(number) > package_range:
        return Checked(error=f"Must be 1-{package_range}")
    return Checked(value=number)


def check_zone(value: object) -> Checked[Zone]:
    """Validate a zone id."""
    try:
        return Checked(value=Zone(str(value)))
    except ValueError:
        valid = ", ".join(z.value for z in Zone)
        return Checked(error=f"Unknown zone {value!r} (expected one of: {valid})")
