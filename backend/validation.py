"""Timing and naming rules for day-log slots, custom activities and templates.

The checks here are plain predicates: they collect field errors into a
``ValidationResult`` and never raise. The request handlers decide how a
failed result is reported to the client.
"""
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

DEFAULT_RESERVED_NAMES = frozenset(
    {
        "sleep",
        "exercise",
        "meal",
        "breakfast",
        "lunch",
        "dinner",
        "snack",
        "water",
        "expense",
        "nutrition",
    }
)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9 '-]+$")


@dataclass(frozen=True)
class ValidatorConfig:
    """Values the name rules are checked against."""

    reserved_names: frozenset[str] = DEFAULT_RESERVED_NAMES


DEFAULT_CONFIG = ValidatorConfig()


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[FieldError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def is_conflict(self) -> bool:
        """True when every error is a duplicate-name error."""
        return bool(self.errors) and all(e.code == "duplicate" for e in self.errors)

    def to_list(self) -> list[dict]:
        return [e.to_dict() for e in self.errors]


VALID = ValidationResult()


def _get(entry: Any, key: str):
    if entry is None:
        return None
    if isinstance(entry, Mapping):
        return entry.get(key)
    return getattr(entry, key, None)


def validate_timing(entry: Any, empty_allowed: bool, prefix: str = "") -> ValidationResult:
    """Check that an entry is timed by a duration or by a start/end pair.

    ``entry`` may be a mapping or any object exposing ``start_time``,
    ``end_time`` and ``duration``. With ``empty_allowed`` an entry carrying
    none of the three is accepted (a slot that will be filled in later).
    """
    has_start = _get(entry, "start_time") is not None
    has_end = _get(entry, "end_time") is not None
    has_duration = _get(entry, "duration") is not None
    field_name = f"{prefix}duration" if prefix else "duration"

    if not (has_start or has_end or has_duration):
        if empty_allowed:
            return VALID
        return ValidationResult(
            (FieldError(field_name, "Must provide duration or start/end time", "timing_missing"),)
        )

    if has_duration and (has_start or has_end):
        return ValidationResult(
            (FieldError(field_name, "Cannot combine duration with start/end time", "timing_conflict"),)
        )

    if not has_duration and has_start != has_end:
        missing = "end_time" if has_start else "start_time"
        return ValidationResult(
            (
                FieldError(
                    f"{prefix}{missing}",
                    "Must provide both start_time and end_time together",
                    "timing_partial",
                ),
            )
        )

    return VALID


def normalize_name(name: str) -> str:
    return (name or "").strip().lower()


def validate_name(
    name: str,
    reserved_names: Iterable[str] = DEFAULT_RESERVED_NAMES,
    existing_names: Iterable[str] = (),
    field_name: str = "name",
) -> ValidationResult:
    """Check a custom activity or template name.

    ``existing_names`` are the names already used by the same user (for an
    activity: on the same date). A hit there is reported with code
    ``duplicate``; the unique constraint in the database stays the final word.
    """
    normalized = normalize_name(name)
    errors = []

    if len(normalized) < NAME_MIN_LENGTH:
        errors.append(
            FieldError(field_name, f"Activity name must be at least {NAME_MIN_LENGTH} characters", "too_short")
        )
    elif len(normalized) > NAME_MAX_LENGTH:
        errors.append(
            FieldError(field_name, f"Activity name cannot exceed {NAME_MAX_LENGTH} characters", "too_long")
        )

    if normalized and not NAME_PATTERN.match(normalized):
        errors.append(
            FieldError(
                field_name,
                "Activity name can only contain letters, numbers, spaces, hyphens, and apostrophes",
                "invalid_characters",
            )
        )

    reserved = {normalize_name(n) for n in reserved_names}
    if normalized in reserved:
        errors.append(
            FieldError(
                field_name,
                f"Activity name cannot be one of the reserved activities: {', '.join(sorted(reserved))}",
                "reserved",
            )
        )

    if errors:
        return ValidationResult(tuple(errors))

    if normalized in {normalize_name(n) for n in existing_names}:
        return ValidationResult(
            (FieldError(field_name, f"An activity named '{normalized}' already exists", "duplicate"),)
        )

    return VALID


def validate_day_log(sleep: Any, exercise: Any) -> ValidationResult:
    """Validate both day-log slots; either may be empty."""
    errors = validate_timing(sleep, empty_allowed=True, prefix="sleep.").errors
    errors += validate_timing(exercise, empty_allowed=True, prefix="exercise.").errors
    return ValidationResult(errors)
