"""
validation.py

The validation report returned by every check in pagecontract.

A report is pure data: errors mean the checked artifact is unusable,
warnings are informational and never affect ``valid``. Checks return
reports; they do not raise for expected domain problems.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Tuple

from pagecontract.serialization import (
    format_timestamp,
    now_utc,
    parse_timestamp,
    require_mapping,
)


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a structural or argument check.

    Attributes:
        valid: True iff ``errors`` is empty
        errors: Problems that make the artifact unusable, in check order
        warnings: Advisory findings, in check order
        timestamp: When the check ran
    """
    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=now_utc)

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @classmethod
    def from_messages(
        cls,
        errors: Iterable[str] = (),
        warnings: Iterable[str] = (),
    ) -> "ValidationResult":
        """Build a report whose validity follows from the error list."""
        errors = tuple(errors)
        return cls(valid=not errors, errors=errors, warnings=tuple(warnings))

    def prefixed(self, prefix: str) -> "ValidationResult":
        """Return a copy with every message prefixed by ``prefix``."""
        return ValidationResult(
            valid=self.valid,
            errors=tuple(f"{prefix}{e}" for e in self.errors),
            warnings=tuple(f"{prefix}{w}" for w in self.warnings),
            timestamp=self.timestamp,
        )

    def merged_with(self, other: "ValidationResult", prefix: str = "") -> "ValidationResult":
        """Fold another report into this one; validity is recomputed."""
        other = other.prefixed(prefix) if prefix else other
        return ValidationResult.from_messages(
            self.errors + other.errors,
            self.warnings + other.warnings,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire form."""
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationResult":
        """Construct from the wire form."""
        data = require_mapping(data, "validationResult")
        errors = tuple(data.get("errors") or ())
        return cls(
            valid=bool(data.get("valid", not errors)),
            errors=errors,
            warnings=tuple(data.get("warnings") or ()),
            timestamp=parse_timestamp(data.get("timestamp"), "validationResult.timestamp"),
        )


# Capability checks report in exactly the same shape.
CapabilityValidationResult = ValidationResult
