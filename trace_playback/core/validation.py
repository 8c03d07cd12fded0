"""Input validation results shared by all trace builders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> dict[str, Any]:
        if self.valid:
            return {"valid": True}
        return {"valid": False, "error": self.error}


VALID = ValidationResult(True)


def invalid(message: str) -> ValidationResult:
    return ValidationResult(False, message)


class ValidationError(ValueError):
    """Raised when a caller asks for a trace from input that fails validation."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.error or "invalid input")
        self.result = result


def is_int(value: Any) -> bool:
    """True for real integers (``bool`` excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)
