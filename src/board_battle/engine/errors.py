"""Error types for the battle engine.

Two families:
- ConfigurationError: a wiring or data defect (unknown action id, malformed
  catalog). Raised, never swallowed.
- ValidationError / ValidationResult: a player submission that is not legal
  right now. Collected and reported back to the caller; the battle state is
  left untouched.
"""

from dataclasses import dataclass, field

from .enums import RejectionCode


class ConfigurationError(ValueError):
    """Raised when the engine is wired with data it cannot use."""


class ActionNotFoundError(ConfigurationError, KeyError):
    """Raised when an action id is not in the catalog."""

    def __init__(self, action_id: str) -> None:
        self.action_id = action_id
        super().__init__(f"Unknown action id: {action_id!r}")

    def __str__(self) -> str:
        return f"Unknown action id: {self.action_id!r}"


class TurnOrderError(RuntimeError):
    """Raised when the engine itself is driven out of sequence (e.g. an opponent turn
    requested while the player holds the turn)."""


@dataclass
class ValidationError:
    """A single reason a submission was rejected."""

    code: RejectionCode
    field: str
    message: str
    value: str | None = None


@dataclass
class ValidationResult:
    """Result of validating a submission."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    def add_error(self, code: RejectionCode, field: str, message: str, value: str | None = None) -> None:
        """Add a validation error."""
        self.errors.append(ValidationError(code=code, field=field, message=message, value=value))
        self.valid = False

    @property
    def message(self) -> str:
        """All error messages joined for display."""
        return "; ".join(e.message for e in self.errors)

    @property
    def codes(self) -> list[RejectionCode]:
        """Rejection codes in the order they were found."""
        return [e.code for e in self.errors]
