from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class MalformedInput(ValidationError):
    """An event, date or timezone cannot be parsed or interpreted."""

    code = "MALFORMED_INPUT"


class InvalidTransition(ValidationError):
    """A punch violates the punch clock's state preconditions."""

    code = "INVALID_TRANSITION"

    def __init__(self, message: str, *, code: Optional[str] = None, current_state=None, punch_type=None):
        super().__init__(message, code=code)
        self.current_state = current_state
        self.punch_type = punch_type

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["current_state"] = getattr(self.current_state, "value", self.current_state)
        payload["punch_type"] = getattr(self.punch_type, "value", self.punch_type)
        return payload


class WeekendNotAllowed(ValidationError):
    """A timesheet cell write on a weekend date without an override."""

    code = "WEEKEND_NOT_ALLOWED"


class NotFound(DomainError):
    """Referenced timesheet, cell, activity code or member does not exist."""

    code = "NOT_FOUND"


class ConfirmationRequired(DomainError):
    """Not a failure: retry the same punch with ``force=True`` after the user confirms."""

    code = "CONFIRMATION_REQUIRED"

    def __init__(self, message: str, *, seconds_since_last: int, last_event=None):
        super().__init__(message)
        self.seconds_since_last = seconds_since_last
        self.last_event = last_event

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["seconds_since_last"] = self.seconds_since_last
        if self.last_event is not None:
            payload["last_event_type"] = self.last_event.type.value
        return payload
