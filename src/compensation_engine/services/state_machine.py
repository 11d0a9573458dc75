"""Payroll statement state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class StatementStatus(str, Enum):
    """Payroll statement status values."""

    DRAFT = "draft"
    SAVED = "saved"
    EMAILED = "emailed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StatementStateMachine:
    """State machine for payroll statement status transitions.

    Allowed transitions:
    - draft → saved
    - saved → saved (update)
    - saved → emailed
    - emailed → saved (edited after sending)
    - emailed → emailed (resend)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        StatementStatus.DRAFT: [StatementStatus.SAVED],
        StatementStatus.SAVED: [StatementStatus.SAVED, StatementStatus.EMAILED],
        StatementStatus.EMAILED: [StatementStatus.SAVED, StatementStatus.EMAILED],
    }

    # Statuses that have been handed to persistence at least once
    PERSISTED = {
        StatementStatus.SAVED,
        StatementStatus.EMAILED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_persisted(cls, status: str) -> bool:
        return status in cls.PERSISTED

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
