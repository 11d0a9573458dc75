"""Persistence collaborators.

The engine never talks to storage itself. Callers hand it an object that
implements one of these protocols; the engine invokes it only after every
validation has passed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from compensation_engine.services.contract_profile import ContractCompensationProfile
    from compensation_engine.services.statement_builder import PayrollStatement


class PersistenceError(Exception):
    """Raised by a repository when storage I/O fails."""


class StatementRepository(Protocol):
    """Stores payroll statements."""

    def save_statement(self, statement: PayrollStatement) -> int:
        """Persist the statement and return its identifier.

        Raises:
            PersistenceError: If the write fails
        """
        ...


class ProfileRepository(Protocol):
    """Stores contract compensation profiles."""

    def save_profile(self, profile: ContractCompensationProfile) -> int:
        """Persist the profile and return its identifier.

        Raises:
            PersistenceError: If the write fails
        """
        ...
