"""Compensation engine services."""

from compensation_engine.services.contract_profile import (
    ContractCompensationProfile,
    ContractProfileService,
    ProfileBonus,
    ProfileResult,
)
from compensation_engine.services.repositories import (
    PersistenceError,
    ProfileRepository,
    StatementRepository,
)
from compensation_engine.services.settlement import (
    OvertimeSettlement,
    PartTimeSettlement,
    SettlementCalculator,
    WorkDay,
)
from compensation_engine.services.state_machine import (
    InvalidTransitionError,
    StatementStateMachine,
    StatementStatus,
)
from compensation_engine.services.statement_builder import (
    BuilderResult,
    OvertimeAllowanceRecord,
    PayrollLineItem,
    PayrollStatement,
    PayrollStatementBuilder,
)

__all__ = [
    "BuilderResult",
    "ContractCompensationProfile",
    "ContractProfileService",
    "InvalidTransitionError",
    "OvertimeAllowanceRecord",
    "OvertimeSettlement",
    "PartTimeSettlement",
    "PayrollLineItem",
    "PayrollStatement",
    "PayrollStatementBuilder",
    "PersistenceError",
    "ProfileBonus",
    "ProfileRepository",
    "ProfileResult",
    "SettlementCalculator",
    "StatementRepository",
    "StatementStateMachine",
    "StatementStatus",
    "WorkDay",
]
