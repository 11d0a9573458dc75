"""Pytest fixtures for compensation engine tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from compensation_engine.calculators.deduction_calculator import DEFAULT_RATE_TABLE
from compensation_engine.calculators.types import (
    ContractClassification,
    EnrollmentFlags,
    MinimumWageTable,
    NontaxableAllowances,
    WageInputs,
)
from compensation_engine.calculators.wage_converter import WageConverter
from compensation_engine.config import (
    BonusCategory,
    CatalogItem,
    EngineConfig,
    OrganizationContext,
    PayrollCatalog,
)
from compensation_engine.services.contract_profile import (
    ContractCompensationProfile,
    ContractProfileService,
)
from compensation_engine.services.repositories import PersistenceError


class InMemoryStatementRepository:
    """Statement repository double that records every save."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved: list = []
        self._next_id = 100

    def save_statement(self, statement) -> int:
        if self.fail:
            raise PersistenceError("database unavailable")
        self.saved.append(statement)
        if statement.statement_id is not None:
            return statement.statement_id
        self._next_id += 1
        return self._next_id


class InMemoryProfileRepository:
    """Profile repository double that records every save."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved: list = []

    def save_profile(self, profile) -> int:
        if self.fail:
            raise PersistenceError("database unavailable")
        self.saved.append(profile)
        return len(self.saved)


@pytest.fixture
def minimum_wages() -> MinimumWageTable:
    return MinimumWageTable.from_mapping({2024: 9860, 2025: 10030})


@pytest.fixture
def catalog() -> PayrollCatalog:
    """Standard items plus one additional deduction and two bonus categories."""
    standard = PayrollCatalog.default()
    return PayrollCatalog(
        payment_items=standard.payment_items,
        deduction_items=standard.deduction_items,
        additional_deduction_items=(CatalogItem("DDTAD_001", "Union dues"),),
        bonus_categories=(
            BonusCategory("BNS_001", "Holiday bonus", 300_000, "Lunar new year"),
            BonusCategory("BNS_002", "Incentive"),
        ),
    )


@pytest.fixture
def config(catalog, minimum_wages) -> EngineConfig:
    return EngineConfig(
        organization=OrganizationContext(head_office_id=1, franchise_id=2, store_id=3),
        catalog=catalog,
        minimum_wages=minimum_wages,
        rate_table=DEFAULT_RATE_TABLE,
    )


@pytest.fixture
def profile_service(config) -> ContractProfileService:
    return ContractProfileService(config)


@pytest.fixture
def all_enrolled() -> EnrollmentFlags:
    return EnrollmentFlags.all_enrolled()


@pytest.fixture
def inclusive_profile(profile_service) -> ContractCompensationProfile:
    """10,000/h, 40h week, 10h overtime, 4h night, 8h holiday, default allowances.

    Monthly: basic 2,090,000 + overtime 150,000 + night 20,000
    + holiday 40,000 + allowances 500,000 = 2,800,000.
    """
    inputs = WageInputs(
        weekly_hours=Decimal("40"),
        hourly_wage=10_000,
        monthly_overtime_hours=Decimal("10"),
        monthly_night_hours=Decimal("4"),
        monthly_holiday_hours=Decimal("8"),
        allowances=NontaxableAllowances.defaults(),
    )
    profile = profile_service.build(
        ContractClassification.INCLUSIVE_ANNUAL,
        WageConverter.convert(inputs),
        inputs.allowances,
        contract_id=10,
        employee_id=7,
    )
    return profile


@pytest.fixture
def statement_repository() -> InMemoryStatementRepository:
    return InMemoryStatementRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def failing_statement_repository() -> InMemoryStatementRepository:
    return InMemoryStatementRepository(fail=True)


@pytest.fixture
def failing_profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository(fail=True)
