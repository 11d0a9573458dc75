"""Pydantic schemas for form and API payloads.

Payloads use camelCase keys. Line-item codes are canonicalized here, so
both ``BASIC`` and ``DPTBS_001`` arrive in the engine as ``BASIC``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from compensation_engine.calculators.money import parse_amount, parse_hours
from compensation_engine.calculators.types import (
    Allowance,
    CompensationBreakdown,
    DeductionResult,
    EnrollmentFlags,
    NontaxableAllowances,
    WageInputs,
)
from compensation_engine.codes import (
    canonical_deduction_code,
    canonical_payment_code,
    legacy_deduction_code,
    legacy_payment_code,
)
from compensation_engine.services.state_machine import StatementStatus
from compensation_engine.services.statement_builder import (
    LineKind,
    PayrollLineItem,
    PayrollStatement,
)


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, snake_case names also accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Wage calculator
# ============================================================================


class WageInputsPayload(CamelModel):
    """Wage calculator form input."""

    weekly_hours: Decimal = Decimal("40")
    hourly_wage: int = 0
    monthly_overtime_hours: Decimal = Decimal("0")
    monthly_night_hours: Decimal = Decimal("0")
    monthly_holiday_hours: Decimal = Decimal("0")
    monthly_extra_holiday_hours: Decimal = Decimal("0")
    meal_amount: int = 0
    meal_included: bool = True
    car_amount: int = 0
    car_included: bool = True
    childcare_amount: int = 0
    childcare_included: bool = True

    @field_validator(
        "weekly_hours",
        "monthly_overtime_hours",
        "monthly_night_hours",
        "monthly_holiday_hours",
        "monthly_extra_holiday_hours",
        mode="before",
    )
    @classmethod
    def coerce_hours(cls, value: Any) -> Decimal:
        return parse_hours(value)

    @field_validator(
        "hourly_wage", "meal_amount", "car_amount", "childcare_amount", mode="before"
    )
    @classmethod
    def coerce_amount(cls, value: Any) -> int:
        return parse_amount(value)

    def to_domain(self) -> WageInputs:
        return WageInputs(
            weekly_hours=self.weekly_hours,
            hourly_wage=self.hourly_wage,
            monthly_overtime_hours=self.monthly_overtime_hours,
            monthly_night_hours=self.monthly_night_hours,
            monthly_holiday_hours=self.monthly_holiday_hours,
            monthly_extra_holiday_hours=self.monthly_extra_holiday_hours,
            allowances=NontaxableAllowances(
                meal=Allowance(self.meal_amount, self.meal_included),
                car=Allowance(self.car_amount, self.car_included),
                childcare=Allowance(self.childcare_amount, self.childcare_included),
            ),
        )


class BreakdownResponse(CamelModel):
    """Monthly and annual salary breakdown."""

    model_config = ConfigDict(from_attributes=True)

    hourly_wage: int
    weekly_hours: Decimal
    monthly_basic_hours: int
    monthly_basic_amount: int
    monthly_overtime_hours: Decimal
    monthly_overtime_amount: int
    monthly_night_hours: Decimal
    monthly_night_amount: int
    monthly_holiday_hours: Decimal
    monthly_holiday_amount: int
    monthly_extra_holiday_hours: Decimal
    monthly_extra_holiday_amount: int
    included_allowance_amount: int
    monthly_total_amount: int
    annual_total_amount: int
    total_monthly_work_hours: Decimal
    weekly_total_work_hours: Decimal
    is_over_legal_weekly_cap: bool
    is_below_minimum_wage: bool

    @classmethod
    def from_domain(cls, breakdown: CompensationBreakdown) -> BreakdownResponse:
        return cls.model_validate(breakdown)


# ============================================================================
# Deductions
# ============================================================================


class EnrollmentFlagsPayload(CamelModel):
    """Social insurance enrollment from the contract header."""

    national_pension: bool = False
    health_insurance: bool = False
    employment_insurance: bool = False
    workers_compensation: bool = False

    def to_domain(self) -> EnrollmentFlags:
        return EnrollmentFlags(
            national_pension=self.national_pension,
            health_insurance=self.health_insurance,
            employment_insurance=self.employment_insurance,
            workers_compensation=self.workers_compensation,
        )


class DeductionResponse(CamelModel):
    """Estimated statutory deductions."""

    model_config = ConfigDict(from_attributes=True)

    taxable_amount: int
    national_pension: int
    health_insurance: int
    long_term_care: int
    employment_insurance: int
    income_tax: int
    local_income_tax: int
    total: int

    @classmethod
    def from_domain(cls, result: DeductionResult) -> DeductionResponse:
        return cls.model_validate(result)


# ============================================================================
# Payroll statements
# ============================================================================


class LineItemPayload(CamelModel):
    """A statement line as exchanged with callers."""

    code: str
    amount: int = 0
    order: int = 1
    remark: str = ""
    legacy_code: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> int:
        return parse_amount(value)

    def to_domain(self, kind: LineKind) -> PayrollLineItem:
        if kind is LineKind.DEDUCTION:
            code = canonical_deduction_code(self.code)
        else:
            code = canonical_payment_code(self.code)
        return PayrollLineItem(code, self.amount, self.order, self.remark, kind)

    @classmethod
    def from_domain(cls, item: PayrollLineItem) -> LineItemPayload:
        if item.kind is LineKind.DEDUCTION:
            legacy = legacy_deduction_code(item.code)
        else:
            legacy = legacy_payment_code(item.code)
        return cls(
            code=item.code,
            amount=item.amount,
            order=item.order,
            remark=item.remark,
            legacy_code=legacy,
        )


class StatementPayload(CamelModel):
    """A payroll statement as exchanged with callers."""

    payroll_year_month: str
    employee_id: int | None = None
    statement_id: int | None = None
    payment_date: date | None = None
    settlement_start_date: date | None = None
    settlement_end_date: date | None = None
    payment_items: list[LineItemPayload] = Field(default_factory=list)
    deduction_items: list[LineItemPayload] = Field(default_factory=list)
    bonuses: list[LineItemPayload] = Field(default_factory=list)
    total_payment_amount: int = 0
    total_deduction_amount: int = 0
    net_pay: int = 0
    status: StatementStatus = StatementStatus.DRAFT
    attachment_file_id: int | None = None
    remarks: str = ""

    def to_domain(self) -> PayrollStatement:
        """Build a statement. Totals are left for the builder to derive."""
        return PayrollStatement(
            payroll_year_month=self.payroll_year_month,
            employee_id=self.employee_id,
            statement_id=self.statement_id,
            payment_date=self.payment_date,
            settlement_start_date=self.settlement_start_date,
            settlement_end_date=self.settlement_end_date,
            payment_items=[i.to_domain(LineKind.PAYMENT) for i in self.payment_items],
            deduction_items=[i.to_domain(LineKind.DEDUCTION) for i in self.deduction_items],
            bonuses=[i.to_domain(LineKind.PAYMENT) for i in self.bonuses],
            status=self.status,
            attachment_file_id=self.attachment_file_id,
            remarks=self.remarks,
        )

    @classmethod
    def from_domain(cls, statement: PayrollStatement) -> StatementPayload:
        return cls(
            payroll_year_month=statement.payroll_year_month,
            employee_id=statement.employee_id,
            statement_id=statement.statement_id,
            payment_date=statement.payment_date,
            settlement_start_date=statement.settlement_start_date,
            settlement_end_date=statement.settlement_end_date,
            payment_items=[LineItemPayload.from_domain(i) for i in statement.payment_items],
            deduction_items=[LineItemPayload.from_domain(i) for i in statement.deduction_items],
            bonuses=[LineItemPayload.from_domain(i) for i in statement.bonuses],
            total_payment_amount=statement.total_payment_amount,
            total_deduction_amount=statement.total_deduction_amount,
            net_pay=statement.net_pay,
            status=statement.status,
            attachment_file_id=statement.attachment_file_id,
            remarks=statement.remarks,
        )
