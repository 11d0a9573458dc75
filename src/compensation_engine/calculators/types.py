"""Type definitions for the compensation calculators."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from compensation_engine.codes import DeductionItemKind


class ContractClassification(str, Enum):
    """Pay-structure classification of an employment contract."""

    INCLUSIVE_ANNUAL = "INCLUSIVE_ANNUAL"
    NON_INCLUSIVE_ANNUAL = "NON_INCLUSIVE_ANNUAL"
    PART_TIME = "PART_TIME"

    @classmethod
    def from_code(cls, code: str) -> ContractClassification:
        """Resolve a classification from its name or its common code."""
        legacy = {
            "CNTCFWK_001": cls.INCLUSIVE_ANNUAL,
            "CNTCFWK_002": cls.NON_INCLUSIVE_ANNUAL,
            "CNTCFWK_003": cls.PART_TIME,
        }
        if code in legacy:
            return legacy[code]
        return cls(code)

    @property
    def uses_supplemental_rates(self) -> bool:
        return self is not ContractClassification.INCLUSIVE_ANNUAL


class SalaryTiming(str, Enum):
    """Whether a month's pay settles the same month or the previous one."""

    CURRENT = "CURRENT"
    NEXT = "NEXT"

    @classmethod
    def from_code(cls, code: str | None) -> SalaryTiming:
        if code in (None, "", "SLRCF_001"):
            return cls.CURRENT
        if code == "SLRCF_002":
            return cls.NEXT
        return cls(code)


@dataclass
class Allowance:
    """A nontaxable allowance and whether it is paid with the salary."""

    amount: int = 0
    included: bool = True

    @property
    def effective_amount(self) -> int:
        return self.amount if self.included else 0


DEFAULT_MEAL_ALLOWANCE = 200_000
DEFAULT_CAR_ALLOWANCE = 200_000
DEFAULT_CHILDCARE_ALLOWANCE = 100_000


@dataclass
class NontaxableAllowances:
    """Meal, car and childcare allowances."""

    meal: Allowance = field(default_factory=Allowance)
    car: Allowance = field(default_factory=Allowance)
    childcare: Allowance = field(default_factory=Allowance)

    @classmethod
    def defaults(cls) -> NontaxableAllowances:
        return cls(
            meal=Allowance(DEFAULT_MEAL_ALLOWANCE, True),
            car=Allowance(DEFAULT_CAR_ALLOWANCE, True),
            childcare=Allowance(DEFAULT_CHILDCARE_ALLOWANCE, True),
        )

    @property
    def included_total(self) -> int:
        """Sum of allowances paid with the salary."""
        return (
            self.meal.effective_amount
            + self.car.effective_amount
            + self.childcare.effective_amount
        )

    def stored(self) -> NontaxableAllowances:
        """Copy with excluded allowances zeroed, as persisted on a contract."""
        return NontaxableAllowances(
            meal=Allowance(self.meal.effective_amount, self.meal.included),
            car=Allowance(self.car.effective_amount, self.car.included),
            childcare=Allowance(self.childcare.effective_amount, self.childcare.included),
        )


@dataclass
class WageInputs:
    """Calculator inputs for one session."""

    weekly_hours: Decimal = Decimal("40")
    hourly_wage: int = 0
    monthly_overtime_hours: Decimal = Decimal("0")
    monthly_night_hours: Decimal = Decimal("0")
    monthly_holiday_hours: Decimal = Decimal("0")
    monthly_extra_holiday_hours: Decimal = Decimal("0")
    allowances: NontaxableAllowances = field(default_factory=NontaxableAllowances.defaults)


@dataclass(frozen=True)
class SupplementalRates:
    """Hourly rates used to settle premium hours per period."""

    weekday: int = 0
    overtime: int = 0
    night: int = 0
    holiday: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.weekday or self.overtime or self.night or self.holiday)


@dataclass(frozen=True)
class CompensationBreakdown:
    """Monthly and annual salary derived from wage inputs."""

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

    @property
    def premium_amount(self) -> int:
        return (
            self.monthly_overtime_amount
            + self.monthly_night_amount
            + self.monthly_holiday_amount
            + self.monthly_extra_holiday_amount
        )


@dataclass(frozen=True)
class EnrollmentFlags:
    """Social insurance enrollment from the contract header."""

    national_pension: bool = False
    health_insurance: bool = False
    employment_insurance: bool = False
    workers_compensation: bool = False

    @classmethod
    def all_enrolled(cls) -> EnrollmentFlags:
        return cls(True, True, True, True)


@dataclass(frozen=True)
class DeductionResult:
    """Estimated statutory deductions for one month."""

    taxable_amount: int = 0
    national_pension: int = 0
    health_insurance: int = 0
    long_term_care: int = 0
    employment_insurance: int = 0
    income_tax: int = 0
    local_income_tax: int = 0

    @property
    def total(self) -> int:
        return (
            self.national_pension
            + self.health_insurance
            + self.long_term_care
            + self.employment_insurance
            + self.income_tax
            + self.local_income_tax
        )

    def by_kind(self) -> dict[DeductionItemKind, int]:
        """Amounts keyed by deduction line-item kind."""
        return {
            DeductionItemKind.NATIONAL_PENSION: self.national_pension,
            DeductionItemKind.HEALTH_INSURANCE: self.health_insurance,
            DeductionItemKind.LONG_TERM_CARE: self.long_term_care,
            DeductionItemKind.EMPLOYMENT_INSURANCE: self.employment_insurance,
            DeductionItemKind.INCOME_TAX: self.income_tax,
            DeductionItemKind.LOCAL_INCOME_TAX: self.local_income_tax,
        }


@dataclass
class TaxBracket:
    """Tax bracket for a stepped income-tax function."""

    min_amount: Decimal  # exclusive lower bound
    max_amount: Decimal | None  # inclusive upper bound, None = no upper limit
    rate: Decimal
    flat_amount: Decimal = Decimal("0")  # tax accrued below min_amount


@dataclass(frozen=True)
class MinimumWage:
    """Statutory minimum hourly wage for a year."""

    year: int
    minimum_wage: int


@dataclass(frozen=True)
class MinimumWageTable:
    """Year-indexed minimum wages, supplied by the caller."""

    entries: tuple[MinimumWage, ...] = ()

    @classmethod
    def from_mapping(cls, wages: dict[int, int]) -> MinimumWageTable:
        return cls(tuple(MinimumWage(year, wage) for year, wage in wages.items()))

    def for_year(self, year: int) -> int | None:
        """Minimum wage for a year, or None when the year is not listed."""
        for entry in self.entries:
            if entry.year == year:
                return entry.minimum_wage
        return None

    def default_year(self, current_year: int) -> int | None:
        """The current year if listed, otherwise the first entry's year."""
        if not self.entries:
            return None
        if self.for_year(current_year) is not None:
            return current_year
        return self.entries[0].year
