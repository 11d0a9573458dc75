"""Hourly wage to monthly/annual salary conversion."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from compensation_engine.calculators.money import (
    parse_amount,
    parse_hours,
    round_half_up,
    to_decimal,
)
from compensation_engine.calculators.types import (
    Allowance,
    CompensationBreakdown,
    ContractClassification,
    MinimumWageTable,
    NontaxableAllowances,
    SupplementalRates,
    WageInputs,
)

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = Decimal("4.345")
WORKDAYS_PER_WEEK = Decimal("5")  # one paid rest hour per five worked
OVERTIME_MULTIPLIER = Decimal("1.5")
PREMIUM_MULTIPLIER = Decimal("0.5")
LEGAL_WEEKLY_CAP_HOURS = Decimal("52")
DEFAULT_WEEKLY_HOURS = Decimal("40")


class WageConverter:
    """Converts hour/wage inputs into a CompensationBreakdown.

    Pure and synchronous. Conversion pipeline:
    1) Monthly basic hours fold the weekly paid rest day into the weekly
       hours and scale by 4.345 weeks per month
    2) Overtime and extra-holiday hours pay 150% of the hourly wage
    3) Night and holiday hours pay the 50% premium only (the hours
       themselves are already inside basic hours)
    4) Included nontaxable allowances are added to the monthly total
    5) Annual total = monthly total * 12
    """

    @staticmethod
    def monthly_basic_hours(weekly_hours: Any) -> int:
        weekly = to_decimal(weekly_hours)
        return round_half_up((weekly + weekly / WORKDAYS_PER_WEEK) * WEEKS_PER_MONTH)

    @staticmethod
    def overtime_amount(hours: Any, hourly_wage: int) -> int:
        """Pay for hours worked beyond the contract (150%)."""
        return round_half_up(to_decimal(hours) * hourly_wage * OVERTIME_MULTIPLIER)

    @staticmethod
    def premium_amount(hours: Any, hourly_wage: int) -> int:
        """Incremental premium for night/holiday hours (+50%)."""
        return round_half_up(to_decimal(hours) * hourly_wage * PREMIUM_MULTIPLIER)

    @staticmethod
    def weekly_total_work_hours(
        weekly_hours: Any, overtime_hours: Any, extra_holiday_hours: Any
    ) -> Decimal:
        return to_decimal(weekly_hours) + (
            to_decimal(overtime_hours) + to_decimal(extra_holiday_hours)
        ) / WEEKS_PER_MONTH

    @staticmethod
    def is_below_minimum_wage(hourly_wage: int, minimum_wage: int) -> bool:
        return 0 < hourly_wage < minimum_wage

    @classmethod
    def convert(cls, inputs: WageInputs, minimum_wage: int = 0) -> CompensationBreakdown:
        """Convert wage inputs into monthly and annual amounts.

        Args:
            inputs: Hours, hourly wage and allowances
            minimum_wage: Minimum hourly wage for the selected year

        Returns:
            The derived breakdown
        """
        wage = inputs.hourly_wage

        basic_hours = cls.monthly_basic_hours(inputs.weekly_hours)
        basic_amount = basic_hours * wage

        overtime_amount = cls.overtime_amount(inputs.monthly_overtime_hours, wage)
        extra_holiday_amount = cls.overtime_amount(inputs.monthly_extra_holiday_hours, wage)
        night_amount = cls.premium_amount(inputs.monthly_night_hours, wage)
        holiday_amount = cls.premium_amount(inputs.monthly_holiday_hours, wage)

        # Night/holiday hours overlap basic hours
        total_work_hours = (
            basic_hours + inputs.monthly_overtime_hours + inputs.monthly_extra_holiday_hours
        )
        weekly_total = cls.weekly_total_work_hours(
            inputs.weekly_hours,
            inputs.monthly_overtime_hours,
            inputs.monthly_extra_holiday_hours,
        )

        allowance_amount = inputs.allowances.included_total
        monthly_total = (
            basic_amount
            + overtime_amount
            + extra_holiday_amount
            + night_amount
            + holiday_amount
            + allowance_amount
        )

        return CompensationBreakdown(
            hourly_wage=wage,
            weekly_hours=inputs.weekly_hours,
            monthly_basic_hours=basic_hours,
            monthly_basic_amount=basic_amount,
            monthly_overtime_hours=inputs.monthly_overtime_hours,
            monthly_overtime_amount=overtime_amount,
            monthly_night_hours=inputs.monthly_night_hours,
            monthly_night_amount=night_amount,
            monthly_holiday_hours=inputs.monthly_holiday_hours,
            monthly_holiday_amount=holiday_amount,
            monthly_extra_holiday_hours=inputs.monthly_extra_holiday_hours,
            monthly_extra_holiday_amount=extra_holiday_amount,
            included_allowance_amount=allowance_amount,
            monthly_total_amount=monthly_total,
            annual_total_amount=monthly_total * 12,
            total_monthly_work_hours=total_work_hours,
            weekly_total_work_hours=weekly_total,
            is_over_legal_weekly_cap=weekly_total > LEGAL_WEEKLY_CAP_HOURS,
            is_below_minimum_wage=cls.is_below_minimum_wage(wage, minimum_wage),
        )

    @staticmethod
    def reset_inputs(minimum_wage: int) -> WageInputs:
        """Default inputs: 40h week, no premium hours, minimum wage."""
        return WageInputs(
            weekly_hours=DEFAULT_WEEKLY_HOURS,
            hourly_wage=minimum_wage,
            allowances=NontaxableAllowances.defaults(),
        )

    @staticmethod
    def derive_supplemental_rates(
        hourly_wage: int,
        overrides: SupplementalRates | None = None,
    ) -> SupplementalRates:
        """Supplemental hourly rates for non-inclusive and part-time contracts.

        weekday = hourly wage; overtime = night = holiday = round(wage * 1.5).
        Any nonzero override wins over the derived value.
        """
        premium = round_half_up(to_decimal(hourly_wage) * OVERTIME_MULTIPLIER)
        overrides = overrides or SupplementalRates()
        return SupplementalRates(
            weekday=overrides.weekday or hourly_wage,
            overtime=overrides.overtime or premium,
            night=overrides.night or premium,
            holiday=overrides.holiday or premium,
        )


_HOUR_FIELDS = (
    "weekly_hours",
    "monthly_overtime_hours",
    "monthly_night_hours",
    "monthly_holiday_hours",
    "monthly_extra_holiday_hours",
)


@dataclass(frozen=True)
class CalculatorResult:
    """What the calculator hands to the contract profile on apply."""

    classification: ContractClassification
    inputs: WageInputs
    breakdown: CompensationBreakdown
    rates: SupplementalRates | None


class WageCalculatorSession:
    """Calculator state for one editing session.

    Holds the transient WageInputs, the selected minimum-wage year and, for
    non-inclusive and part-time contracts, the supplemental hourly rates.
    Every read of ``breakdown`` recomputes from the current inputs.
    """

    def __init__(
        self,
        minimum_wages: MinimumWageTable,
        current_year: int,
        classification: ContractClassification = ContractClassification.INCLUSIVE_ANNUAL,
        initial: WageInputs | None = None,
        initial_rates: SupplementalRates | None = None,
    ):
        self.minimum_wages = minimum_wages
        self.classification = classification
        self.selected_year = minimum_wages.default_year(current_year)
        self.minimum_wage = 0
        if self.selected_year is not None:
            self.minimum_wage = minimum_wages.for_year(self.selected_year) or 0
        self.inputs = copy.deepcopy(initial) if initial is not None else WageInputs()
        self._rate_overrides = SupplementalRates()

        if self.inputs.hourly_wage <= 0:
            self.inputs.hourly_wage = self.minimum_wage

        self.rates: SupplementalRates | None = None
        if classification.uses_supplemental_rates:
            self.rates = WageConverter.derive_supplemental_rates(
                self.inputs.hourly_wage, initial_rates
            )

    @property
    def breakdown(self) -> CompensationBreakdown:
        return WageConverter.convert(self.inputs, self.minimum_wage)

    def set_hourly_wage(self, value: Any) -> None:
        """Set the hourly wage; re-derives supplemental rates when positive."""
        wage = parse_amount(value)
        self.inputs.hourly_wage = wage
        if self.classification.uses_supplemental_rates and wage > 0:
            self.rates = WageConverter.derive_supplemental_rates(wage, self._rate_overrides)

    def set_hours(self, field_name: str, value: Any) -> None:
        if field_name not in _HOUR_FIELDS:
            raise ValueError(f"Unknown hour field '{field_name}'")
        setattr(self.inputs, field_name, parse_hours(value))

    def set_allowance(self, name: str, amount: Any = None, included: bool | None = None) -> None:
        allowance: Allowance = getattr(self.inputs.allowances, name)
        if amount is not None:
            allowance.amount = parse_amount(amount)
        if included is not None:
            allowance.included = included

    def override_rates(self, **rates: Any) -> None:
        """Explicitly set supplemental rates; nonzero values survive wage changes."""
        if not self.classification.uses_supplemental_rates:
            raise ValueError(
                f"{self.classification.value} contracts have no supplemental rates"
            )
        self._rate_overrides = replace(
            self._rate_overrides, **{k: parse_amount(v) for k, v in rates.items()}
        )
        self.rates = WageConverter.derive_supplemental_rates(
            self.inputs.hourly_wage, self._rate_overrides
        )

    def select_year(self, year: int) -> bool:
        """Switch the minimum-wage year; the hourly wage follows it.

        Returns False (and changes nothing) when the year is not listed.
        """
        minimum_wage = self.minimum_wages.for_year(year)
        if minimum_wage is None:
            return False
        self.selected_year = year
        self.minimum_wage = minimum_wage
        self.inputs.hourly_wage = minimum_wage
        if self.classification.uses_supplemental_rates:
            self._rate_overrides = SupplementalRates()
            self.rates = WageConverter.derive_supplemental_rates(minimum_wage)
        return True

    def reset(self) -> None:
        self.inputs = WageConverter.reset_inputs(self.minimum_wage)
        self._rate_overrides = SupplementalRates()
        if self.classification.uses_supplemental_rates:
            self.rates = WageConverter.derive_supplemental_rates(self.minimum_wage)

    def apply(self) -> CalculatorResult:
        """Snapshot the session for the contract profile."""
        breakdown = self.breakdown
        logger.debug(
            "Calculator applied: classification=%s monthly_total=%s annual_total=%s",
            self.classification.value,
            breakdown.monthly_total_amount,
            breakdown.annual_total_amount,
        )
        return CalculatorResult(
            classification=self.classification,
            inputs=copy.deepcopy(self.inputs),
            breakdown=breakdown,
            rates=self.rates,
        )
