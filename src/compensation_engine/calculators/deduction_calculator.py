"""Statutory insurance and income-tax deduction estimates.

The income-tax function is a simplified single-dependent approximation of
the withholding schedule, not the authoritative table. Callers presenting
these figures as final withholding do so at their own risk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from compensation_engine.calculators.money import round_half_up, to_decimal
from compensation_engine.calculators.types import (
    DeductionResult,
    EnrollmentFlags,
    NontaxableAllowances,
    TaxBracket,
)

logger = logging.getLogger(__name__)


def _bracket(min_amount: int, max_amount: int | None, rate: str, flat: int) -> TaxBracket:
    return TaxBracket(
        min_amount=Decimal(min_amount),
        max_amount=Decimal(max_amount) if max_amount is not None else None,
        rate=Decimal(rate),
        flat_amount=Decimal(flat),
    )


DEFAULT_INCOME_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    _bracket(1_060_000, 1_500_000, "0.06", 0),
    _bracket(1_500_000, 3_000_000, "0.15", 26_400),
    _bracket(3_000_000, 4_500_000, "0.24", 251_400),
    _bracket(4_500_000, 8_700_000, "0.35", 611_400),
    _bracket(8_700_000, None, "0.38", 2_081_400),
)


@dataclass(frozen=True)
class InsuranceRateTable:
    """Employee-side statutory rates for one year.

    Attributes:
        year: First year the table applies to.
        national_pension: Share of the taxable amount.
        health_insurance: Share of the taxable amount.
        long_term_care: Share of the health insurance premium.
        employment_insurance: Share of the taxable amount.
        local_income_tax: Share of the income tax.
        income_tax_brackets: Stepped brackets; amounts at or below the first
            bracket's lower bound owe no income tax.
    """

    year: int
    national_pension: Decimal = Decimal("0.045")
    health_insurance: Decimal = Decimal("0.03545")
    long_term_care: Decimal = Decimal("0.1281")
    employment_insurance: Decimal = Decimal("0.009")
    local_income_tax: Decimal = Decimal("0.10")
    income_tax_brackets: tuple[TaxBracket, ...] = field(
        default=DEFAULT_INCOME_TAX_BRACKETS
    )

    def __post_init__(self) -> None:
        """Validate rates."""
        for name in (
            "national_pension",
            "health_insurance",
            "long_term_care",
            "employment_insurance",
            "local_income_tax",
        ):
            rate = getattr(self, name)
            if rate < 0 or rate >= 1:
                raise ValueError(f"{name} rate must be in [0, 1), got {rate}")
        if not self.income_tax_brackets:
            raise ValueError("income_tax_brackets must not be empty")


DEFAULT_RATE_TABLE = InsuranceRateTable(year=2025)

RATE_TABLES: dict[int, InsuranceRateTable] = {
    DEFAULT_RATE_TABLE.year: DEFAULT_RATE_TABLE,
}


def rate_table_for_year(
    year: int, tables: dict[int, InsuranceRateTable] | None = None
) -> InsuranceRateTable:
    """Latest table whose year is not after ``year``.

    Years before the earliest table fall back to the earliest table.

    Raises:
        ValueError: If ``tables`` is empty
    """
    if tables is None:
        tables = RATE_TABLES
    if not tables:
        raise ValueError("No insurance rate tables configured")
    eligible = [y for y in tables if y <= year]
    chosen = max(eligible) if eligible else min(tables)
    return tables[chosen]


class StatutoryDeductionCalculator:
    """Estimates employee deductions from a monthly taxable amount.

    Deduction rules:
    - National pension, health insurance and employment insurance are each a
      flat share of the taxable amount, gated by their enrollment flag
    - Long-term care is a share of the health insurance premium and follows
      the health insurance flag
    - Income tax follows a stepped bracket function; local income tax is 10%
      of income tax. Neither is gated by enrollment
    - Workers' compensation is employer-borne and has no employee deduction
    """

    def __init__(self, rate_table: InsuranceRateTable | None = None):
        self.rate_table = rate_table or DEFAULT_RATE_TABLE

    @staticmethod
    def taxable_amount(monthly_total: int, allowances: NontaxableAllowances) -> int:
        """Monthly total less included nontaxable allowances (never negative)."""
        return max(0, monthly_total - allowances.included_total)

    def calculate(self, taxable_amount: Any, flags: EnrollmentFlags) -> DeductionResult:
        """Compute all deductions for a taxable amount."""
        taxable = max(Decimal("0"), to_decimal(taxable_amount))
        rates = self.rate_table

        national_pension = 0
        if flags.national_pension:
            national_pension = round_half_up(taxable * rates.national_pension)

        health_insurance = 0
        long_term_care = 0
        if flags.health_insurance:
            health_insurance = round_half_up(taxable * rates.health_insurance)
            long_term_care = round_half_up(health_insurance * rates.long_term_care)

        employment_insurance = 0
        if flags.employment_insurance:
            employment_insurance = round_half_up(taxable * rates.employment_insurance)

        income_tax = self.income_tax(taxable)
        local_income_tax = self.local_income_tax(income_tax)

        result = DeductionResult(
            taxable_amount=round_half_up(taxable),
            national_pension=national_pension,
            health_insurance=health_insurance,
            long_term_care=long_term_care,
            employment_insurance=employment_insurance,
            income_tax=income_tax,
            local_income_tax=local_income_tax,
        )
        logger.debug("Deductions for taxable=%s: total=%s", taxable, result.total)
        return result

    def income_tax(self, taxable_amount: Any) -> int:
        """Stepped income tax, rounded to a whole unit.

        Within the bracket containing the amount:
        tax = flat_amount + (amount - min_amount) * rate
        """
        amount = to_decimal(taxable_amount)
        for bracket in sorted(self.rate_table.income_tax_brackets, key=lambda b: b.min_amount):
            if amount <= bracket.min_amount:
                return 0
            if bracket.max_amount is None or amount <= bracket.max_amount:
                return round_half_up(
                    bracket.flat_amount + (amount - bracket.min_amount) * bracket.rate
                )
        return 0

    def local_income_tax(self, income_tax: int) -> int:
        return round_half_up(to_decimal(income_tax) * self.rate_table.local_income_tax)
