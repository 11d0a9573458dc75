"""Compensation calculators."""

from compensation_engine.calculators.deduction_calculator import (
    InsuranceRateTable,
    StatutoryDeductionCalculator,
    rate_table_for_year,
)
from compensation_engine.calculators.wage_converter import (
    CalculatorResult,
    WageCalculatorSession,
    WageConverter,
)

__all__ = [
    "CalculatorResult",
    "InsuranceRateTable",
    "StatutoryDeductionCalculator",
    "WageCalculatorSession",
    "WageConverter",
    "rate_table_for_year",
]
