"""Compensation engine command line interface.

Provides quick calculations without a host application:
- Salary breakdown from an hourly wage
- Statutory deduction estimate
- Income tax for an amount

Usage:
    python -m compensation_engine convert --hourly-wage 10030 --weekly-hours 40
    python -m compensation_engine deductions --taxable-amount 3000000 --all-enrolled
    python -m compensation_engine income-tax 3000000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable

from compensation_engine.calculators.deduction_calculator import (
    StatutoryDeductionCalculator,
    rate_table_for_year,
)
from compensation_engine.calculators.money import parse_amount, parse_hours
from compensation_engine.calculators.types import Allowance, NontaxableAllowances, WageInputs
from compensation_engine.calculators.wage_converter import WageConverter
from compensation_engine.config import configure_logging, get_settings
from compensation_engine.schemas import (
    BreakdownResponse,
    DeductionResponse,
    EnrollmentFlagsPayload,
)

logger = logging.getLogger(__name__)


class CompensationCli:
    """Compensation engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m compensation_engine",
            description="Wage, salary and deduction calculations",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Logging level (defaults to LOG_LEVEL from the environment)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # convert command
        convert = subparsers.add_parser(
            "convert",
            help="Convert an hourly wage into a monthly/annual breakdown",
        )
        convert.add_argument("--hourly-wage", type=parse_amount, required=True)
        convert.add_argument("--weekly-hours", type=parse_hours, default=parse_hours("40"))
        convert.add_argument("--overtime-hours", type=parse_hours, default=parse_hours(0))
        convert.add_argument("--night-hours", type=parse_hours, default=parse_hours(0))
        convert.add_argument("--holiday-hours", type=parse_hours, default=parse_hours(0))
        convert.add_argument(
            "--extra-holiday-hours", type=parse_hours, default=parse_hours(0)
        )
        convert.add_argument("--meal", type=parse_amount, default=0, help="Meal allowance")
        convert.add_argument("--car", type=parse_amount, default=0, help="Car allowance")
        convert.add_argument(
            "--childcare", type=parse_amount, default=0, help="Childcare allowance"
        )
        convert.add_argument(
            "--minimum-wage",
            type=parse_amount,
            default=0,
            help="Minimum hourly wage to check against",
        )

        # deductions command
        deductions = subparsers.add_parser(
            "deductions",
            help="Estimate statutory deductions for a taxable amount",
        )
        deductions.add_argument("--taxable-amount", type=parse_amount, required=True)
        deductions.add_argument("--national-pension", action="store_true")
        deductions.add_argument("--health-insurance", action="store_true")
        deductions.add_argument("--employment-insurance", action="store_true")
        deductions.add_argument(
            "--all-enrolled",
            action="store_true",
            help="Enroll in every social insurance",
        )
        deductions.add_argument("--year", type=int, help="Rate table year")

        # income-tax command
        income_tax = subparsers.add_parser(
            "income-tax",
            help="Income tax and local income tax for a monthly taxable amount",
        )
        income_tax.add_argument("amount", type=parse_amount)
        income_tax.add_argument("--year", type=int, help="Rate table year")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "convert": self._cmd_convert,
            "deductions": self._cmd_deductions,
            "income-tax": self._cmd_income_tax,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _calculator(self, year: int | None) -> StatutoryDeductionCalculator:
        return StatutoryDeductionCalculator(
            rate_table_for_year(year or get_settings().rate_table_year)
        )

    def _cmd_convert(self, args: argparse.Namespace) -> int:
        """Print a salary breakdown."""
        inputs = WageInputs(
            weekly_hours=args.weekly_hours,
            hourly_wage=args.hourly_wage,
            monthly_overtime_hours=args.overtime_hours,
            monthly_night_hours=args.night_hours,
            monthly_holiday_hours=args.holiday_hours,
            monthly_extra_holiday_hours=args.extra_holiday_hours,
            allowances=NontaxableAllowances(
                meal=Allowance(args.meal, args.meal > 0),
                car=Allowance(args.car, args.car > 0),
                childcare=Allowance(args.childcare, args.childcare > 0),
            ),
        )
        breakdown = WageConverter.convert(inputs, args.minimum_wage)
        if breakdown.is_over_legal_weekly_cap:
            logger.warning(
                "Weekly work hours %s exceed the legal cap", breakdown.weekly_total_work_hours
            )
        self._print(BreakdownResponse.from_domain(breakdown).model_dump(mode="json", by_alias=True))
        return 0

    def _cmd_deductions(self, args: argparse.Namespace) -> int:
        """Print a deduction estimate."""
        flags = EnrollmentFlagsPayload(
            national_pension=args.national_pension or args.all_enrolled,
            health_insurance=args.health_insurance or args.all_enrolled,
            employment_insurance=args.employment_insurance or args.all_enrolled,
            workers_compensation=args.all_enrolled,
        ).to_domain()
        result = self._calculator(args.year).calculate(args.taxable_amount, flags)
        self._print(DeductionResponse.from_domain(result).model_dump(mode="json", by_alias=True))
        return 0

    def _cmd_income_tax(self, args: argparse.Namespace) -> int:
        """Print income tax and local income tax."""
        calculator = self._calculator(args.year)
        tax = calculator.income_tax(args.amount)
        self._print(
            {
                "taxableAmount": args.amount,
                "incomeTax": tax,
                "localIncomeTax": calculator.local_income_tax(tax),
            }
        )
        return 0

    @staticmethod
    def _print(payload: dict) -> None:
        print(json.dumps(payload, indent=2, ensure_ascii=False))


def main() -> int:
    """CLI entry point."""
    cli = CompensationCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
