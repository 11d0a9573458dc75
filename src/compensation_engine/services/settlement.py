"""Per-period settlement of hourly work.

Non-inclusive and part-time contracts keep supplemental hourly rates rather
than premium amounts. Those rates are settled here against recorded work:

- Part-time daily pay: work hours x weekday rate.
- Weekly holiday allowance: a week with 15 or more work hours earns
  hours / 5 (two decimals) hours of pay at the weekday rate. Hours worked
  at the end of the previous month count toward the period's first week.
- Overtime allowance: overtime hours x overtime rate.

Every settled amount carries a 3.3% withholding, and the net amount is the
pay less the withholding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from compensation_engine.calculators.money import round_half_up, to_decimal
from compensation_engine.calculators.types import ContractClassification
from compensation_engine.calculators.wage_converter import WageConverter
from compensation_engine.services.contract_profile import ContractCompensationProfile
from compensation_engine.services.statement_builder import (
    OvertimeAllowanceRecord,
    parse_year_month,
)

logger = logging.getLogger(__name__)

WITHHOLDING_RATE = Decimal("0.033")
WEEKLY_HOLIDAY_MIN_HOURS = Decimal("15")
WORKDAYS_PER_WEEK = Decimal("5")
HOURS_PLACES = Decimal("0.01")


def withholding(amount: int) -> int:
    return round_half_up(to_decimal(amount) * WITHHOLDING_RATE)


def week_of_month(day: date) -> int:
    """Monday-based week of the month. The week holding the 1st is week 1."""
    first_weekday = date(day.year, day.month, 1).isoweekday()
    return (day.day + first_weekday - 2) // 7 + 1


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


@dataclass(frozen=True)
class WorkDay:
    """Hours recorded for one calendar day."""

    work_date: date
    hours: Decimal


@dataclass(frozen=True)
class SettledDay:
    """One day of hourly work, priced."""

    work_date: date
    week_number: int
    hours: Decimal
    hourly_rate: int
    payment_amount: int
    withholding_amount: int

    @property
    def net_amount(self) -> int:
        return self.payment_amount - self.withholding_amount


@dataclass(frozen=True)
class WeeklyHolidayAllowance:
    """Paid weekly holiday earned by a part-time employee."""

    week_number: int
    week_start_date: date
    week_end_date: date
    total_work_hours: Decimal
    is_eligible: bool
    allowance_hours: Decimal
    hourly_rate: int
    allowance_amount: int
    withholding_amount: int

    @property
    def net_amount(self) -> int:
        return self.allowance_amount - self.withholding_amount


@dataclass(frozen=True)
class WeeklySubtotal:
    week_number: int
    week_start_date: date
    week_end_date: date
    hours: Decimal
    payment_amount: int
    withholding_amount: int

    @property
    def net_amount(self) -> int:
        return self.payment_amount - self.withholding_amount


@dataclass
class PartTimeSettlement:
    """A part-time employee's pay for one payroll month."""

    payroll_year_month: str
    employee_id: int | None
    hourly_rate: int
    days: list[SettledDay] = field(default_factory=list)
    weekly_allowances: list[WeeklyHolidayAllowance] = field(default_factory=list)
    previous_month_hours: Decimal = Decimal("0")

    @property
    def total_work_hours(self) -> Decimal:
        return sum((d.hours for d in self.days), Decimal("0"))

    @property
    def total_payment_amount(self) -> int:
        return sum(d.payment_amount for d in self.days) + sum(
            w.allowance_amount for w in self.weekly_allowances
        )

    @property
    def total_withholding_amount(self) -> int:
        return sum(d.withholding_amount for d in self.days) + sum(
            w.withholding_amount for w in self.weekly_allowances
        )

    @property
    def total_amount(self) -> int:
        return self.total_payment_amount - self.total_withholding_amount


@dataclass
class OvertimeSettlement:
    """Overtime worked in one payroll month, priced at the overtime rate."""

    payroll_year_month: str
    employee_id: int | None
    hourly_rate: int
    days: list[SettledDay] = field(default_factory=list)

    @property
    def total_overtime_hours(self) -> Decimal:
        return sum((d.hours for d in self.days), Decimal("0"))

    @property
    def total_payment_amount(self) -> int:
        return sum(d.payment_amount for d in self.days)

    @property
    def total_withholding_amount(self) -> int:
        return sum(d.withholding_amount for d in self.days)

    @property
    def total_amount(self) -> int:
        return self.total_payment_amount - self.total_withholding_amount

    def weekly_subtotals(self) -> list[WeeklySubtotal]:
        weeks: dict[int, list[SettledDay]] = {}
        for day in self.days:
            weeks.setdefault(day.week_number, []).append(day)
        subtotals = []
        for week_number in sorted(weeks):
            days = weeks[week_number]
            start, end = week_bounds(days[0].work_date)
            subtotals.append(
                WeeklySubtotal(
                    week_number=week_number,
                    week_start_date=start,
                    week_end_date=end,
                    hours=sum((d.hours for d in days), Decimal("0")),
                    payment_amount=sum(d.payment_amount for d in days),
                    withholding_amount=sum(d.withholding_amount for d in days),
                )
            )
        return subtotals

    def to_record(self) -> OvertimeAllowanceRecord:
        """The overtime allowance statement total a payroll statement picks up."""
        if self.employee_id is None:
            raise ValueError("employee_id is required for an overtime allowance record")
        return OvertimeAllowanceRecord(
            employee_id=self.employee_id,
            payroll_year_month=self.payroll_year_month,
            total_amount=self.total_amount,
        )


class SettlementCalculator:
    """Settles recorded hours against a contract's hourly rates."""

    @staticmethod
    def weekday_rate(profile: ContractCompensationProfile) -> int:
        """Hourly rate for part-time work.

        Raises:
            ValueError: If the profile has no weekday rate
        """
        if profile.rates is None or profile.rates.weekday <= 0:
            raise ValueError(
                f"Contract {profile.contract_id} has no weekday hourly rate"
            )
        return profile.rates.weekday

    @staticmethod
    def overtime_rate(profile: ContractCompensationProfile) -> int:
        """Hourly rate for overtime.

        The stored overtime rate is used when there is one; otherwise it is
        derived from the contract's hourly wage.

        Raises:
            ValueError: If neither a rate nor a wage is available
        """
        if profile.rates is not None and profile.rates.overtime > 0:
            return profile.rates.overtime
        rate = WageConverter.derive_supplemental_rates(profile.hourly_wage).overtime
        if rate <= 0:
            raise ValueError(
                f"Contract {profile.contract_id} has no overtime hourly rate"
            )
        return rate

    @staticmethod
    def settle_day(work_day: WorkDay, hourly_rate: int) -> SettledDay:
        payment = round_half_up(to_decimal(work_day.hours) * hourly_rate)
        return SettledDay(
            work_date=work_day.work_date,
            week_number=week_of_month(work_day.work_date),
            hours=work_day.hours,
            hourly_rate=hourly_rate,
            payment_amount=payment,
            withholding_amount=withholding(payment),
        )

    @staticmethod
    def weekly_holiday_allowances(
        days: list[SettledDay],
        hourly_rate: int,
        previous_month_hours: Decimal = Decimal("0"),
    ) -> list[WeeklyHolidayAllowance]:
        """One allowance entry per week that has recorded work.

        ``previous_month_hours`` are the hours worked in the previous month
        during the first week of this period; they count toward that week.
        """
        weeks: dict[int, list[SettledDay]] = {}
        for day in sorted(days, key=lambda d: d.work_date):
            weeks.setdefault(day.week_number, []).append(day)
        if not weeks:
            return []

        first_week = min(weeks)
        allowances = []
        for week_number in sorted(weeks):
            week_days = weeks[week_number]
            hours = sum((d.hours for d in week_days), Decimal("0"))
            if week_number == first_week and previous_month_hours > 0:
                hours += previous_month_hours

            eligible = hours >= WEEKLY_HOLIDAY_MIN_HOURS
            allowance_hours = Decimal("0")
            if eligible:
                allowance_hours = (hours / WORKDAYS_PER_WEEK).quantize(
                    HOURS_PLACES, rounding=ROUND_HALF_UP
                )
            amount = round_half_up(allowance_hours * hourly_rate)
            start, end = week_bounds(week_days[0].work_date)
            allowances.append(
                WeeklyHolidayAllowance(
                    week_number=week_number,
                    week_start_date=start,
                    week_end_date=end,
                    total_work_hours=hours,
                    is_eligible=eligible,
                    allowance_hours=allowance_hours,
                    hourly_rate=hourly_rate,
                    allowance_amount=amount,
                    withholding_amount=withholding(amount),
                )
            )
        return allowances

    @classmethod
    def settle_part_time(
        cls,
        profile: ContractCompensationProfile,
        payroll_year_month: str,
        work_days: list[WorkDay],
        previous_month_hours: Decimal = Decimal("0"),
    ) -> PartTimeSettlement:
        """Daily pay and weekly holiday allowances for a part-time month."""
        parse_year_month(payroll_year_month)
        if profile.classification is not ContractClassification.PART_TIME:
            logger.warning(
                "Settling %s contract %s as part-time",
                profile.classification.value,
                profile.contract_id,
            )
        rate = cls.weekday_rate(profile)
        days = [
            cls.settle_day(work_day, rate)
            for work_day in sorted(work_days, key=lambda d: d.work_date)
        ]
        settlement = PartTimeSettlement(
            payroll_year_month=payroll_year_month,
            employee_id=profile.employee_id,
            hourly_rate=rate,
            days=days,
            weekly_allowances=cls.weekly_holiday_allowances(
                days, rate, previous_month_hours
            ),
            previous_month_hours=previous_month_hours,
        )
        logger.debug(
            "Settled part-time %s for employee %s: payment=%s net=%s",
            payroll_year_month,
            profile.employee_id,
            settlement.total_payment_amount,
            settlement.total_amount,
        )
        return settlement

    @classmethod
    def settle_overtime(
        cls,
        profile: ContractCompensationProfile,
        payroll_year_month: str,
        overtime_days: list[WorkDay],
    ) -> OvertimeSettlement:
        """Overtime allowance for a month of recorded overtime hours."""
        parse_year_month(payroll_year_month)
        rate = cls.overtime_rate(profile)
        settlement = OvertimeSettlement(
            payroll_year_month=payroll_year_month,
            employee_id=profile.employee_id,
            hourly_rate=rate,
            days=[
                cls.settle_day(work_day, rate)
                for work_day in sorted(overtime_days, key=lambda d: d.work_date)
            ],
        )
        logger.debug(
            "Settled overtime %s for employee %s: hours=%s net=%s",
            payroll_year_month,
            profile.employee_id,
            settlement.total_overtime_hours,
            settlement.total_amount,
        )
        return settlement
