"""Tests for per-period settlement of hourly work."""

from datetime import date
from decimal import Decimal

import pytest

from compensation_engine.calculators.types import (
    ContractClassification,
    SupplementalRates,
)
from compensation_engine.services.contract_profile import ContractCompensationProfile
from compensation_engine.services.settlement import (
    SettlementCalculator,
    WorkDay,
    week_bounds,
    week_of_month,
    withholding,
)
from compensation_engine.services.statement_builder import PayrollStatementBuilder


@pytest.fixture
def part_time_profile() -> ContractCompensationProfile:
    return ContractCompensationProfile(
        ContractClassification.PART_TIME,
        contract_id=20,
        employee_id=7,
        rates=SupplementalRates(weekday=10_000, overtime=15_000, holiday=15_000),
    )


def _days(*entries):
    return [WorkDay(date(2025, 3, day), Decimal(hours)) for day, hours in entries]


class TestWeeks:
    """Monday-based weeks of the month."""

    def test_partial_first_week(self):
        # March 2025 starts on a Saturday
        assert week_of_month(date(2025, 3, 1)) == 1
        assert week_of_month(date(2025, 3, 2)) == 1
        assert week_of_month(date(2025, 3, 3)) == 2
        assert week_of_month(date(2025, 3, 31)) == 6

    def test_month_starting_on_monday(self):
        assert week_of_month(date(2025, 9, 7)) == 1
        assert week_of_month(date(2025, 9, 8)) == 2

    def test_week_bounds(self):
        assert week_bounds(date(2025, 3, 1)) == (date(2025, 2, 24), date(2025, 3, 2))

    def test_withholding_rounds_half_up(self):
        assert withholding(30_000) == 990
        assert withholding(22_500) == 743


class TestPartTimeSettlement:
    """Daily pay and weekly holiday allowance."""

    def test_daily_pay_and_withholding(self, part_time_profile):
        settlement = SettlementCalculator.settle_part_time(
            part_time_profile, "202503", _days((3, "3"), (4, "2.5"))
        )

        assert [(d.payment_amount, d.withholding_amount, d.net_amount) for d in settlement.days] == [
            (30_000, 990, 29_010),
            (25_000, 825, 24_175),
        ]
        assert settlement.hourly_rate == 10_000

    def test_fifteen_hours_earn_holiday_allowance(self, part_time_profile):
        settlement = SettlementCalculator.settle_part_time(
            part_time_profile,
            "202503",
            _days((3, "3"), (4, "3"), (5, "3"), (6, "3"), (7, "3")),
        )

        [week] = settlement.weekly_allowances
        assert week.week_number == 2
        assert (week.week_start_date, week.week_end_date) == (date(2025, 3, 3), date(2025, 3, 9))
        assert week.is_eligible
        assert week.allowance_hours == Decimal("3.00")
        assert week.allowance_amount == 30_000
        assert week.withholding_amount == 990
        assert settlement.total_work_hours == Decimal("15")
        assert settlement.total_payment_amount == 180_000
        assert settlement.total_withholding_amount == 5_940
        assert settlement.total_amount == 174_060

    def test_under_fifteen_hours_earn_nothing(self, part_time_profile):
        settlement = SettlementCalculator.settle_part_time(
            part_time_profile, "202503", _days((10, "7"), (11, "7.5"))
        )

        [week] = settlement.weekly_allowances
        assert not week.is_eligible
        assert week.total_work_hours == Decimal("14.5")
        assert week.allowance_amount == 0
        assert settlement.total_payment_amount == 145_000

    def test_allowance_hours_rounded_to_two_places(self, part_time_profile):
        settlement = SettlementCalculator.settle_part_time(
            part_time_profile, "202503", _days((10, "8"), (11, "7.03"))
        )

        assert settlement.weekly_allowances[0].allowance_hours == Decimal("3.01")
        assert settlement.weekly_allowances[0].allowance_amount == 30_100

    def test_previous_month_hours_count_toward_first_week(self, part_time_profile):
        days = _days((1, "8"), (10, "8"))

        without = SettlementCalculator.settle_part_time(part_time_profile, "202503", days)
        carried = SettlementCalculator.settle_part_time(
            part_time_profile, "202503", days, previous_month_hours=Decimal("8")
        )

        assert not without.weekly_allowances[0].is_eligible
        first, second = carried.weekly_allowances
        assert first.week_number == 1
        assert first.total_work_hours == Decimal("16")
        assert first.allowance_hours == Decimal("3.20")
        assert first.allowance_amount == 32_000
        assert first.withholding_amount == 1_056
        assert second.total_work_hours == Decimal("8")
        assert not second.is_eligible

    def test_requires_weekday_rate(self):
        profile = ContractCompensationProfile(ContractClassification.PART_TIME)

        with pytest.raises(ValueError):
            SettlementCalculator.settle_part_time(profile, "202503", _days((3, "3")))


class TestOvertimeSettlement:
    """Overtime allowance statements."""

    def test_inclusive_contract_derives_rate_from_wage(self, inclusive_profile):
        assert SettlementCalculator.overtime_rate(inclusive_profile) == 15_000

    def test_stored_overtime_rate_wins(self):
        profile = ContractCompensationProfile(
            ContractClassification.NON_INCLUSIVE_ANNUAL,
            hourly_wage=10_000,
            rates=SupplementalRates(10_000, 18_000, 15_000, 15_000),
        )

        assert SettlementCalculator.overtime_rate(profile) == 18_000

    def test_no_rate_and_no_wage(self):
        profile = ContractCompensationProfile(ContractClassification.NON_INCLUSIVE_ANNUAL)

        with pytest.raises(ValueError):
            SettlementCalculator.overtime_rate(profile)

    def test_weekly_subtotals_and_totals(self, inclusive_profile):
        overtime = [
            WorkDay(date(2025, 2, 3), Decimal("2")),
            WorkDay(date(2025, 2, 4), Decimal("1.5")),
            WorkDay(date(2025, 2, 10), Decimal("2")),
        ]

        settlement = SettlementCalculator.settle_overtime(inclusive_profile, "202502", overtime)

        assert [d.payment_amount for d in settlement.days] == [30_000, 22_500, 30_000]
        assert settlement.total_overtime_hours == Decimal("5.5")
        assert settlement.total_payment_amount == 82_500
        assert settlement.total_withholding_amount == 2_723
        assert settlement.total_amount == 79_777
        assert [
            (w.week_number, w.hours, w.payment_amount, w.withholding_amount)
            for w in settlement.weekly_subtotals()
        ] == [
            (2, Decimal("3.5"), 52_500, 1_733),
            (3, Decimal("2"), 30_000, 990),
        ]

    def test_record_feeds_payroll_statement(self, config, inclusive_profile, all_enrolled):
        settlement = SettlementCalculator.settle_overtime(
            inclusive_profile, "202502", [WorkDay(date(2025, 2, 3), Decimal("2"))]
        )
        builder = PayrollStatementBuilder.initialize_draft(
            config, inclusive_profile, all_enrolled, "202502"
        )
        builder.apply_contract_profile()

        result = builder.apply_overtime_allowance(settlement.to_record())

        assert result.success
        extra_work = [i for i in builder.statement.payment_items if i.code == "ADD"]
        assert extra_work[0].amount == 29_010
        assert builder.statement.total_payment_amount == 2_800_000 + 29_010

    def test_record_requires_employee(self):
        profile = ContractCompensationProfile(
            ContractClassification.INCLUSIVE_ANNUAL, hourly_wage=10_000
        )
        settlement = SettlementCalculator.settle_overtime(profile, "202502", [])

        with pytest.raises(ValueError):
            settlement.to_record()
