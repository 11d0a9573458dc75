"""Tests for contract compensation profiles."""

from datetime import date
from decimal import Decimal

from compensation_engine.calculators.types import (
    Allowance,
    ContractClassification,
    NontaxableAllowances,
    SupplementalRates,
    WageInputs,
)
from compensation_engine.calculators.wage_converter import (
    WageCalculatorSession,
    WageConverter,
)
from compensation_engine.services.contract_profile import (
    BONUS_AMOUNT_MESSAGE,
    NO_PREVIOUS_CONTRACT_MESSAGE,
    PART_TIME_RATE_MESSAGE,
    SAVE_FAILED_MESSAGE,
    ContractCompensationProfile,
    ContractProfileService,
    ProfileBonus,
)


def _breakdown(**overrides):
    values = dict(
        weekly_hours=Decimal("40"),
        hourly_wage=10_000,
        monthly_overtime_hours=Decimal("10"),
        monthly_night_hours=Decimal("4"),
        allowances=NontaxableAllowances(),
    )
    values.update(overrides)
    return WageConverter.convert(WageInputs(**values))


class TestBuildByClassification:
    """What each classification keeps."""

    def test_inclusive_keeps_premiums(self, inclusive_profile):
        assert inclusive_profile.monthly_basic_amount == 2_090_000
        assert inclusive_profile.monthly_overtime_amount == 150_000
        assert inclusive_profile.monthly_night_amount == 20_000
        assert inclusive_profile.monthly_holiday_amount == 40_000
        assert inclusive_profile.rates is None
        assert inclusive_profile.monthly_total_amount == 2_800_000
        assert inclusive_profile.annual_total_amount == 33_600_000
        assert inclusive_profile.taxable_amount == 2_300_000

    def test_non_inclusive_keeps_rates_not_premiums(self, profile_service):
        rates = SupplementalRates(10_000, 15_000, 15_000, 15_000)
        profile = profile_service.build(
            ContractClassification.NON_INCLUSIVE_ANNUAL,
            _breakdown(),
            NontaxableAllowances.defaults(),
            [ProfileBonus("BNS_001", "Holiday bonus", 300_000)],
            rates,
        )

        assert profile.monthly_basic_amount == 2_090_000
        assert profile.monthly_overtime_amount == 0
        assert profile.monthly_night_hours == Decimal("0")
        assert profile.rates == rates
        assert len(profile.bonuses) == 1
        assert profile.monthly_total_amount == 2_590_000

    def test_part_time_keeps_three_rates_only(self, profile_service):
        profile = profile_service.build(
            ContractClassification.PART_TIME,
            _breakdown(),
            NontaxableAllowances.defaults(),
            [ProfileBonus("BNS_001", "Holiday bonus", 300_000)],
            SupplementalRates(10_000, 15_000, 15_000, 15_000),
        )

        assert profile.rates == SupplementalRates(10_000, 15_000, 0, 15_000)
        assert profile.monthly_basic_amount == 0
        assert profile.hourly_wage == 0
        assert profile.bonuses == []
        assert profile.monthly_total_amount == 0

    def test_excluded_allowance_stored_as_zero(self, profile_service):
        allowances = NontaxableAllowances(
            meal=Allowance(200_000, False),
            car=Allowance(150_000, True),
        )
        profile = profile_service.build(
            ContractClassification.INCLUSIVE_ANNUAL, _breakdown(), allowances
        )

        assert profile.allowances.meal == Allowance(0, False)
        assert profile.allowances.car == Allowance(150_000, True)

    def test_bonus_resolved_by_name(self, profile_service):
        profile = profile_service.build(
            ContractClassification.INCLUSIVE_ANNUAL,
            _breakdown(),
            bonuses=[ProfileBonus("Holiday bonus", "", 300_000, "Chuseok")],
        )

        assert profile.bonuses == [
            ProfileBonus("BNS_001", "Holiday bonus", 300_000, "Chuseok")
        ]

    def test_unknown_bonus_code_passes_through(self, profile_service):
        bonus = ProfileBonus("BNS_999", "Retention", 50_000)
        profile = profile_service.build(
            ContractClassification.INCLUSIVE_ANNUAL, _breakdown(), bonuses=[bonus]
        )

        assert profile.bonuses == [bonus]


class TestApplyCalculatorResult:
    """Calculator results overwrite calculator-owned fields only."""

    def test_keeps_identity_dates_and_bonuses(self, profile_service, minimum_wages):
        profile = ContractCompensationProfile(
            classification=ContractClassification.NON_INCLUSIVE_ANNUAL,
            profile_id=5,
            contract_id=10,
            employee_id=7,
            contract_start_date=date(2025, 3, 1),
            attachment_file_id=44,
            bonuses=[ProfileBonus("BNS_001", "Holiday bonus", 300_000)],
        )
        session = WageCalculatorSession(
            minimum_wages, 2025, ContractClassification.NON_INCLUSIVE_ANNUAL
        )
        session.set_hourly_wage(12_000)

        updated = profile_service.apply_calculator_result(profile, session.apply())

        assert updated.profile_id == 5
        assert updated.contract_start_date == date(2025, 3, 1)
        assert updated.attachment_file_id == 44
        assert updated.bonuses == profile.bonuses
        assert updated.monthly_basic_amount == 209 * 12_000
        assert updated.rates == SupplementalRates(12_000, 18_000, 18_000, 18_000)


class TestCopyFromPrevious:
    """Load previous contract."""

    def test_missing_previous_is_neutral(self, profile_service, inclusive_profile):
        result = profile_service.copy_from_previous(inclusive_profile, None)

        assert result.success
        assert result.found is False
        assert result.message == NO_PREVIOUS_CONTRACT_MESSAGE
        assert result.profile is inclusive_profile

    def test_copies_compensation_not_dates(self, profile_service, inclusive_profile):
        inclusive_profile.contract_start_date = date(2024, 1, 1)
        inclusive_profile.attachment_file_id = 12
        inclusive_profile.bonuses = [ProfileBonus("BNS_001", "Holiday bonus", 300_000)]
        current = ContractCompensationProfile(
            classification=ContractClassification.INCLUSIVE_ANNUAL,
            contract_id=11,
            employee_id=7,
            contract_start_date=date(2025, 1, 1),
        )

        result = profile_service.copy_from_previous(current, inclusive_profile)
        loaded = result.profile

        assert result.found is True
        assert loaded.contract_id == 11
        assert loaded.contract_start_date == date(2025, 1, 1)
        assert loaded.attachment_file_id is None
        assert loaded.monthly_total_amount == 2_800_000
        assert loaded.bonuses == inclusive_profile.bonuses

        loaded.bonuses[0].amount = 1
        assert inclusive_profile.bonuses[0].amount == 300_000

    def test_most_recent_breaks_ties_by_id(self):
        older = ContractCompensationProfile(
            ContractClassification.PART_TIME, contract_id=1, contract_start_date=date(2024, 1, 1)
        )
        tied_low = ContractCompensationProfile(
            ContractClassification.PART_TIME, contract_id=2, contract_start_date=date(2025, 1, 1)
        )
        tied_high = ContractCompensationProfile(
            ContractClassification.PART_TIME, contract_id=3, contract_start_date=date(2025, 1, 1)
        )

        assert ContractProfileService.select_most_recent([tied_high, older, tied_low]) is tied_high
        assert ContractProfileService.select_most_recent([]) is None


class TestSave:
    """Validation and persistence."""

    def test_zero_bonus_blocks_save(self, profile_service, inclusive_profile, profile_repository):
        inclusive_profile.bonuses = [ProfileBonus("BNS_002", "Incentive", 0)]

        result = profile_service.save(inclusive_profile, profile_repository)

        assert not result.success
        assert result.errors == [BONUS_AMOUNT_MESSAGE]
        assert profile_repository.saved == []

    def test_same_bonus_category_twice_blocks_save(
        self, profile_service, inclusive_profile, profile_repository
    ):
        inclusive_profile.bonuses = [
            ProfileBonus("BNS_001", "Holiday bonus", 100_000),
            ProfileBonus("Holiday bonus", "", 200_000),
        ]

        result = profile_service.save(inclusive_profile, profile_repository)

        assert result.errors == ["Holiday bonus is already added."]
        assert profile_repository.saved == []

    def test_part_time_requires_weekday_rate(self, profile_service, profile_repository):
        profile = ContractCompensationProfile(
            ContractClassification.PART_TIME, rates=SupplementalRates(overtime=15_000)
        )

        result = profile_service.save(profile, profile_repository)

        assert result.errors == [PART_TIME_RATE_MESSAGE]
        assert profile_repository.saved == []

    def test_saves_valid_profile(self, profile_service, inclusive_profile, profile_repository):
        result = profile_service.save(inclusive_profile, profile_repository)

        assert result.success
        assert result.profile.profile_id == 1
        assert profile_repository.saved == [inclusive_profile]

    def test_persistence_failure_is_reported(
        self, profile_service, inclusive_profile, failing_profile_repository
    ):
        result = profile_service.save(inclusive_profile, failing_profile_repository)

        assert result.errors == [SAVE_FAILED_MESSAGE]
        assert inclusive_profile.profile_id is None
