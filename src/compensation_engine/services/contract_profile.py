"""Per-contract compensation profile.

A profile is the canonical record of what an employment contract pays. It is
built from a calculator breakdown plus allowances and bonuses, and what it
keeps depends on the contract's classification:

- INCLUSIVE_ANNUAL: basic amount, the four premium amounts, allowances,
  bonuses. No supplemental rates.
- NON_INCLUSIVE_ANNUAL: basic amount, allowances, bonuses and the four
  supplemental hourly rates. Premium hours are settled per period from
  attendance, so premium amounts are not kept.
- PART_TIME: weekday/overtime/holiday supplemental rates only.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from compensation_engine.calculators.types import (
    CompensationBreakdown,
    ContractClassification,
    NontaxableAllowances,
    SupplementalRates,
)
from compensation_engine.calculators.wage_converter import CalculatorResult
from compensation_engine.config import EngineConfig
from compensation_engine.services.repositories import PersistenceError, ProfileRepository

logger = logging.getLogger(__name__)

BONUS_AMOUNT_MESSAGE = (
    "Bonus amount must be greater than 0. Remove the bonus or enter an amount."
)
PART_TIME_RATE_MESSAGE = "Part-time contracts require a weekday hourly rate greater than 0."
NO_PREVIOUS_CONTRACT_MESSAGE = "No previous contract found."
SAVE_FAILED_MESSAGE = "Saving the contract failed. Please try again."


@dataclass
class ProfileBonus:
    """A recurring bonus agreed in the contract."""

    code: str
    name: str
    amount: int
    memo: str = ""


@dataclass
class ContractCompensationProfile:
    """Compensation terms of one employment contract."""

    classification: ContractClassification
    profile_id: int | None = None
    contract_id: int | None = None
    employee_id: int | None = None

    # Not carried over by "load previous contract"
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    attachment_file_id: int | None = None

    hourly_wage: int = 0
    weekly_hours: Decimal = Decimal("0")
    monthly_basic_hours: int = 0
    monthly_basic_amount: int = 0
    monthly_overtime_hours: Decimal = Decimal("0")
    monthly_overtime_amount: int = 0
    monthly_night_hours: Decimal = Decimal("0")
    monthly_night_amount: int = 0
    monthly_holiday_hours: Decimal = Decimal("0")
    monthly_holiday_amount: int = 0
    monthly_extra_holiday_hours: Decimal = Decimal("0")
    monthly_extra_holiday_amount: int = 0
    allowances: NontaxableAllowances = field(default_factory=NontaxableAllowances)
    rates: SupplementalRates | None = None
    bonuses: list[ProfileBonus] = field(default_factory=list)

    monthly_total_amount: int = 0
    annual_total_amount: int = 0

    @property
    def taxable_amount(self) -> int:
        return max(0, self.monthly_total_amount - self.allowances.included_total)


@dataclass
class ProfileResult:
    """Outcome of a profile operation."""

    profile: ContractCompensationProfile | None
    errors: list[str] = field(default_factory=list)
    message: str | None = None
    found: bool = True

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


# Fields "load previous contract" copies
_COMPENSATION_FIELDS = (
    "hourly_wage",
    "weekly_hours",
    "monthly_basic_hours",
    "monthly_basic_amount",
    "monthly_overtime_hours",
    "monthly_overtime_amount",
    "monthly_night_hours",
    "monthly_night_amount",
    "monthly_holiday_hours",
    "monthly_holiday_amount",
    "monthly_extra_holiday_hours",
    "monthly_extra_holiday_amount",
    "allowances",
    "rates",
    "bonuses",
)


class ContractProfileService:
    """Builds, validates and saves contract compensation profiles."""

    def __init__(self, config: EngineConfig):
        self.config = config

    def build(
        self,
        classification: ContractClassification,
        breakdown: CompensationBreakdown | None,
        allowances: NontaxableAllowances | None = None,
        bonuses: list[ProfileBonus] | None = None,
        rates: SupplementalRates | None = None,
        *,
        contract_id: int | None = None,
        employee_id: int | None = None,
    ) -> ContractCompensationProfile:
        """Build a profile for a classification from a calculator breakdown."""
        profile = ContractCompensationProfile(
            classification=classification,
            contract_id=contract_id,
            employee_id=employee_id,
        )
        if breakdown is not None:
            profile.hourly_wage = breakdown.hourly_wage
            profile.weekly_hours = breakdown.weekly_hours
            profile.monthly_basic_hours = breakdown.monthly_basic_hours
            profile.monthly_basic_amount = breakdown.monthly_basic_amount
            profile.monthly_overtime_hours = breakdown.monthly_overtime_hours
            profile.monthly_overtime_amount = breakdown.monthly_overtime_amount
            profile.monthly_night_hours = breakdown.monthly_night_hours
            profile.monthly_night_amount = breakdown.monthly_night_amount
            profile.monthly_holiday_hours = breakdown.monthly_holiday_hours
            profile.monthly_holiday_amount = breakdown.monthly_holiday_amount
            profile.monthly_extra_holiday_hours = breakdown.monthly_extra_holiday_hours
            profile.monthly_extra_holiday_amount = breakdown.monthly_extra_holiday_amount
        if allowances is not None:
            profile.allowances = allowances
        profile.rates = rates
        profile.bonuses = [self.resolve_bonus(b) for b in bonuses or []]
        return self.normalize(profile)

    def apply_calculator_result(
        self, profile: ContractCompensationProfile, result: CalculatorResult
    ) -> ContractCompensationProfile:
        """Overwrite the calculator-owned fields, keeping identity and bonuses."""
        rebuilt = self.build(
            profile.classification,
            result.breakdown,
            result.inputs.allowances,
            profile.bonuses,
            result.rates,
            contract_id=profile.contract_id,
            employee_id=profile.employee_id,
        )
        return replace(
            rebuilt,
            profile_id=profile.profile_id,
            contract_start_date=profile.contract_start_date,
            contract_end_date=profile.contract_end_date,
            attachment_file_id=profile.attachment_file_id,
        )

    def normalize(self, profile: ContractCompensationProfile) -> ContractCompensationProfile:
        """Drop fields the classification does not keep and derive totals.

        Excluded allowances are stored as 0. Monthly total is the sum of the
        kept amounts, annual total is twelve months.
        """
        profile.allowances = profile.allowances.stored()
        classification = profile.classification

        if classification is not ContractClassification.INCLUSIVE_ANNUAL:
            for name in (
                "monthly_overtime_hours",
                "monthly_night_hours",
                "monthly_holiday_hours",
                "monthly_extra_holiday_hours",
            ):
                setattr(profile, name, Decimal("0"))
            profile.monthly_overtime_amount = 0
            profile.monthly_night_amount = 0
            profile.monthly_holiday_amount = 0
            profile.monthly_extra_holiday_amount = 0

        if classification is ContractClassification.INCLUSIVE_ANNUAL:
            profile.rates = None
        elif classification is ContractClassification.NON_INCLUSIVE_ANNUAL:
            profile.rates = profile.rates or SupplementalRates()
        else:
            rates = profile.rates or SupplementalRates()
            profile.rates = SupplementalRates(
                weekday=rates.weekday, overtime=rates.overtime, holiday=rates.holiday
            )
            profile.hourly_wage = 0
            profile.weekly_hours = Decimal("0")
            profile.monthly_basic_hours = 0
            profile.monthly_basic_amount = 0
            profile.allowances = NontaxableAllowances()
            profile.bonuses = []

        profile.monthly_total_amount = (
            profile.monthly_basic_amount
            + profile.monthly_overtime_amount
            + profile.monthly_night_amount
            + profile.monthly_holiday_amount
            + profile.monthly_extra_holiday_amount
            + profile.allowances.included_total
        )
        profile.annual_total_amount = profile.monthly_total_amount * 12
        return profile

    def resolve_bonus(self, bonus: ProfileBonus) -> ProfileBonus:
        """Split a bonus into catalog code and name.

        Older records carry the category name in place of the code.
        """
        category = self.config.catalog.bonus_category(bonus.code)
        if category is None:
            return replace(bonus)
        return replace(bonus, code=category.code, name=category.name)

    def copy_from_previous(
        self,
        current: ContractCompensationProfile,
        previous: ContractCompensationProfile | None,
    ) -> ProfileResult:
        """Fill the current profile from the employee's previous contract.

        Contract dates and attachments stay those of the current contract.
        A missing previous contract leaves the current profile untouched.
        """
        if previous is None:
            return ProfileResult(
                profile=current, message=NO_PREVIOUS_CONTRACT_MESSAGE, found=False
            )

        loaded = replace(current)
        for name in _COMPENSATION_FIELDS:
            setattr(loaded, name, copy.deepcopy(getattr(previous, name)))
        loaded = self.normalize(loaded)

        logger.info(
            "Loaded compensation from contract %s into contract %s",
            previous.contract_id,
            current.contract_id,
        )
        return ProfileResult(profile=loaded)

    @staticmethod
    def select_most_recent(
        profiles: list[ContractCompensationProfile],
    ) -> ContractCompensationProfile | None:
        """Most recent contract: latest start date, then highest contract id."""
        if not profiles:
            return None
        return max(
            profiles,
            key=lambda p: (p.contract_start_date or date.min, p.contract_id or 0),
        )

    def validate(self, profile: ContractCompensationProfile) -> list[str]:
        """Return the reasons the profile cannot be saved (empty if valid)."""
        errors: list[str] = []

        if profile.classification is ContractClassification.PART_TIME:
            if profile.rates is None or profile.rates.weekday <= 0:
                errors.append(PART_TIME_RATE_MESSAGE)

        if any(bonus.amount <= 0 for bonus in profile.bonuses):
            errors.append(BONUS_AMOUNT_MESSAGE)

        seen: set[str] = set()
        for bonus in profile.bonuses:
            resolved = self.resolve_bonus(bonus)
            if resolved.code in seen:
                errors.append(f"{resolved.name or resolved.code} is already added.")
            seen.add(resolved.code)

        return errors

    def save(
        self, profile: ContractCompensationProfile, repository: ProfileRepository
    ) -> ProfileResult:
        """Validate, then persist. Nothing is written if validation fails."""
        errors = self.validate(profile)
        if errors:
            return ProfileResult(profile=profile, errors=errors)

        profile = self.normalize(profile)
        try:
            profile.profile_id = repository.save_profile(profile)
        except PersistenceError:
            logger.exception("Failed to save profile for contract %s", profile.contract_id)
            return ProfileResult(profile=profile, errors=[SAVE_FAILED_MESSAGE])

        logger.info(
            "Saved %s profile %s for contract %s",
            profile.classification.value,
            profile.profile_id,
            profile.contract_id,
        )
        return ProfileResult(profile=profile, message="Saved.")
