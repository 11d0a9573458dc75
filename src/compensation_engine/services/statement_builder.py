"""Monthly payroll statement assembly.

The builder owns one draft statement for one editing session. Every mutation
ends with ``recompute_totals()``, so the statement's totals are always
derived from its line items and never edited directly.

Totals invariants:
    total_payment_amount   = sum(payment items) + sum(bonuses)
    total_deduction_amount = sum(deduction items)
    net_pay                = total_payment_amount - total_deduction_amount
"""

from __future__ import annotations

import calendar
import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Callable

from compensation_engine.calculators.deduction_calculator import StatutoryDeductionCalculator
from compensation_engine.calculators.money import parse_amount
from compensation_engine.calculators.types import EnrollmentFlags, SalaryTiming
from compensation_engine.codes import (
    NONTAXABLE_PAYMENT_KINDS,
    PAYMENT_ITEM_LABELS,
    PaymentItemKind,
    canonical_deduction_code,
    canonical_payment_code,
    deduction_kind,
    payment_kind,
)
from compensation_engine.config import BonusCategory, EngineConfig
from compensation_engine.services.contract_profile import (
    BONUS_AMOUNT_MESSAGE,
    ContractCompensationProfile,
)
from compensation_engine.services.repositories import PersistenceError, StatementRepository
from compensation_engine.services.state_machine import StatementStateMachine, StatementStatus

logger = logging.getLogger(__name__)

EMPLOYEE_REQUIRED_MESSAGE = "Select an employee."
PAYROLL_MONTH_REQUIRED_MESSAGE = "Select a payroll month."
PAYMENT_DATE_REQUIRED_MESSAGE = "Enter a payment date."
NO_PREVIOUS_STATEMENT_MESSAGE = "No previous payroll statement found."
NO_OVERTIME_RECORD_MESSAGE = "No overtime allowance statement found for this period."
NO_PROFILE_MESSAGE = "No contract compensation profile is attached."
FILE_MODE_MESSAGE = "Line items cannot be edited while a replacement file is attached."
DISCARDED_MESSAGE = "This draft was discarded."
SAVE_FAILED_MESSAGE = "Saving the payroll statement failed. Please try again."
DUPLICATE_LINE_MESSAGE = "Line item '{code}' appears more than once."


class LineKind(str, Enum):
    """Which side of the statement a line sits on."""

    PAYMENT = "PAYMENT"
    DEDUCTION = "DEDUCTION"


@dataclass
class PayrollLineItem:
    """One payment, bonus or deduction line on a statement."""

    code: str
    amount: int = 0
    order: int = 1
    remark: str = ""
    kind: LineKind = LineKind.PAYMENT


@dataclass
class PayrollStatement:
    """A monthly payroll statement for one employee."""

    payroll_year_month: str
    employee_id: int | None = None
    statement_id: int | None = None
    payment_date: date | None = None
    settlement_start_date: date | None = None
    settlement_end_date: date | None = None
    payment_items: list[PayrollLineItem] = field(default_factory=list)
    deduction_items: list[PayrollLineItem] = field(default_factory=list)
    bonuses: list[PayrollLineItem] = field(default_factory=list)
    total_payment_amount: int = 0
    total_deduction_amount: int = 0
    net_pay: int = 0
    status: StatementStatus = StatementStatus.DRAFT
    attachment_file_id: int | None = None
    remarks: str = ""

    @property
    def file_mode(self) -> bool:
        """True when a replacement file stands in for the line items."""
        return self.attachment_file_id is not None


@dataclass(frozen=True)
class OvertimeAllowanceRecord:
    """Total of an employee's overtime allowance statement for a period."""

    employee_id: int
    payroll_year_month: str
    total_amount: int


@dataclass
class BuilderResult:
    """Outcome of a builder operation."""

    statement: PayrollStatement | None
    errors: list[str] = field(default_factory=list)
    message: str | None = None
    found: bool = True

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


def parse_year_month(year_month: str) -> tuple[int, int]:
    """Split a ``YYYYMM`` string into (year, month).

    Raises:
        ValueError: If the value is not a valid ``YYYYMM`` period
    """
    text = str(year_month).strip()
    if len(text) != 6 or not text.isdigit():
        raise ValueError(f"Invalid payroll month '{year_month}', expected YYYYMM")
    year, month = int(text[:4]), int(text[4:])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid payroll month '{year_month}', month out of range")
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}{month:02d}"


def previous_year_month(year_month: str) -> str:
    year, month = parse_year_month(year_month)
    if month == 1:
        return format_year_month(year - 1, 12)
    return format_year_month(year, month - 1)


def settlement_period(
    payroll_year_month: str, salary_timing: SalaryTiming = SalaryTiming.CURRENT
) -> tuple[date, date]:
    """First and last day of the month a statement's figures cover.

    Pay settled on the NEXT timing covers the month before the payroll month.
    """
    year_month = payroll_year_month
    if salary_timing is SalaryTiming.NEXT:
        year_month = previous_year_month(payroll_year_month)
    year, month = parse_year_month(year_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def payroll_month_options(today: date) -> list[str]:
    """Payroll months offered for a new statement: this month and the last."""
    current = format_year_month(today.year, today.month)
    return [current, previous_year_month(current)]


def select_most_recent_statement(
    statements: list[PayrollStatement],
) -> PayrollStatement | None:
    """Latest payroll month wins; equal months fall back to the highest id."""
    if not statements:
        return None
    return max(
        statements,
        key=lambda s: (s.payroll_year_month, s.statement_id or 0),
    )


def _profile_amounts(profile: ContractCompensationProfile) -> dict[PaymentItemKind, int]:
    """Payment amounts a contract profile contributes, by line-item kind."""
    return {
        PaymentItemKind.BASE_SALARY: profile.monthly_basic_amount,
        PaymentItemKind.MEAL: profile.allowances.meal.effective_amount,
        PaymentItemKind.VEHICLE: profile.allowances.car.effective_amount,
        PaymentItemKind.CHILDCARE: profile.allowances.childcare.effective_amount,
        PaymentItemKind.OVERTIME: profile.monthly_overtime_amount,
        PaymentItemKind.NIGHT: profile.monthly_night_amount,
        PaymentItemKind.HOLIDAY: profile.monthly_holiday_amount,
        PaymentItemKind.EXTRA_HOLIDAY: profile.monthly_extra_holiday_amount,
    }


def _find(items: list[PayrollLineItem], code: str) -> PayrollLineItem | None:
    for item in items:
        if item.code == code:
            return item
    return None


def _reindex(items: list[PayrollLineItem]) -> None:
    for index, item in enumerate(items, start=1):
        item.order = index


def _canonical_lines(
    items: list[PayrollLineItem], canonical: Callable[[str], str], kind: LineKind
) -> list[PayrollLineItem]:
    """Copy lines in display order with canonical codes, one line per code.

    A stored statement may carry both the short and the legacy code for one
    item. The first line is kept; a later duplicate only fills in its amount
    when the kept amount is 0.
    """
    lines: dict[str, PayrollLineItem] = {}
    for item in sorted(items, key=lambda i: i.order):
        code = canonical(item.code)
        kept = lines.get(code)
        if kept is None:
            lines[code] = PayrollLineItem(code, item.amount, 0, item.remark, kind)
            continue
        logger.warning("Merged duplicate line item %s into %s", item.code, code)
        if not kept.amount:
            kept.amount = item.amount
    merged = list(lines.values())
    _reindex(merged)
    return merged


def _duplicate_codes(items: list[PayrollLineItem]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for item in items:
        if item.code in seen and item.code not in duplicates:
            duplicates.append(item.code)
        seen.add(item.code)
    return duplicates


class PayrollStatementBuilder:
    """Edits one payroll statement and keeps its totals consistent.

    When a contract profile is attached, statutory deduction lines are
    recomputed from the statement's taxable pay on every change, except
    for lines the user has overwritten by hand.
    """

    def __init__(
        self,
        config: EngineConfig,
        statement: PayrollStatement,
        profile: ContractCompensationProfile | None = None,
        flags: EnrollmentFlags | None = None,
        salary_timing: SalaryTiming = SalaryTiming.CURRENT,
        calculator: StatutoryDeductionCalculator | None = None,
    ):
        self.config = config
        self.statement = statement
        self.profile = profile
        self.flags = flags or EnrollmentFlags()
        self.salary_timing = salary_timing
        self.calculator = calculator or StatutoryDeductionCalculator(
            config.resolved_rate_table()
        )
        self._overridden: set[str] = set()
        self._discarded = False

    @classmethod
    def initialize_draft(
        cls,
        config: EngineConfig,
        profile: ContractCompensationProfile | None,
        flags: EnrollmentFlags | None,
        payroll_year_month: str,
        employee_id: int | None = None,
        salary_timing: SalaryTiming = SalaryTiming.CURRENT,
        payment_date: date | None = None,
        calculator: StatutoryDeductionCalculator | None = None,
    ) -> PayrollStatementBuilder:
        """Start a new statement with zero-filled catalog line items."""
        start, end = settlement_period(payroll_year_month, salary_timing)
        catalog = config.catalog

        if employee_id is None and profile is not None:
            employee_id = profile.employee_id

        statement = PayrollStatement(
            payroll_year_month=payroll_year_month,
            employee_id=employee_id,
            payment_date=payment_date,
            settlement_start_date=start,
            settlement_end_date=end,
            payment_items=[
                PayrollLineItem(item.code, 0, index, item.name, LineKind.PAYMENT)
                for index, item in enumerate(catalog.payment_items, start=1)
            ],
            deduction_items=[
                PayrollLineItem(item.code, 0, index, item.name, LineKind.DEDUCTION)
                for index, item in enumerate(catalog.deduction_items, start=1)
            ],
        )
        builder = cls(config, statement, profile, flags, salary_timing, calculator)
        builder.recompute_totals()
        return builder

    @classmethod
    def load(
        cls,
        config: EngineConfig,
        statement: PayrollStatement,
        profile: ContractCompensationProfile | None = None,
        flags: EnrollmentFlags | None = None,
        salary_timing: SalaryTiming = SalaryTiming.CURRENT,
        calculator: StatutoryDeductionCalculator | None = None,
    ) -> PayrollStatementBuilder:
        """Open a saved statement for editing.

        The builder works on a copy; the caller's statement is left as is
        until ``save`` hands the edited copy to the repository.
        """
        draft = copy.deepcopy(statement)
        draft.payment_items = _canonical_lines(
            draft.payment_items, canonical_payment_code, LineKind.PAYMENT
        )
        draft.bonuses = _canonical_lines(
            draft.bonuses, canonical_payment_code, LineKind.PAYMENT
        )
        draft.deduction_items = _canonical_lines(
            draft.deduction_items, canonical_deduction_code, LineKind.DEDUCTION
        )
        builder = cls(config, draft, profile, flags, salary_timing, calculator)
        builder.recompute_totals()
        return builder

    # -- queries ---------------------------------------------------------

    def taxable_amount(self) -> int:
        """Payment items less nontaxable allowances. Bonuses are not taxed here."""
        return sum(
            item.amount
            for item in self.statement.payment_items
            if payment_kind(item.code) not in NONTAXABLE_PAYMENT_KINDS
        )

    def is_overridden(self, code: str) -> bool:
        return canonical_deduction_code(code) in self._overridden

    # -- mutations -------------------------------------------------------

    def apply_contract_profile(
        self, profile: ContractCompensationProfile | None = None
    ) -> BuilderResult:
        """Fill payment lines and bonuses from the contract profile.

        Mapped payment lines are overwritten. A nonzero profile amount with
        no matching line is appended. Bonuses are replaced wholesale.
        """
        if profile is not None:
            self.profile = profile
        if self.profile is None:
            return BuilderResult(self.statement, message=NO_PROFILE_MESSAGE, found=False)
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])

        items = self.statement.payment_items
        for kind, amount in _profile_amounts(self.profile).items():
            item = _find(items, kind.value)
            if item is not None:
                item.amount = amount
            elif amount:
                items.append(
                    PayrollLineItem(
                        kind.value, amount, len(items) + 1, PAYMENT_ITEM_LABELS[kind]
                    )
                )

        bonuses: dict[str, PayrollLineItem] = {}
        for bonus in self.profile.bonuses:
            category = self.config.catalog.bonus_category(bonus.code)
            code = category.code if category is not None else bonus.code
            if code in bonuses:
                logger.warning(
                    "Contract %s lists bonus %s more than once",
                    self.profile.contract_id,
                    code,
                )
                continue
            bonuses[code] = PayrollLineItem(code, bonus.amount, 0, bonus.memo or bonus.name)
        self.statement.bonuses = list(bonuses.values())
        _reindex(self.statement.bonuses)
        self._overridden.clear()

        logger.debug(
            "Applied contract %s to statement for %s",
            self.profile.contract_id,
            self.statement.payroll_year_month,
        )
        self.recompute_totals()
        return BuilderResult(self.statement)

    def recompute_totals(self) -> PayrollStatement:
        """Re-derive statutory deductions and totals from the line items.

        Idempotent. Skipped while a replacement file is attached.
        """
        statement = self.statement
        if statement.file_mode:
            return statement

        if self.profile is not None:
            result = self.calculator.calculate(self.taxable_amount(), self.flags)
            for kind, amount in result.by_kind().items():
                if kind.value in self._overridden:
                    continue
                item = _find(statement.deduction_items, kind.value)
                if item is not None:
                    item.amount = amount

        statement.total_payment_amount = sum(
            item.amount for item in statement.payment_items
        ) + sum(item.amount for item in statement.bonuses)
        statement.total_deduction_amount = sum(
            item.amount for item in statement.deduction_items
        )
        statement.net_pay = statement.total_payment_amount - statement.total_deduction_amount

        logger.debug(
            "Recomputed statement %s: payment=%s deduction=%s net=%s",
            statement.payroll_year_month,
            statement.total_payment_amount,
            statement.total_deduction_amount,
            statement.net_pay,
        )
        return statement

    def edit_payment_item(self, code: str, amount: Any) -> BuilderResult:
        """Overwrite a payment line. Invalid or negative input becomes 0."""
        return self._edit_line(
            self.statement.payment_items, canonical_payment_code(code), amount
        )

    def edit_bonus_line(self, code: str, amount: Any) -> BuilderResult:
        """Overwrite a bonus line's amount."""
        return self._edit_line(self.statement.bonuses, code.strip(), amount)

    def edit_deduction_item(self, code: str, amount: Any) -> BuilderResult:
        """Overwrite a deduction line.

        A statutory line edited by hand is no longer recomputed from the
        contract profile until the profile is applied again.
        """
        code = canonical_deduction_code(code)
        statutory = deduction_kind(code) is not None and code not in self._overridden
        if statutory:
            self._overridden.add(code)
        result = self._edit_line(self.statement.deduction_items, code, amount)
        if statutory and not result.success:
            self._overridden.discard(code)
        return result

    def _edit_line(
        self, items: list[PayrollLineItem], code: str, amount: Any
    ) -> BuilderResult:
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])
        item = _find(items, code)
        if item is None:
            return BuilderResult(self.statement, errors=[f"Unknown line item '{code}'."])
        item.amount = parse_amount(amount)
        self.recompute_totals()
        return BuilderResult(self.statement)

    def add_bonus_line(self, category: BonusCategory | str) -> BuilderResult:
        """Append a bonus line with the category's default amount."""
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])
        if isinstance(category, str):
            resolved = self.config.catalog.bonus_category(category)
            if resolved is None:
                return BuilderResult(
                    self.statement, errors=[f"Unknown bonus category '{category}'."]
                )
            category = resolved

        existing = {item.code for item in self.statement.payment_items + self.statement.bonuses}
        if category.code in existing:
            return BuilderResult(self.statement, errors=[f"{category.name} is already added."])

        bonuses = self.statement.bonuses
        bonuses.append(
            PayrollLineItem(
                category.code,
                category.default_amount,
                len(bonuses) + 1,
                category.default_remark or category.name,
            )
        )
        self.recompute_totals()
        return BuilderResult(self.statement)

    def remove_bonus_line(self, code: str) -> BuilderResult:
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])
        item = _find(self.statement.bonuses, code.strip())
        if item is None:
            return BuilderResult(self.statement, errors=[f"Unknown line item '{code}'."])
        self.statement.bonuses.remove(item)
        _reindex(self.statement.bonuses)
        self.recompute_totals()
        return BuilderResult(self.statement)

    def add_deduction_line(self, code: str) -> BuilderResult:
        """Append a configured deduction line with a zero amount."""
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])
        catalog_item = self.config.catalog.deduction_item(code)
        if catalog_item is None:
            return BuilderResult(
                self.statement, errors=[f"Unknown deduction item '{code}'."]
            )

        items = self.statement.deduction_items
        if _find(items, catalog_item.code) is not None:
            return BuilderResult(
                self.statement, errors=[f"{catalog_item.name} is already added."]
            )

        items.append(
            PayrollLineItem(
                catalog_item.code, 0, len(items) + 1, catalog_item.name, LineKind.DEDUCTION
            )
        )
        self.recompute_totals()
        return BuilderResult(self.statement)

    def load_previous_statement(self, previous: PayrollStatement | None) -> BuilderResult:
        """Replace payment and deduction lines with a previous statement's.

        The loaded amounts are kept as they were, so the contract profile is
        detached.
        """
        if previous is None:
            return BuilderResult(
                self.statement, message=NO_PREVIOUS_STATEMENT_MESSAGE, found=False
            )
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])

        self.statement.payment_items = _canonical_lines(
            previous.payment_items, canonical_payment_code, LineKind.PAYMENT
        )
        self.statement.deduction_items = _canonical_lines(
            previous.deduction_items, canonical_deduction_code, LineKind.DEDUCTION
        )
        self.profile = None
        self._overridden.clear()

        logger.info(
            "Loaded line items from statement %s (%s) into %s",
            previous.statement_id,
            previous.payroll_year_month,
            self.statement.payroll_year_month,
        )
        self.recompute_totals()
        return BuilderResult(self.statement)

    def apply_overtime_allowance(
        self, record: OvertimeAllowanceRecord | None
    ) -> BuilderResult:
        """Copy the period's overtime allowance statement total into the extra-work line."""
        if record is None or record.payroll_year_month != self.statement.payroll_year_month:
            return BuilderResult(
                self.statement, message=NO_OVERTIME_RECORD_MESSAGE, found=False
            )
        if self.statement.file_mode:
            return BuilderResult(self.statement, errors=[FILE_MODE_MESSAGE])

        code = PaymentItemKind.EXTRA_WORK.value
        items = self.statement.payment_items
        item = _find(items, code)
        if item is None:
            item = PayrollLineItem(
                code, 0, len(items) + 1, PAYMENT_ITEM_LABELS[PaymentItemKind.EXTRA_WORK]
            )
            items.append(item)
        item.amount = parse_amount(record.total_amount)
        self.recompute_totals()
        return BuilderResult(self.statement)

    def change_payroll_month(self, payroll_year_month: str) -> BuilderResult:
        """Move the statement to another payroll month and its settlement period."""
        start, end = settlement_period(payroll_year_month, self.salary_timing)
        self.statement.payroll_year_month = payroll_year_month
        self.statement.settlement_start_date = start
        self.statement.settlement_end_date = end
        self.recompute_totals()
        return BuilderResult(self.statement)

    def attach_replacement_file(self, file_id: int) -> BuilderResult:
        """Switch to file mode: the attached file replaces the computed lines."""
        if file_id <= 0:
            raise ValueError("file_id must be positive")
        self.statement.attachment_file_id = file_id
        return BuilderResult(self.statement)

    def detach_replacement_file(self) -> BuilderResult:
        self.statement.attachment_file_id = None
        self.recompute_totals()
        return BuilderResult(self.statement)

    # -- lifecycle -------------------------------------------------------

    def validate_for_save(self) -> list[str]:
        """Return the reasons the statement cannot be saved (empty if valid)."""
        statement = self.statement
        errors: list[str] = []

        if statement.employee_id is None:
            errors.append(EMPLOYEE_REQUIRED_MESSAGE)
        if not statement.payroll_year_month:
            errors.append(PAYROLL_MONTH_REQUIRED_MESSAGE)
        if statement.payment_date is None:
            errors.append(PAYMENT_DATE_REQUIRED_MESSAGE)

        if statement.file_mode:
            return errors

        if any(b.amount <= 0 for b in statement.bonuses):
            errors.append(BONUS_AMOUNT_MESSAGE)
        for code in _duplicate_codes(statement.payment_items + statement.bonuses):
            errors.append(DUPLICATE_LINE_MESSAGE.format(code=code))
        for code in _duplicate_codes(statement.deduction_items):
            errors.append(DUPLICATE_LINE_MESSAGE.format(code=code))

        return errors

    def save(self, repository: StatementRepository) -> BuilderResult:
        """Validate, then hand the statement to the repository.

        Nothing is persisted if validation fails. A persistence failure
        leaves the draft unchanged and is not retried. In file mode the
        repository receives the statement without line items or totals; the
        builder keeps its lines so that detaching the file restores them.
        """
        if self._discarded:
            return BuilderResult(None, errors=[DISCARDED_MESSAGE])

        errors = self.validate_for_save()
        if errors:
            return BuilderResult(self.statement, errors=errors)

        statement = self.statement
        StatementStateMachine.validate_transition(statement.status, StatementStatus.SAVED)
        self.recompute_totals()

        try:
            statement_id = repository.save_statement(self._persisted_form())
        except PersistenceError:
            logger.exception(
                "Failed to save statement for employee %s (%s)",
                statement.employee_id,
                statement.payroll_year_month,
            )
            return BuilderResult(statement, errors=[SAVE_FAILED_MESSAGE])

        statement.statement_id = statement_id
        statement.status = StatementStatus.SAVED
        logger.info(
            "Saved statement %s for employee %s (%s)",
            statement_id,
            statement.employee_id,
            statement.payroll_year_month,
        )
        return BuilderResult(statement, message="Saved.")

    def _persisted_form(self) -> PayrollStatement:
        statement = self.statement
        if not statement.file_mode:
            return statement
        return replace(
            statement,
            payment_items=[],
            deduction_items=[],
            bonuses=[],
            total_payment_amount=0,
            total_deduction_amount=0,
            net_pay=0,
        )

    def mark_emailed(self) -> BuilderResult:
        """Record that the saved statement was emailed to the employee.

        Raises:
            InvalidTransitionError: If the statement was never saved
        """
        if self._discarded:
            return BuilderResult(None, errors=[DISCARDED_MESSAGE])
        StatementStateMachine.validate_transition(
            self.statement.status, StatementStatus.EMAILED
        )
        self.statement.status = StatementStatus.EMAILED
        return BuilderResult(self.statement)

    def discard(self) -> None:
        """Drop the draft. Nothing is persisted."""
        self._discarded = True
        logger.debug("Discarded draft for %s", self.statement.payroll_year_month)
