"""Canonical payroll line-item codes.

Statements arrive with two naming schemes for the same concept: short codes
(``BASIC``) and legacy hierarchical common codes (``DPTBS_001``). Both are
mapped here, at the I/O boundary, to one canonical kind. Business logic only
ever compares canonical codes.

Codes outside the tables (organization-specific bonus categories, additional
deduction items) pass through unchanged.
"""

from __future__ import annotations

from enum import Enum


class PaymentItemKind(str, Enum):
    """Payment line-item kinds. Values are the canonical codes."""

    BASE_SALARY = "BASIC"
    BONUS = "BONUS"
    MEAL = "MEAL"
    VEHICLE = "VEHICLE"
    CHILDCARE = "CHILD_CARE"
    OVERTIME = "OVERTIME"
    NIGHT = "NIGHT"
    HOLIDAY = "MONTHLY_HOLIDAY"
    ANNUAL_LEAVE = "ANNUAL_LEAVE"
    EXTRA_WORK = "ADD"
    EXTRA_HOLIDAY = "EXTRA_HOLIDAY"


class DeductionItemKind(str, Enum):
    """Statutory deduction line-item kinds. Values are the canonical codes."""

    NATIONAL_PENSION = "NATIONAL_PENSION"
    HEALTH_INSURANCE = "HEALTH_INSURANCE"
    EMPLOYMENT_INSURANCE = "EMPLOYMENT_INSURANCE"
    LONG_TERM_CARE = "LONG_TERM_CARE_INSURANCE"
    INCOME_TAX = "INCOME_TAX"
    LOCAL_INCOME_TAX = "LOCAL_INCOME_TAX"


# canonical kind -> legacy common code
PAYMENT_LEGACY_CODES: dict[PaymentItemKind, str] = {
    PaymentItemKind.BASE_SALARY: "DPTBS_001",
    PaymentItemKind.MEAL: "DPTBS_002",
    PaymentItemKind.VEHICLE: "DPTBS_003",
    PaymentItemKind.CHILDCARE: "DPTBS_004",
    PaymentItemKind.OVERTIME: "DPTBS_005",
    PaymentItemKind.NIGHT: "DPTBS_006",
    PaymentItemKind.HOLIDAY: "DPTBS_007",
    PaymentItemKind.EXTRA_WORK: "DPTBS_008",
}

DEDUCTION_LEGACY_CODES: dict[DeductionItemKind, str] = {
    DeductionItemKind.NATIONAL_PENSION: "DDTBS_001",
    DeductionItemKind.HEALTH_INSURANCE: "DDTBS_002",
    DeductionItemKind.EMPLOYMENT_INSURANCE: "DDTBS_003",
    DeductionItemKind.LONG_TERM_CARE: "DDTBS_004",
    DeductionItemKind.INCOME_TAX: "DDTBS_005",
    DeductionItemKind.LOCAL_INCOME_TAX: "DDTBS_006",
}

_PAYMENT_BY_LEGACY = {legacy: kind for kind, legacy in PAYMENT_LEGACY_CODES.items()}
_DEDUCTION_BY_LEGACY = {legacy: kind for kind, legacy in DEDUCTION_LEGACY_CODES.items()}

PAYMENT_ITEM_LABELS: dict[PaymentItemKind, str] = {
    PaymentItemKind.BASE_SALARY: "Base salary",
    PaymentItemKind.BONUS: "Bonus",
    PaymentItemKind.MEAL: "Meal allowance",
    PaymentItemKind.VEHICLE: "Car allowance",
    PaymentItemKind.CHILDCARE: "Childcare allowance",
    PaymentItemKind.OVERTIME: "Overtime allowance",
    PaymentItemKind.NIGHT: "Night work allowance",
    PaymentItemKind.HOLIDAY: "Holiday work allowance",
    PaymentItemKind.ANNUAL_LEAVE: "Annual leave allowance",
    PaymentItemKind.EXTRA_WORK: "Extra work allowance",
    PaymentItemKind.EXTRA_HOLIDAY: "Extra holiday work allowance",
}

DEDUCTION_ITEM_LABELS: dict[DeductionItemKind, str] = {
    DeductionItemKind.NATIONAL_PENSION: "National pension",
    DeductionItemKind.HEALTH_INSURANCE: "Health insurance",
    DeductionItemKind.EMPLOYMENT_INSURANCE: "Employment insurance",
    DeductionItemKind.LONG_TERM_CARE: "Long-term care insurance",
    DeductionItemKind.INCOME_TAX: "Income tax",
    DeductionItemKind.LOCAL_INCOME_TAX: "Local income tax",
}

# Payment kinds excluded from the income-tax base when included in pay
NONTAXABLE_PAYMENT_KINDS = frozenset(
    {PaymentItemKind.MEAL, PaymentItemKind.VEHICLE, PaymentItemKind.CHILDCARE}
)


def payment_kind(code: str) -> PaymentItemKind | None:
    """Resolve a short or legacy payment code to its kind (None if unknown)."""
    code = code.strip()
    if code in _PAYMENT_BY_LEGACY:
        return _PAYMENT_BY_LEGACY[code]
    try:
        return PaymentItemKind(code)
    except ValueError:
        return None


def deduction_kind(code: str) -> DeductionItemKind | None:
    """Resolve a short or legacy deduction code to its kind (None if unknown)."""
    code = code.strip()
    if code in _DEDUCTION_BY_LEGACY:
        return _DEDUCTION_BY_LEGACY[code]
    try:
        return DeductionItemKind(code)
    except ValueError:
        return None


def canonical_payment_code(code: str) -> str:
    """Map an inbound payment code to its canonical form."""
    kind = payment_kind(code)
    return kind.value if kind is not None else code.strip()


def canonical_deduction_code(code: str) -> str:
    """Map an inbound deduction code to its canonical form."""
    kind = deduction_kind(code)
    return kind.value if kind is not None else code.strip()


def legacy_payment_code(code: str) -> str | None:
    """Return the legacy common code for a payment code, if one exists."""
    kind = payment_kind(code)
    return PAYMENT_LEGACY_CODES.get(kind) if kind is not None else None


def legacy_deduction_code(code: str) -> str | None:
    """Return the legacy common code for a deduction code, if one exists."""
    kind = deduction_kind(code)
    return DEDUCTION_LEGACY_CODES.get(kind) if kind is not None else None
