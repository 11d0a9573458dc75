"""Tests for line-item code mapping."""

import pytest

from compensation_engine.codes import (
    DeductionItemKind,
    PaymentItemKind,
    canonical_deduction_code,
    canonical_payment_code,
    deduction_kind,
    legacy_deduction_code,
    legacy_payment_code,
    payment_kind,
)


class TestPaymentCodes:
    """Short and legacy payment codes resolve to one kind."""

    @pytest.mark.parametrize(
        "short, legacy, kind",
        [
            ("BASIC", "DPTBS_001", PaymentItemKind.BASE_SALARY),
            ("MEAL", "DPTBS_002", PaymentItemKind.MEAL),
            ("VEHICLE", "DPTBS_003", PaymentItemKind.VEHICLE),
            ("CHILD_CARE", "DPTBS_004", PaymentItemKind.CHILDCARE),
            ("OVERTIME", "DPTBS_005", PaymentItemKind.OVERTIME),
            ("NIGHT", "DPTBS_006", PaymentItemKind.NIGHT),
            ("MONTHLY_HOLIDAY", "DPTBS_007", PaymentItemKind.HOLIDAY),
            ("ADD", "DPTBS_008", PaymentItemKind.EXTRA_WORK),
        ],
    )
    def test_both_schemes(self, short, legacy, kind):
        assert payment_kind(short) is kind
        assert payment_kind(legacy) is kind
        assert canonical_payment_code(legacy) == short
        assert legacy_payment_code(short) == legacy

    def test_unknown_code_passes_through(self):
        assert payment_kind("BNS_001") is None
        assert canonical_payment_code(" BNS_001 ") == "BNS_001"
        assert legacy_payment_code("BNS_001") is None

    def test_kind_without_legacy_code(self):
        assert legacy_payment_code("EXTRA_HOLIDAY") is None


class TestDeductionCodes:
    """Short and legacy deduction codes resolve to one kind."""

    @pytest.mark.parametrize(
        "legacy, kind",
        [
            ("DDTBS_001", DeductionItemKind.NATIONAL_PENSION),
            ("DDTBS_002", DeductionItemKind.HEALTH_INSURANCE),
            ("DDTBS_003", DeductionItemKind.EMPLOYMENT_INSURANCE),
            ("DDTBS_004", DeductionItemKind.LONG_TERM_CARE),
            ("DDTBS_005", DeductionItemKind.INCOME_TAX),
            ("DDTBS_006", DeductionItemKind.LOCAL_INCOME_TAX),
        ],
    )
    def test_legacy_codes(self, legacy, kind):
        assert deduction_kind(legacy) is kind
        assert canonical_deduction_code(legacy) == kind.value
        assert legacy_deduction_code(kind.value) == legacy

    def test_additional_deduction_passes_through(self):
        assert deduction_kind("DDTAD_001") is None
        assert canonical_deduction_code("DDTAD_001") == "DDTAD_001"
