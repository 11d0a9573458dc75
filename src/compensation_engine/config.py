"""Configuration for the compensation engine.

Two layers:
    Settings      process settings loaded from the environment (.env aware)
    EngineConfig  explicit per-organization configuration, injected into
                  every engine entry point

Pattern:
    config = EngineConfig(
        organization=OrganizationContext(head_office_id=1, franchise_id=2),
        catalog=PayrollCatalog.default(),
        minimum_wages=MinimumWageTable.from_mapping({2025: 10030}),
    )

Rules:
    1. No process-wide organization identifiers. Callers pass the context.
    2. Immutable after creation (frozen dataclasses).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

from compensation_engine.calculators.deduction_calculator import (
    InsuranceRateTable,
    rate_table_for_year,
)
from compensation_engine.calculators.types import MinimumWageTable
from compensation_engine.codes import (
    DEDUCTION_ITEM_LABELS,
    DEDUCTION_LEGACY_CODES,
    PAYMENT_ITEM_LABELS,
    PAYMENT_LEGACY_CODES,
    canonical_deduction_code,
    canonical_payment_code,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    log_level: str
    rate_table_year: int

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
            rate_table_year=int(os.getenv("RATE_TABLE_YEAR", "2025")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format=LOG_FORMAT,
    )


@dataclass(frozen=True)
class OrganizationContext:
    """Organization the engine is operating for."""

    head_office_id: int
    franchise_id: int | None = None
    store_id: int | None = None

    def __post_init__(self) -> None:
        if self.head_office_id <= 0:
            raise ValueError("head_office_id must be positive")


@dataclass(frozen=True)
class CatalogItem:
    """A configured payment or deduction item code."""

    code: str
    name: str


@dataclass(frozen=True)
class BonusCategory:
    """A configured bonus category with its defaults."""

    code: str
    name: str
    default_amount: int = 0
    default_remark: str = ""

    def __post_init__(self) -> None:
        if self.default_amount < 0:
            raise ValueError(f"Bonus category {self.code} has a negative default amount")


def _check_unique(kind: str, items: tuple[CatalogItem, ...] | tuple[BonusCategory, ...]) -> None:
    codes = [item.code for item in items]
    duplicates = {code for code in codes if codes.count(code) > 1}
    if duplicates:
        raise ValueError(f"Duplicate {kind} codes: {sorted(duplicates)}")


@dataclass(frozen=True)
class PayrollCatalog:
    """Item codes an organization prints on its payroll statements.

    Attributes:
        payment_items: Payment lines every new statement starts with.
        deduction_items: Deduction lines every new statement starts with.
        additional_deduction_items: Deduction lines that can be added by hand.
        bonus_categories: Bonus lines that can be added by hand.
    """

    payment_items: tuple[CatalogItem, ...] = ()
    deduction_items: tuple[CatalogItem, ...] = ()
    additional_deduction_items: tuple[CatalogItem, ...] = ()
    bonus_categories: tuple[BonusCategory, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration."""
        _check_unique("payment", self.payment_items)
        _check_unique("deduction", self.deduction_items + self.additional_deduction_items)
        _check_unique("bonus", self.bonus_categories)

    @classmethod
    def from_codes(
        cls,
        payment_items: list[tuple[str, str]],
        deduction_items: list[tuple[str, str]],
        additional_deduction_items: list[tuple[str, str]] | None = None,
        bonus_categories: list[BonusCategory] | None = None,
    ) -> PayrollCatalog:
        """Build a catalog from (code, name) pairs, canonicalizing codes."""
        return cls(
            payment_items=tuple(
                CatalogItem(canonical_payment_code(code), name) for code, name in payment_items
            ),
            deduction_items=tuple(
                CatalogItem(canonical_deduction_code(code), name) for code, name in deduction_items
            ),
            additional_deduction_items=tuple(
                CatalogItem(canonical_deduction_code(code), name)
                for code, name in additional_deduction_items or []
            ),
            bonus_categories=tuple(bonus_categories or []),
        )

    @classmethod
    def default(cls) -> PayrollCatalog:
        """The standard items: every payment and deduction with a common code."""
        return cls(
            payment_items=tuple(
                CatalogItem(kind.value, PAYMENT_ITEM_LABELS[kind]) for kind in PAYMENT_LEGACY_CODES
            ),
            deduction_items=tuple(
                CatalogItem(kind.value, DEDUCTION_ITEM_LABELS[kind])
                for kind in DEDUCTION_LEGACY_CODES
            ),
        )

    def bonus_category(self, code_or_name: str) -> BonusCategory | None:
        """Find a bonus category by code, falling back to its display name."""
        for category in self.bonus_categories:
            if category.code == code_or_name:
                return category
        for category in self.bonus_categories:
            if category.name == code_or_name:
                return category
        return None

    def deduction_item(self, code: str) -> CatalogItem | None:
        code = canonical_deduction_code(code)
        for item in self.deduction_items + self.additional_deduction_items:
            if item.code == code:
                return item
        return None


@dataclass(frozen=True)
class EngineConfig:
    """Everything the engine needs to know about the organization."""

    organization: OrganizationContext
    catalog: PayrollCatalog = field(default_factory=PayrollCatalog.default)
    minimum_wages: MinimumWageTable = field(default_factory=MinimumWageTable)
    rate_table: InsuranceRateTable | None = None

    def resolved_rate_table(self) -> InsuranceRateTable:
        """The configured rate table, or the one for the settings' year."""
        if self.rate_table is not None:
            return self.rate_table
        return rate_table_for_year(get_settings().rate_table_year)
