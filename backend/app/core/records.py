"""
Plain input records consumed by the rental tax engine.

The persistence layer owns these rows; the engine only reads them, so every
record is a frozen dataclass. Monetary values are Decimal.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce DB numerics, floats, strings and None into a Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    """Round half away from zero to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Frequency(str, Enum):
    ONE_TIME = "one_time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, value: str | None) -> "Frequency":
        """Read a stored frequency; anything unknown counts as a one-time amount."""
        if not value:
            return cls.ONE_TIME
        normalized = str(value).strip()
        if normalized.upper() in _LEGACY_FREQUENCIES:
            return _LEGACY_FREQUENCIES[normalized.upper()]
        try:
            return cls(normalized.lower())
        except ValueError:
            return cls.ONE_TIME


_LEGACY_FREQUENCIES = {
    "PONCTUEL": Frequency.ONE_TIME,
    "HEBDOMADAIRE": Frequency.WEEKLY,
    "MENSUEL": Frequency.MONTHLY,
    "TRIMESTRIEL": Frequency.QUARTERLY,
    "ANNUEL": Frequency.ANNUAL,
}


@dataclass(frozen=True)
class RecurringAmount:
    id: int
    label: str
    amount: Decimal
    frequency: Frequency = Frequency.ONE_TIME
    start_date: date | None = None
    end_date: date | None = None
    category: str | None = None


@dataclass(frozen=True)
class InvoiceExpense:
    id: int
    invoice_date: date | None
    base_amount: Decimal
    tax1: Decimal = Decimal("0")  # GST
    tax2: Decimal = Decimal("0")  # QST
    category: str | None = None
    description: str | None = None
    supplier: str | None = None


@dataclass(frozen=True)
class MortgageTerms:
    principal: Decimal
    annual_rate: Decimal  # 0.05 == 5 %
    amortization_months: int
    term_months: int
    start_date: date
    payment_frequency: int = 12
    payment_amount: Decimal | None = None
    id: int | None = None


@dataclass(frozen=True)
class DepreciationSetting:
    class_code: str
    cca_rate_percent: Decimal  # stored in [0, 100]
    opening_ucc: Decimal = Decimal("0")
    additions: Decimal = Decimal("0")
    dispositions: Decimal = Decimal("0")
    description: str | None = None


@dataclass(frozen=True)
class PropertyRecord:
    id: int
    name: str
    address: str | None = None
    ownership_pct: Decimal = Decimal("100")
    revenues: tuple[RecurringAmount, ...] = field(default_factory=tuple)
    expenses: tuple[RecurringAmount, ...] = field(default_factory=tuple)
    invoices: tuple[InvoiceExpense, ...] = field(default_factory=tuple)
    mortgages: tuple[MortgageTerms, ...] = field(default_factory=tuple)
    depreciation: DepreciationSetting | None = None
