"""Statement data model: billing period, aging buckets, meter and levy lines."""

import calendar
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Tuple

from .errors import PeriodValidationError

log = logging.getLogger(__name__)

MIN_YEAR = 2024
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest magnitude accepted as money; cents must stay within the default 28-digit context
MAX_AMOUNT = Decimal("1e15")

_YEAR_RE = re.compile(r"[0-9]{4}")
_MONTH_RE = re.compile(r"[0-9]{2}")
_PERIOD_RE = re.compile(r"([0-9]{4})-([0-9]{2})")
# Characters stripped before parsing a numeric string ("R 1,234.50" -> "1234.50")
_NUMERIC_NOISE_RE = re.compile(r"[\sR,]")


def to_decimal(value: Any) -> Decimal:
    """Coerce a raw store value to Decimal, treating anything non-numeric as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = _NUMERIC_NOISE_RE.sub("", value)
        if not cleaned:
            return ZERO
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not result.is_finite():
        return ZERO
    if abs(result) >= MAX_AMOUNT:
        log.warning("Amount %s is out of range; treating it as zero", value)
        return ZERO
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary value to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"R {quantize_money(value):.2f}"


def format_quantity(value: Decimal) -> str:
    return f"{quantize_money(value):.2f}"


def to_text(value: Any) -> str:
    """Coerce a descriptive field to a stripped string."""
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class Period:
    """A billing period identified by four-digit year and two-digit month."""
    year: str
    month: str

    def __post_init__(self):
        if not isinstance(self.year, str) or not _YEAR_RE.fullmatch(self.year):
            raise PeriodValidationError(f"Invalid year {self.year!r}: expected YYYY")
        if not isinstance(self.month, str) or not _MONTH_RE.fullmatch(self.month):
            raise PeriodValidationError(f"Invalid month {self.month!r}: expected MM")
        if int(self.year) < MIN_YEAR:
            raise PeriodValidationError(f"Year must be {MIN_YEAR} or later, got {self.year}")
        if not 1 <= int(self.month) <= 12:
            raise PeriodValidationError(f"Month must be between 01 and 12, got {self.month}")

    @classmethod
    def parse(cls, value: str) -> "Period":
        """Parse the combined YYYY-MM form."""
        match = _PERIOD_RE.fullmatch(value or "")
        if not match:
            raise PeriodValidationError(f"Invalid period {value!r}: expected YYYY-MM")
        return cls(year=match.group(1), month=match.group(2))

    @property
    def last_day(self) -> int:
        return calendar.monthrange(int(self.year), int(self.month))[1]

    @property
    def statement_date(self) -> str:
        """Last calendar day of the period as YYYY-MM-DD."""
        return f"{self.year}-{self.month}-{self.last_day:02d}"

    @property
    def due_date(self) -> str:
        return self.statement_date

    @property
    def field_key(self) -> str:
        """Column name used for the period in raw uploads, e.g. '202410'."""
        return f"{self.year}{self.month}"

    def collection(self, name: str) -> str:
        """Period-scoped collection path, e.g. 'meterReadings/2024/10'."""
        return f"{name}/{self.year}/{self.month}"

    def __str__(self) -> str:
        return f"{self.year}-{self.month}"


@dataclass(frozen=True)
class AgingBuckets:
    """Arrears split by days outstanding."""
    current: Decimal = ZERO
    days30: Decimal = ZERO
    days60: Decimal = ZERO
    days90: Decimal = ZERO
    days120_plus: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.current + self.days30 + self.days60 + self.days90 + self.days120_plus

    def as_row(self) -> Tuple[Decimal, ...]:
        """Values in statement column order (oldest first)."""
        return (self.days120_plus, self.days90, self.days60, self.days30, self.current)


@dataclass(frozen=True)
class MeterReadingLine:
    """One meter reading for the period."""
    meter_number: str = ""
    meter_type: str = ""
    prev_read: Decimal = ZERO
    curr_read: Decimal = ZERO
    consumption: Decimal = ZERO
    total_levied: Decimal = ZERO
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls) -> "MeterReadingLine":
        """Zero-filled row shown when no reading exists for the period."""
        return cls(meter_number="0", meter_type="N/A", is_placeholder=True)


@dataclass(frozen=True)
class LeviedLineItem:
    """One itemized billing charge."""
    date: str
    code: str
    description: str
    units: str
    tariff: str
    value: Decimal


@dataclass(frozen=True)
class BankingDetails:
    """Static remittance details; the reference is the customer's account number."""
    bank_name: str
    account_name: str
    account_number: str
    branch_code: str
    reference: str = ""


@dataclass(frozen=True)
class StatementModel:
    """Reconciled statement content for one account and period."""
    account_number: str
    period: Period
    banking: BankingDetails
    account_holder_name: str = ""
    erf_number: str = ""
    vat_reg_number: str = ""
    street_address: str = ""
    postal_address_1: str = ""
    postal_address_2: str = ""
    postal_address_3: str = ""
    postal_code: str = ""
    postal_address: str = ""
    property_category: str = ""
    property_valuation: Decimal = ZERO
    outstanding_balance: Decimal = ZERO
    outstanding_total_balance: Decimal = ZERO
    closing_balance: Decimal = ZERO
    aging: AgingBuckets = field(default_factory=AgingBuckets)
    meter_readings: Tuple[MeterReadingLine, ...] = ()
    levied_lines: Tuple[LeviedLineItem, ...] = ()
    town: str = ""
    tax_invoice_number: str = ""
