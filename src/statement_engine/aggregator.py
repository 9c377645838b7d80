"""Merge raw source reads into an immutable StatementModel."""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .aging import calculate_aging, reported_total
from .config import BankingConfig
from .models import (
    CENTS, LeviedLineItem, MeterReadingLine, Period, StatementModel,
    quantize_money, to_decimal, to_text,
)
from .sources import SourceRecords

log = logging.getLogger(__name__)

OPENING_BALANCE_LABEL = "OPENING BALANCE"

# Master record field names: portal camelCase first, billing export names as fallback
MASTER_FIELDS = {
    "account_holder_name": ("accountHolderName", "ACCOUNT_HOLDER"),
    "erf_number": ("erfNumber", "ERF_NUMBER", "ERF_REF"),
    "vat_reg_number": ("vatRegNumber", "VAT_REG_NUMBER"),
    "street_address": ("streetAddress", "address", "STREET_ADDRESS"),
    "postal_address_1": ("postalAddress1", "POST_ADR_1"),
    "postal_address_2": ("postalAddress2", "POST_ADR_2"),
    "postal_address_3": ("postalAddress3", "POST_ADR_3"),
    "postal_code": ("postalCode", "POST_CODE"),
    "property_category": ("propertyCategory", "PROPERTY_CATEGORY", "CATEGORY"),
    "town": ("town", "TOWN"),
    "property_valuation": ("valuation", "propertyValuation", "VALUATION"),
    "outstanding_balance": ("outstandingBalance", "OUTSTANDING_BALANCE"),
    "outstanding_total_balance": (
        "outstandingTotalBalance", "OUTSTANDING TOTAL BALANCE", "OUTSTANDING_TOTAL_BALANCE"
    ),
}


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def pick(record: Mapping[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    """Return the first present value among the candidate keys."""
    for key in keys:
        if key in record and _present(record[key]):
            return record[key]
    return default


def compose_postal_address(lines: Iterable[str], postal_code: str = "") -> str:
    """Join address lines and postal code, skipping empty segments."""
    segments = [to_text(line) for line in lines] + [to_text(postal_code)]
    return ", ".join(s for s in segments if s)


def tax_invoice_number(account_number: str, period: Period) -> str:
    return f"{period.year}/{period.month}/{account_number}"


def build_meter_line(record: Mapping[str, Any]) -> MeterReadingLine:
    """Map a raw meter reading, recomputing consumption from the two reads."""
    prev_raw = pick(record, ("PrevRead", "prevRead", "prev_read"))
    curr_raw = pick(record, ("CurrRead", "currRead", "curr_read"))
    stored = pick(record, ("Consumption", "consumption"))
    meter_number = to_text(pick(record, ("MeterNumber", "meterNumber", "meter_number"), ""))

    prev_read = to_decimal(prev_raw)
    curr_read = to_decimal(curr_raw)

    if _present(prev_raw) and _present(curr_raw):
        consumption = curr_read - prev_read
        if _present(stored) and abs(to_decimal(stored) - consumption) > CENTS:
            log.warning(
                "Meter %s stored consumption %s differs from reads (%s - %s)",
                meter_number, stored, curr_read, prev_read,
            )
    else:
        consumption = to_decimal(stored)

    return MeterReadingLine(
        meter_number=meter_number,
        meter_type=to_text(pick(record, ("MeterType", "meterType", "meter_type"), "")),
        prev_read=prev_read,
        curr_read=curr_read,
        consumption=consumption,
        total_levied=to_decimal(pick(record, ("TotLevied", "totalLevied", "total_levied"))),
    )


def build_levied_line(record: Mapping[str, Any], period: Period) -> LeviedLineItem:
    """Map a raw levy record; the value comes from the period's M{YYYYMM} column if unnamed."""
    value = pick(record, ("value", "VALUE", f"M{period.field_key}"))
    return LeviedLineItem(
        date=period.statement_date,
        code=to_text(pick(record, ("code", "TARIFF_CODE"), "")),
        description=to_text(pick(record, ("description", "TOS_DESC"), "")),
        units=to_text(pick(record, ("units", "UNITS"), "1")),
        tariff=to_text(pick(record, ("tariff", "TARIFF_DESC"), "")),
        value=quantize_money(to_decimal(value)),
    )


def opening_balance_line(balance: Decimal, period: Period) -> LeviedLineItem:
    return LeviedLineItem(
        date=period.statement_date,
        code="",
        description=OPENING_BALANCE_LABEL,
        units="",
        tariff="",
        value=quantize_money(balance),
    )


def build_statement_model(
    sources: SourceRecords,
    period: Period,
    banking: BankingConfig,
    account_number: Optional[str] = None,
) -> StatementModel:
    """Reconcile the four source reads into one statement model."""
    master = sources.account
    account_number = account_number or to_text(
        pick(master, ("accountNumber", "ACCOUNT_NO"), "")
    )

    fields = {name: pick(master, keys) for name, keys in MASTER_FIELDS.items()}
    outstanding_balance = quantize_money(to_decimal(fields["outstanding_balance"]))

    aging = calculate_aging(sources.aged_analysis, period)
    closing_balance = aging.total
    stated = reported_total(sources.aged_analysis)
    if stated is not None and abs(stated - closing_balance) > CENTS:
        log.warning(
            "Account %s aged total %s does not match bucket sum %s",
            account_number, stated, closing_balance,
        )

    meter_lines: List[MeterReadingLine] = [build_meter_line(r) for r in sources.meter_readings]
    if not meter_lines:
        meter_lines = [MeterReadingLine.placeholder()]

    levied_lines = [opening_balance_line(outstanding_balance, period)]
    levied_lines.extend(build_levied_line(r, period) for r in sources.levied_lines)

    postal_lines = [to_text(fields[f"postal_address_{i}"]) for i in (1, 2, 3)]
    street_address = to_text(fields["street_address"])

    return StatementModel(
        account_number=account_number,
        period=period,
        banking=banking.for_account(account_number),
        account_holder_name=to_text(fields["account_holder_name"]),
        erf_number=to_text(fields["erf_number"]),
        vat_reg_number=to_text(fields["vat_reg_number"]),
        street_address=street_address,
        postal_address_1=postal_lines[0],
        postal_address_2=postal_lines[1],
        postal_address_3=postal_lines[2],
        postal_code=to_text(fields["postal_code"]),
        postal_address=compose_postal_address(postal_lines, to_text(fields["postal_code"])),
        property_category=to_text(fields["property_category"]),
        property_valuation=quantize_money(to_decimal(fields["property_valuation"])),
        outstanding_balance=outstanding_balance,
        outstanding_total_balance=quantize_money(
            to_decimal(fields["outstanding_total_balance"])
        ),
        closing_balance=closing_balance,
        aging=aging,
        meter_readings=tuple(meter_lines),
        levied_lines=tuple(levied_lines),
        town=to_text(fields["town"]) or street_address,
        tax_invoice_number=tax_invoice_number(account_number, period),
    )
