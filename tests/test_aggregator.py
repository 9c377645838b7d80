import asyncio
import logging
from decimal import Decimal

from statement_engine.aggregator import (
    OPENING_BALANCE_LABEL, build_levied_line, build_meter_line, build_statement_model,
    compose_postal_address, pick,
)
from statement_engine.config import BankingConfig
from statement_engine.sources import SourceRecords, fetch_sources

from conftest import ACCOUNT, customer_record


def _model(store, period):
    sources = asyncio.run(fetch_sources(store, ACCOUNT, period))
    return build_statement_model(sources, period, BankingConfig(), ACCOUNT)


def test_reference_statement_model(store, period):
    model = _model(store, period)

    assert model.account_number == ACCOUNT
    assert model.aging.days120_plus == Decimal("75.00")
    assert model.closing_balance == Decimal("175.00")
    assert model.property_valuation == Decimal("350000.00")
    assert model.postal_address == "PO BOX 112, ZASTRON, 9950"
    assert model.tax_invoice_number == "2024/10/1002345"
    assert model.banking.reference == ACCOUNT
    assert model.banking.bank_name == "ABSA"


def test_opening_balance_row_comes_first(store, period):
    model = _model(store, period)

    first = model.levied_lines[0]
    assert first.description == OPENING_BALANCE_LABEL
    assert first.value == Decimal("75.00")
    assert [line.code for line in model.levied_lines[1:]] == ["RAT", "REF"]
    assert model.levied_lines[2].value == Decimal("185.50")
    assert all(line.date == "2024-10-31" for line in model.levied_lines)


def test_missing_sources_yield_defaults(master_only_store, period):
    model = _model(master_only_store, period)

    assert len(model.meter_readings) == 1
    assert model.meter_readings[0].is_placeholder
    assert len(model.levied_lines) == 1
    assert model.levied_lines[0].description == OPENING_BALANCE_LABEL
    assert model.closing_balance == Decimal("0.00")


def test_consumption_follows_reads(caplog):
    record = {"MeterNumber": "W1", "PrevRead": "100", "CurrRead": "150.5", "Consumption": 10}
    with caplog.at_level(logging.WARNING, logger="statement_engine.aggregator"):
        line = build_meter_line(record)

    assert line.consumption == Decimal("50.5")
    assert line.consumption == line.curr_read - line.prev_read
    assert "stored consumption" in caplog.text


def test_consumption_without_both_reads_uses_stored_value():
    line = build_meter_line({"meterNumber": "E7", "currRead": 90, "consumption": "12"})
    assert line.consumption == Decimal("12")
    assert line.prev_read == Decimal("0")


def test_levied_line_defaults(period):
    line = build_levied_line({"code": "SEW", "description": "SEWERAGE", "value": "R 210"}, period)
    assert line.units == "1"
    assert line.value == Decimal("210.00")
    assert line.date == "2024-10-31"


def test_export_field_names_and_town_fallback(period):
    master = {
        "ACCOUNT_HOLDER": "J SMITH",
        "ERF_REF": "77",
        "STREET_ADDRESS": "5 KERK STREET",
        "POST_ADR_1": "PRIVATE BAG X1",
        "OUTSTANDING TOTAL BALANCE": "1,250.40",
    }
    model = build_statement_model(SourceRecords(account=master), period, BankingConfig(), "2001")

    assert model.account_holder_name == "J SMITH"
    assert model.erf_number == "77"
    assert model.town == "5 KERK STREET"
    assert model.outstanding_total_balance == Decimal("1250.40")
    assert model.postal_address == "PRIVATE BAG X1"


def test_mismatched_total_is_logged(period, caplog):
    sources = SourceRecords(
        account=customer_record(),
        aged_analysis={"current": 100, "TOTAL": 120},
    )
    with caplog.at_level(logging.WARNING, logger="statement_engine.aggregator"):
        model = build_statement_model(sources, period, BankingConfig(), ACCOUNT)

    assert model.closing_balance == Decimal("100.00")
    assert "does not match bucket sum" in caplog.text


def test_pick_skips_blank_values():
    assert pick({"a": " ", "b": "x"}, ("a", "b")) == "x"
    assert pick({}, ("a",), "fallback") == "fallback"


def test_compose_postal_address_skips_empty_segments():
    assert compose_postal_address(["PO BOX 1", "", None], "9950") == "PO BOX 1, 9950"
