import asyncio
from datetime import date
from decimal import Decimal

import pytest

from statement_engine.errors import CustomerNotFoundError, PeriodValidationError
from statement_engine.generator import (
    StatementRequest, generate_statement, generate_statement_sync, render_statement,
    statement_filename,
)
from statement_engine.renderer import ImageOp, LinkOp, RectOp, TextOp
from statement_engine.styles import DEFAULT_STYLE

from conftest import ACCOUNT, PNG_BYTES

TODAY = date(2024, 11, 3)


def _request(year="2024", month="10", account=ACCOUNT):
    return StatementRequest(account_number=account, month=month, year=year)


def test_generates_pdf(store, config, logo_assets):
    statement = generate_statement_sync(_request(), store, config=config, assets=logo_assets, today=TODAY)

    assert statement.filename == "Statement_1002345_20241103.pdf"
    assert statement.content.startswith(b"%PDF")
    assert statement.page_count == 1
    assert statement.model.closing_balance == Decimal("175.00")
    assert statement.payment_link.url.endswith("/yebopay-payment/1002345/T%20MOKOENA/175.00")


def test_identical_input_gives_identical_bytes(store, config, logo_assets):
    first = generate_statement_sync(_request(), store, config=config, assets=logo_assets, today=TODAY)
    second = generate_statement_sync(_request(), store, config=config, assets=logo_assets, today=TODAY)

    assert first.content == second.content


def test_old_period_rejected_before_any_read(store, config):
    with pytest.raises(PeriodValidationError):
        asyncio.run(generate_statement(_request(year="2023", month="05"), store, config=config))
    assert store.reads == []


def test_missing_customer_produces_no_document(store, config, no_assets):
    callbacks = []
    with pytest.raises(CustomerNotFoundError):
        generate_statement_sync(_request(account="404"), store, config=config, assets=no_assets,
                                on_payment_link=callbacks.append)
    assert callbacks == []
    assert len(store.reads) == 1


def test_payment_link_callback(store, config, no_assets):
    links = []
    statement = generate_statement_sync(_request(), store, config=config, assets=no_assets,
                                        on_payment_link=links.append, today=TODAY)
    assert links == [statement.payment_link]


def test_statement_filename():
    assert statement_filename("42", date(2025, 1, 9)) == "Statement_42_20250109.pdf"


def _document(store, period, config, assets):
    statement = generate_statement_sync(_request(), store, config=config, assets=assets, today=TODAY)
    return render_statement(statement.model, config, assets)


def test_section_order(store, period, config, no_assets):
    texts = _document(store, period, config, no_assets).texts()

    markers = [
        config.document_title, "Account Number:", "METER NO.", "ACCOUNT DETAILS",
        "CLOSING BALANCE", "REMITTANCE ADVICE", "BANKING DETAILS",
        config.bank_logo_caption, config.payment_logo_caption, config.disclaimer_link_text,
    ]
    positions = [texts.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_statement_content(store, period, config, no_assets):
    texts = _document(store, period, config, no_assets).texts()

    assert "OPENING BALANCE" in texts
    assert "R 75.00" in texts  # 120+ days column
    assert "R 175.00" in texts
    assert "2024/10/1002345" in texts
    assert "W123456" in texts
    assert "34.50" in texts


def test_missing_meter_source_renders_placeholder_row(master_only_store, period, config, no_assets):
    document = _document(master_only_store, period, config, no_assets)
    texts = document.texts()

    assert "N/A" in texts
    assert texts.count("OPENING BALANCE") == 1


def test_missing_logos_draw_placeholders_and_keep_links(store, period, config, no_assets):
    document = _document(store, period, config, no_assets)

    assert document.ops(ImageOp) == []
    placeholders = [op for _, op in document.ops(RectOp) if op.fill_color == DEFAULT_STYLE.placeholder_fill]
    # Municipal logo, seven banks and the payment provider
    assert len(placeholders) == 9

    urls = [op.url for _, op in document.ops(LinkOp)]
    assert any("/yebopay-payment/1002345/" in url for url in urls)
    for logo in config.bank_logos:
        assert logo.url in urls
    assert config.disclaimer_link_url in urls


def test_available_logos_are_drawn(store, period, config, logo_assets):
    document = _document(store, period, config, logo_assets)
    assert len(document.ops(ImageOp)) == 9


def test_every_page_has_footer_and_frame(store, period, config, no_assets):
    levies = store.collections[period.collection("detailed_levied")][ACCOUNT]["records"]
    for i in range(120):
        levies.append({"TARIFF_CODE": "MSC", "TOS_DESC": f"SUNDRY {i}", "M202410": 1})

    document = _document(store, period, config, no_assets)
    total = document.page_count
    assert total > 1

    footers = [(page, op.text) for page, op in document.ops(TextOp) if op.text.startswith("Page ")]
    assert footers == [(i, f"Page {i + 1} of {total}") for i in range(total)]

    frames = {page for page, op in document.ops(RectOp) if op.line_width == DEFAULT_STYLE.frame_line_width}
    assert frames == set(range(total))

    descriptions = [t for t in document.texts() if t.startswith("SUNDRY ")]
    assert len(descriptions) == 120


def test_out_of_range_balances_do_not_abort(store, config, no_assets):
    account = store.collections["customers"][ACCOUNT]
    account["outstandingBalance"] = "1e30"
    account["outstandingTotalBalance"] = "-1e30"

    statement = generate_statement_sync(_request(), store, config=config, assets=no_assets, today=TODAY)

    assert statement.content.startswith(b"%PDF")
    assert statement.model.outstanding_balance == Decimal("0.00")
    assert statement.payment_link.url.endswith("/0.00")


def test_truncated_payment_logo_falls_back_to_placeholder(store, config, logo_assets):
    logo_assets.assets[config.payment_logo_asset] = PNG_BYTES[:len(PNG_BYTES) // 2]

    statement = generate_statement_sync(_request(), store, config=config, assets=logo_assets, today=TODAY)

    assert statement.content.startswith(b"%PDF")
