import logging

import pytest

from statement_engine.assets import FileAssetProvider, InMemoryAssetProvider, decode_logo
from statement_engine.renderer import (
    Document, LineOp, ReportLabSurface, TextOp, text_width, truncate_text
)

from conftest import PNG_BYTES


def test_truncate_text_fits_width():
    text = "A VERY LONG DESCRIPTION OF A MUNICIPAL SERVICE CHARGE"
    truncated = truncate_text(text, 60, "Helvetica", 8)

    assert truncated.endswith("...")
    assert text_width(truncated, "Helvetica", 8) <= 60
    assert truncate_text("SHORT", 60, "Helvetica", 8) == "SHORT"
    assert truncate_text("", 60, "Helvetica", 8) == ""


def test_document_records_ops_per_page():
    doc = Document(200, 300)
    doc.text(10, 20, "first", "Helvetica", 8)
    doc.page_break()
    doc.line(0, 0, 10, 10)

    assert doc.page_count == 2
    assert doc.current_page == 1
    assert doc.ops(TextOp)[0][0] == 0
    assert doc.ops(LineOp)[0][0] == 1

    doc.go_to_page(0)
    doc.text(10, 290, "footer", "Helvetica", 6)
    assert [page for page, _ in doc.ops(TextOp)] == [0, 0]


def test_go_to_page_out_of_range():
    doc = Document(200, 300)
    with pytest.raises(IndexError):
        doc.go_to_page(1)


def test_reportlab_surface_writes_pdf():
    doc = Document(200, 300, title="Test")
    doc.rect(10, 10, 50, 20, fill_color=None)
    doc.image(10, 40, 20, 20, PNG_BYTES)
    doc.link(10, 40, 20, 20, "https://example.com/")
    doc.text(100, 100, "centre", "Helvetica-Bold", 9, align="center")
    doc.page_break()
    doc.text(190, 100, "right", "Helvetica", 9, align="right")

    content = doc.output()
    assert content.startswith(b"%PDF")
    assert content == doc.output()


def test_surface_flips_to_pdf_space():
    surface = ReportLabSurface(200, 300)
    assert surface._flip(0) == 300
    assert surface._flip(300) == 0


def test_decode_logo():
    logo = decode_logo("logo.png", PNG_BYTES)
    assert (logo.width, logo.height) == (1, 1)


def test_corrupt_logo_is_rejected(caplog):
    with caplog.at_level(logging.WARNING, logger="statement_engine.assets"):
        assert decode_logo("broken.png", b"not an image") is None
        assert decode_logo("empty.png", b"") is None
    assert "could not be decoded" in caplog.text


def test_truncated_logo_is_rejected(caplog):
    truncated = PNG_BYTES[:len(PNG_BYTES) // 2]
    with caplog.at_level(logging.WARNING, logger="statement_engine.assets"):
        assert decode_logo("truncated.png", truncated) is None
    assert "truncated.png" in caplog.text


def test_asset_providers(tmp_path):
    (tmp_path / "logo.png").write_bytes(PNG_BYTES)
    files = FileAssetProvider(tmp_path)

    assert files.load("logo.png").data == PNG_BYTES
    assert files.load("missing.png") is None
    assert FileAssetProvider(None).load("logo.png") is None
    assert InMemoryAssetProvider({"a.png": PNG_BYTES}).load("b.png") is None
