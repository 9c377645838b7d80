"""Statement generation pipeline: validate, read, aggregate, lay out, render."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from .aggregator import build_statement_model
from .assets import AssetProvider, FileAssetProvider, LogoImage
from .config import EngineConfig
from .layout_engine import LayoutEngine, PageLayout
from .models import Period, StatementModel
from .payment_links import PaymentLink, bank_links, resolve_payment_link
from .renderer import Document
from .sections import (
    BankLogoSection,
    CustomerInfoSection,
    DisclaimerSection,
    HeaderSection,
    PaymentLogoSection,
    RemittanceSection,
    Section,
    TableSection,
    draw_frame,
)
from .sources import DocumentStore, fetch_sources
from .styles import DEFAULT_STYLE, StatementStyle
from .tables import (
    ACCOUNT_DETAILS_TEMPLATE,
    AGING_TEMPLATE,
    METER_TEMPLATE,
    account_rows,
    aging_rows,
    meter_rows,
)

log = logging.getLogger(__name__)

PaymentLinkCallback = Callable[[PaymentLink], None]


@dataclass(frozen=True)
class StatementRequest:
    """Request for one account's statement for one billing period."""
    account_number: str
    month: str
    year: str

    @property
    def period(self) -> Period:
        return Period(year=self.year, month=self.month)


@dataclass
class GeneratedStatement:
    """A rendered statement PDF and the data it was built from."""
    filename: str
    content: bytes
    model: StatementModel
    page_count: int
    payment_link: PaymentLink


def statement_filename(account_number: str, generated_on: date) -> str:
    return f"Statement_{account_number}_{generated_on.strftime('%Y%m%d')}.pdf"


def build_sections(
    model: StatementModel,
    config: EngineConfig,
    assets: AssetProvider,
    style: StatementStyle,
    payment_link: PaymentLink,
    on_payment_link: Optional[PaymentLinkCallback] = None,
) -> List[Section]:
    """Statement sections in their fixed reading order."""
    links = bank_links(config)
    bank_logos: Dict[str, Optional[LogoImage]] = {link.name: assets.load(link.asset) for link in links}

    return [
        HeaderSection(config, assets.load(config.municipal_logo_asset), style),
        CustomerInfoSection(model, style),
        TableSection(METER_TEMPLATE, meter_rows(model), style),
        TableSection(ACCOUNT_DETAILS_TEMPLATE, account_rows(model), style),
        TableSection(AGING_TEMPLATE, aging_rows(model), style),
        RemittanceSection(model, style),
        BankLogoSection(links, bank_logos, config.bank_logo_caption, style),
        PaymentLogoSection(
            payment_link,
            assets.load(config.payment_logo_asset),
            config.payment_logo_caption,
            config.payment_provider_name,
            style,
            on_payment_link=on_payment_link,
        ),
        DisclaimerSection(config, style),
    ]


def write_page_footers(document: Document, layout: PageLayout, style: StatementStyle) -> None:
    """Second pass: stamp 'Page N of M' on every emitted page."""
    total = document.page_count
    x = layout.page_width / 2
    y = layout.page_height - layout.margin_bottom / 2
    for page_index in range(total):
        document.go_to_page(page_index)
        document.text(x, y, f"Page {page_index + 1} of {total}", style.font_family,
                      style.footer_font_size, align="center")


def render_statement(
    model: StatementModel,
    config: EngineConfig,
    assets: AssetProvider,
    style: StatementStyle = DEFAULT_STYLE,
    on_payment_link: Optional[PaymentLinkCallback] = None,
) -> Document:
    """
    Lay out and draw a statement model into a new document.

    The layout is planned first, then every placement is drawn on its page;
    the outer frame is drawn on each page before its content.
    """
    layout = PageLayout.from_config(config)
    engine = LayoutEngine(layout)
    payment_link = resolve_payment_link(model, config.payment_origin)

    sections = build_sections(model, config, assets, style, payment_link, on_payment_link)
    placements = engine.plan(sections)

    title = f"{config.document_title} {model.account_number} {model.period}"
    document = Document(layout.page_width, layout.page_height, title=title)
    draw_frame(document, layout, style)

    for placement in placements:
        while document.current_page < placement.page_index:
            document.page_break()
            draw_frame(document, layout, style)
        placement.section.draw(document, placement.x, placement.y, placement.width)

    write_page_footers(document, layout, style)
    log.debug("Laid out %d sections over %d page(s)", len(placements), document.page_count)
    return document


async def generate_statement(
    request: StatementRequest,
    store: DocumentStore,
    config: Optional[EngineConfig] = None,
    assets: Optional[AssetProvider] = None,
    on_payment_link: Optional[PaymentLinkCallback] = None,
    today: Optional[date] = None,
    style: StatementStyle = DEFAULT_STYLE,
) -> GeneratedStatement:
    """
    Generate the statement PDF for one account and period.

    Raises:
        PeriodValidationError: If the year or month is malformed, before any read.
        CustomerNotFoundError: If the account master cannot be read.
    """
    period = request.period
    config = config or EngineConfig()
    assets = assets or FileAssetProvider(config.asset_dir)

    log.info("Generating statement for account %s period %s", request.account_number, period)
    sources = await fetch_sources(store, request.account_number, period)
    model = build_statement_model(sources, period, config.banking, request.account_number)

    resolved: List[PaymentLink] = []

    def capture(link: PaymentLink) -> None:
        resolved.append(link)
        if on_payment_link is not None:
            on_payment_link(link)

    document = render_statement(model, config, assets, style, on_payment_link=capture)
    content = document.output()

    generated_on = today or date.today()
    filename = statement_filename(model.account_number, generated_on)
    log.info("Rendered %s (%d page(s), %d bytes)", filename, document.page_count, len(content))

    return GeneratedStatement(
        filename=filename,
        content=content,
        model=model,
        page_count=document.page_count,
        payment_link=resolved[-1] if resolved else resolve_payment_link(model, config.payment_origin),
    )


def generate_statement_sync(request: StatementRequest, store: DocumentStore, **kwargs) -> GeneratedStatement:
    """Run ``generate_statement`` to completion on a fresh event loop."""
    return asyncio.run(generate_statement(request, store, **kwargs))
