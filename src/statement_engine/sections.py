"""Statement sections: each measures its own height and draws at a given offset.

Sections are positioned by ``LayoutEngine.plan`` and drawn onto any
``DrawingSurface``. All coordinates are top-down points.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from reportlab.lib.units import mm

from .assets import LogoImage
from .config import EngineConfig
from .layout_engine import PageLayout, layout_grid_cells, layout_grid_rows
from .models import StatementModel, format_money
from .payment_links import BankLink, PaymentLink
from .renderer import DrawingSurface, text_width, truncate_text
from .styles import StatementStyle, get_bold_font
from .tables import TableTemplate, compute_column_widths, header_row

log = logging.getLogger(__name__)

MUNICIPAL_LOGO_SIZE = (50 * mm, 25 * mm)
BANK_LOGO_SIZE = (10 * mm, 7 * mm)
BANK_LOGO_GAP = 3 * mm
PAYMENT_LOGO_SIZE = (24 * mm, 8 * mm)
CAPTION_HEIGHT = 4 * mm
DISCLAIMER_LINE_HEIGHT = 3.2 * mm


def _baseline(y_top: float, height: float, font_size: float) -> float:
    """Baseline that vertically centres a single line of text in a band."""
    return y_top + (height + font_size * 0.7) / 2


def draw_frame(surface: DrawingSurface, layout: PageLayout, style: StatementStyle) -> None:
    """Outer border drawn on every page."""
    x, y, width, height = layout.frame_rect
    surface.rect(x, y, width, height, stroke_color=style.grid_color,
                 line_width=style.frame_line_width)


def draw_logo(
    surface: DrawingSurface,
    logo: Optional[LogoImage],
    x: float,
    y: float,
    width: float,
    height: float,
    label: str,
    style: StatementStyle,
) -> bool:
    """Draw a logo image, or a labelled placeholder box when none is available.

    Returns True when the real image was drawn.
    """
    if logo is not None:
        surface.image(x, y, width, height, logo.data)
        return True

    surface.rect(x, y, width, height, stroke_color=style.placeholder_stroke,
                 fill_color=style.placeholder_fill, line_width=0.5)
    font_size = min(style.small_font_size, height * 0.6)
    display = truncate_text(label, width - 2, style.font_family, font_size)
    surface.text(x + width / 2, _baseline(y, height, font_size), display,
                 style.font_family, font_size, color=style.placeholder_stroke, align="center")
    return False


class Section:
    """Base class for a block of statement content."""

    name = "section"

    def measure(self, width: float) -> float:
        raise NotImplementedError

    def draw(self, surface: DrawingSurface, x: float, y: float, width: float) -> None:
        raise NotImplementedError

    def split(self, max_height: float, width: float) -> Optional[Tuple["Section", "Section"]]:
        """Split into a part fitting ``max_height`` and a remainder; None if unsplittable."""
        return None


class HeaderSection(Section):
    """Municipal logo, name and contact lines, then the document title band."""

    name = "header"

    def __init__(self, config: EngineConfig, logo: Optional[LogoImage], style: StatementStyle):
        self.config = config
        self.logo = logo
        self.style = style

    @property
    def _line_height(self) -> float:
        return self.style.font_size * 1.35

    def _identity_height(self) -> float:
        text_height = self.style.heading_font_size * 1.6 + len(self.config.contact_lines) * self._line_height
        return max(MUNICIPAL_LOGO_SIZE[1], text_height)

    def _title_height(self) -> float:
        return self.style.title_font_size * 2.2

    def measure(self, width: float) -> float:
        return self._identity_height() + self._title_height()

    def draw(self, surface, x, y, width):
        style = self.style
        bold_font = get_bold_font(style.font_family)
        logo_w, logo_h = MUNICIPAL_LOGO_SIZE

        draw_logo(surface, self.logo, x, y, logo_w, logo_h, self.config.municipality_short_name, style)

        # Municipality identity, right aligned
        right = x + width
        text_y = y + style.heading_font_size * 1.2
        surface.text(right, text_y, self.config.municipality_name, bold_font,
                     style.heading_font_size, align="right")
        text_y += style.heading_font_size * 0.4
        for line in self.config.contact_lines:
            text_y += self._line_height
            surface.text(right, text_y, line, style.font_family, style.font_size, align="right")

        # Title band between two rules
        band_top = y + self._identity_height()
        band_height = self._title_height()
        surface.line(x, band_top, right, band_top, width=style.rule_line_width)
        surface.text(x + width / 2, _baseline(band_top, band_height, style.title_font_size),
                     self.config.document_title, bold_font, style.title_font_size, align="center")
        surface.line(x, band_top + band_height, right, band_top + band_height,
                     width=style.thin_rule_width)


def _label_value_rows(model: StatementModel) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]]]:
    left = [
        ("Account Number", model.account_number),
        ("Consumer Name", model.account_holder_name),
        ("Postal Address", model.postal_address),
        ("Postal Code", model.postal_code),
    ]
    right = [
        ("Account Date", model.period.statement_date),
        ("Tax Invoice No.", model.tax_invoice_number),
        ("VAT Registration No.", model.vat_reg_number),
        ("ERF Number", model.erf_number),
        ("Property Value", format_money(model.property_valuation)),
        ("Street Address", model.street_address),
        ("Town", model.town),
    ]
    return left, right


class CustomerInfoSection(Section):
    """Two columns of account and property details."""

    name = "customer_info"

    def __init__(self, model: StatementModel, style: StatementStyle):
        self.model = model
        self.style = style

    def measure(self, width: float) -> float:
        left, right = _label_value_rows(self.model)
        return max(len(left), len(right)) * self.style.detail_row_height + self.style.cell_padding * 2

    def _draw_column(self, surface, rows, x, y, width):
        style = self.style
        bold_font = get_bold_font(style.font_family)
        label_width = max(text_width(f"{label}:", bold_font, style.font_size) for label, _ in rows)
        value_x = x + label_width + style.cell_padding * 2
        value_width = x + width - value_x - style.cell_padding

        row_y = y + style.cell_padding
        for label, value in rows:
            baseline = _baseline(row_y, style.detail_row_height, style.font_size)
            surface.text(x, baseline, f"{label}:", bold_font, style.font_size)
            display = truncate_text(value, value_width, style.font_family, style.font_size)
            surface.text(value_x, baseline, display, style.font_family, style.font_size)
            row_y += style.detail_row_height

    def draw(self, surface, x, y, width):
        left, right = _label_value_rows(self.model)
        column_width = width / 2
        self._draw_column(surface, left, x, y, column_width - self.style.cell_padding)
        self._draw_column(surface, right, x + column_width, y, column_width)


class TableSection(Section):
    """A titled grid with a bold header row and one row per record.

    Tables taller than a page split by rows; the header repeats on each part
    and the closing rules are drawn only under the final part.
    """

    def __init__(
        self,
        template: TableTemplate,
        rows: Sequence[Sequence[str]],
        style: StatementStyle,
        continued: bool = False,
        closing: bool = True,
    ):
        self.template = template
        self.rows = [list(row) for row in rows]
        self.style = style
        self.continued = continued
        self.closing = closing

    @property
    def name(self) -> str:
        return self.template.table_type.value.lower()

    @property
    def title(self) -> Optional[str]:
        if self.template.title and self.continued:
            return f"{self.template.title} (continued)"
        return self.template.title

    def _title_height(self) -> float:
        return self.style.row_height * 1.3 if self.template.title else 0.0

    def _closing_height(self) -> float:
        return 2 * mm if self.template.closing_rules and self.closing else 0.0

    def _fixed_height(self) -> float:
        return self._title_height() + self.style.row_height + self._closing_height()

    def measure(self, width: float) -> float:
        return self._fixed_height() + len(self.rows) * self.style.row_height

    def split(self, max_height, width):
        fits = int((max_height - self._fixed_height()) // self.style.row_height)
        if fits < 1 or fits >= len(self.rows):
            return None
        head = TableSection(self.template, self.rows[:fits], self.style,
                            continued=self.continued, closing=False)
        tail = TableSection(self.template, self.rows[fits:], self.style,
                            continued=True, closing=self.closing)
        return head, tail

    def _draw_title(self, surface, x, y, width):
        style = self.style
        height = self._title_height()
        surface.rect(x, y, width, height, stroke_color=style.grid_color,
                     fill_color=style.label_bg_color, line_width=style.grid_line_width)
        surface.text(x + width / 2, _baseline(y, height, style.heading_font_size), self.title,
                     get_bold_font(style.font_family), style.heading_font_size, align="center")

    def _draw_cell_text(self, surface, cell, alignment, font_name, font_size):
        padding = self.style.cell_padding
        available_width = cell.width - (2 * padding)
        display_text = truncate_text(cell.text, available_width, font_name, font_size)
        baseline = _baseline(cell.y_top, cell.y_bottom - cell.y_top, font_size)

        if alignment == "right":
            surface.text(cell.x + cell.width - padding, baseline, display_text, font_name,
                         font_size, align="right")
        elif alignment == "center":
            surface.text(cell.x + cell.width / 2, baseline, display_text, font_name,
                         font_size, align="center")
        else:  # left
            surface.text(cell.x + padding, baseline, display_text, font_name, font_size)

    def _draw_grid_lines(self, surface, x, width, row_positions, col_widths):
        style = self.style
        y_top = row_positions[0].y_top
        y_bottom = row_positions[-1].y_bottom

        surface.line(x, y_top, x + width, y_top, width=style.grid_line_width, color=style.grid_color)
        for row_pos in row_positions:
            surface.line(x, row_pos.y_bottom, x + width, row_pos.y_bottom,
                         width=style.grid_line_width, color=style.grid_color)

        col_x = x
        for col_width in col_widths:
            surface.line(col_x, y_top, col_x, y_bottom, width=style.grid_line_width, color=style.grid_color)
            col_x += col_width
        surface.line(col_x, y_top, col_x, y_bottom, width=style.grid_line_width, color=style.grid_color)

    def draw(self, surface, x, y, width):
        style = self.style
        if self.template.title:
            self._draw_title(surface, x, y, width)
        grid_top = y + self._title_height()

        col_widths = compute_column_widths(self.template, width)
        row_positions = layout_grid_rows(grid_top, style.row_height, style.row_height, len(self.rows))
        cells = layout_grid_cells(x, col_widths, row_positions, [header_row(self.template)] + self.rows)

        bold_font = get_bold_font(style.font_family)
        for cell in cells:
            if cell.row_index == 0:
                self._draw_cell_text(surface, cell, self.template.header_alignment,
                                     bold_font, style.table_font_size)
            else:
                spec = self.template.column_specs[cell.col_index]
                self._draw_cell_text(surface, cell, spec.alignment,
                                     style.font_family, style.table_font_size)

        self._draw_grid_lines(surface, x, width, row_positions, col_widths)

        if self.template.closing_rules and self.closing:
            rule_y = row_positions[-1].y_bottom + 0.8 * mm
            surface.line(x, rule_y, x + width, rule_y, width=style.thin_rule_width)
            surface.line(x, rule_y + 0.8 * mm, x + width, rule_y + 0.8 * mm, width=style.thin_rule_width)


class RemittanceSection(Section):
    """Remittance advice beside the municipal banking details."""

    name = "remittance"

    def __init__(self, model: StatementModel, style: StatementStyle):
        self.model = model
        self.style = style

    def _columns(self) -> List[Tuple[str, List[Tuple[str, str]]]]:
        model = self.model
        banking = model.banking
        return [
            ("REMITTANCE ADVICE", [
                ("ACCOUNT NUMBER", model.account_number),
                ("CONSUMER NAME", model.account_holder_name),
                ("TOTAL DUE", format_money(model.closing_balance)),
                ("TOTAL DUE ON OR BEFORE", model.period.due_date),
            ]),
            ("BANKING DETAILS", [
                ("BANK NAME", banking.bank_name),
                ("ACCOUNT NAME", banking.account_name),
                ("ACCOUNT NUMBER", banking.account_number),
                ("BRANCH CODE", banking.branch_code),
                ("REFERENCE", banking.reference),
            ]),
        ]

    def measure(self, width: float) -> float:
        longest = max(len(rows) for _, rows in self._columns())
        return self.style.row_height * 1.3 + longest * self.style.detail_row_height

    def _draw_column(self, surface, heading, rows, x, y, width):
        style = self.style
        bold_font = get_bold_font(style.font_family)
        heading_height = style.row_height * 1.3
        surface.text(x, _baseline(y, heading_height, style.heading_font_size), heading,
                     bold_font, style.heading_font_size)
        surface.line(x, y + heading_height, x + width, y + heading_height,
                     width=style.grid_line_width)

        # Grey label background runs up to the colon
        label_width = max(text_width(f"{label}:", bold_font, style.font_size) for label, _ in rows)
        label_width += style.cell_padding * 2
        value_x = x + label_width + style.cell_padding
        value_width = x + width - value_x

        row_y = y + heading_height
        for label, value in rows:
            surface.rect(x, row_y, label_width, style.detail_row_height, stroke_color=None,
                         fill_color=style.label_bg_color)
            baseline = _baseline(row_y, style.detail_row_height, style.font_size)
            surface.text(x + style.cell_padding, baseline, f"{label}:", bold_font, style.font_size)
            display = truncate_text(value, value_width, style.font_family, style.font_size)
            surface.text(value_x, baseline, display, style.font_family, style.font_size)
            row_y += style.detail_row_height

    def draw(self, surface, x, y, width):
        column_width = width / 2
        gutter = 3 * mm
        for index, (heading, rows) in enumerate(self._columns()):
            column_x = x + index * column_width
            self._draw_column(surface, heading, rows, column_x, y, column_width - gutter)


class BankLogoSection(Section):
    """Caption and a centred strip of bank logos, each linked to its bank."""

    name = "bank_logos"

    def __init__(
        self,
        links: List[BankLink],
        logos: Dict[str, Optional[LogoImage]],
        caption: str,
        style: StatementStyle,
    ):
        self.links = links
        self.logos = logos
        self.caption = caption
        self.style = style

    def measure(self, width: float) -> float:
        return CAPTION_HEIGHT + BANK_LOGO_SIZE[1]

    def draw(self, surface, x, y, width):
        style = self.style
        surface.text(x + width / 2, _baseline(y, CAPTION_HEIGHT, style.small_font_size), self.caption,
                     get_bold_font(style.font_family), style.small_font_size, align="center")

        logo_w, logo_h = BANK_LOGO_SIZE
        strip_width = len(self.links) * logo_w + max(len(self.links) - 1, 0) * BANK_LOGO_GAP
        logo_x = x + (width - strip_width) / 2
        logo_y = y + CAPTION_HEIGHT
        for link in self.links:
            draw_logo(surface, self.logos.get(link.name), logo_x, logo_y, logo_w, logo_h, link.label, style)
            surface.link(logo_x, logo_y, logo_w, logo_h, link.url)
            logo_x += logo_w + BANK_LOGO_GAP


class PaymentLogoSection(Section):
    """Payment-provider logo carrying the customer's personalised payment link."""

    name = "payment_logo"

    def __init__(
        self,
        payment_link: PaymentLink,
        logo: Optional[LogoImage],
        caption: str,
        provider_name: str,
        style: StatementStyle,
        on_payment_link: Optional[Callable[[PaymentLink], None]] = None,
    ):
        self.payment_link = payment_link
        self.logo = logo
        self.caption = caption
        self.provider_name = provider_name
        self.style = style
        self.on_payment_link = on_payment_link

    def measure(self, width: float) -> float:
        return CAPTION_HEIGHT + PAYMENT_LOGO_SIZE[1]

    def draw(self, surface, x, y, width):
        style = self.style
        surface.text(x + width / 2, _baseline(y, CAPTION_HEIGHT, style.small_font_size), self.caption,
                     get_bold_font(style.font_family), style.small_font_size, align="center")

        logo_w, logo_h = PAYMENT_LOGO_SIZE
        logo_x = x + (width - logo_w) / 2
        logo_y = y + CAPTION_HEIGHT
        draw_logo(surface, self.logo, logo_x, logo_y, logo_w, logo_h, self.provider_name, style)
        surface.link(logo_x, logo_y, logo_w, logo_h, self.payment_link.url)
        log.debug("Bound payment link %s", self.payment_link.url)

        if self.on_payment_link is not None:
            self.on_payment_link(self.payment_link)


class DisclaimerSection(Section):
    """Closing notice; the last line carries a link to the consumer portal."""

    name = "disclaimer"

    def __init__(self, config: EngineConfig, style: StatementStyle):
        self.config = config
        self.style = style

    def measure(self, width: float) -> float:
        return len(self.config.disclaimer_lines) * DISCLAIMER_LINE_HEIGHT + self.style.cell_padding

    def draw(self, surface, x, y, width):
        style = self.style
        font = style.font_family
        size = style.disclaimer_font_size
        lines = self.config.disclaimer_lines
        if not lines:
            return

        line_y = y
        for line in lines[:-1]:
            line_y += DISCLAIMER_LINE_HEIGHT
            surface.text(x, line_y, truncate_text(line, width, font, size), font, size)

        # Last line: lead-in, linked portal address, suffix
        line_y += DISCLAIMER_LINE_HEIGHT
        lead = lines[-1]
        surface.text(x, line_y, lead, font, size)
        link_x = x + text_width(lead, font, size)
        link_text = self.config.disclaimer_link_text
        link_w = text_width(link_text, font, size)
        surface.text(link_x, line_y, link_text, font, size, color=style.link_color)
        surface.line(link_x, line_y + 0.8, link_x + link_w, line_y + 0.8, width=0.4, color=style.link_color)
        surface.link(link_x, line_y - size, link_w, size * 1.3, self.config.disclaimer_link_url)
        surface.text(link_x + link_w, line_y, self.config.disclaimer_suffix, font, size)
