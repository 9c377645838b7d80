"""Visual style profile for statement documents."""

from dataclasses import dataclass
from reportlab.lib.colors import Color, HexColor, black, white
from reportlab.lib.units import mm


@dataclass(frozen=True)
class StatementStyle:
    """Fonts, sizes and colours used across statement sections."""
    font_family: str = "Helvetica"
    font_size: float = 8.0
    table_font_size: float = 7.5
    title_font_size: float = 10.0
    heading_font_size: float = 9.0
    small_font_size: float = 6.0
    disclaimer_font_size: float = 6.5
    footer_font_size: float = 6.5
    row_height: float = 4.5 * mm
    detail_row_height: float = 4.0 * mm
    cell_padding: float = 1.0 * mm
    grid_line_width: float = 0.3
    rule_line_width: float = 1.4
    thin_rule_width: float = 0.85
    frame_line_width: float = 2.0
    text_color: Color = black
    grid_color: Color = black
    header_bg_color: Color = white
    label_bg_color: Color = HexColor("#F0F0F0")
    link_color: Color = HexColor("#0000FF")
    placeholder_stroke: Color = HexColor("#007BFF")
    placeholder_fill: Color = HexColor("#F0F8FF")


DEFAULT_STYLE = StatementStyle()


def get_bold_font(font_family: str) -> str:
    """Get the bold variant of a font family."""
    if font_family == "Times-Roman":
        return "Times-Bold"
    elif font_family == "Courier":
        return "Courier-Bold"
    else:
        return f"{font_family}-Bold"
