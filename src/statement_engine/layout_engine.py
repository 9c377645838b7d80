"""Layout engine for placing statement sections on pages.

Positions are measured in points from the top-left corner of the page; the
cursor ``current_y`` moves downward as sections are placed.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm

from .config import EngineConfig

log = logging.getLogger(__name__)

A4_WIDTH, A4_HEIGHT = A4  # 595.27 x 841.89 points


@dataclass
class PageLayout:
    """Page size, margins and spacing in points."""
    page_width: float = A4_WIDTH
    page_height: float = A4_HEIGHT
    margin_left: float = 12 * mm
    margin_right: float = 12 * mm
    margin_top: float = 12 * mm
    margin_bottom: float = 16 * mm
    frame_inset: float = 6 * mm  # Outer border distance from the page edge
    section_gap: float = 2 * mm

    @classmethod
    def from_config(cls, config: EngineConfig) -> "PageLayout":
        return cls(
            margin_left=config.margin_left_mm * mm,
            margin_right=config.margin_right_mm * mm,
            margin_top=config.margin_top_mm * mm,
            margin_bottom=config.margin_bottom_mm * mm,
            frame_inset=config.frame_inset_mm * mm,
            section_gap=config.section_gap_mm * mm,
        )

    @property
    def content_width(self) -> float:
        return self.page_width - (self.margin_left + self.margin_right)

    @property
    def content_start_x(self) -> float:
        return self.margin_left

    @property
    def content_start_y(self) -> float:
        return self.margin_top

    @property
    def content_bottom(self) -> float:
        """Lowest y a section may reach before a page break."""
        return self.page_height - self.margin_bottom

    @property
    def frame_rect(self) -> Tuple[float, float, float, float]:
        """Outer border as (x, y_top, width, height)."""
        inset = self.frame_inset
        return (inset, inset, self.page_width - 2 * inset, self.page_height - 2 * inset)


@dataclass
class SectionPlacement:
    """A section pinned to a page at a vertical offset."""
    section: Any
    page_index: int
    x: float
    y: float  # Top of section
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class GridRow:
    """Vertical band of one table row; index 0 is the header."""
    index: int
    y_top: float
    y_bottom: float

    @property
    def height(self) -> float:
        return self.y_bottom - self.y_top


@dataclass
class GridCell:
    """One cell box of a table grid with its text."""
    row_index: int
    col_index: int
    x: float
    y_top: float
    y_bottom: float
    width: float
    text: str


class LayoutEngine:
    """Cursor over the page sequence; decides page breaks for each section.

    One engine serves exactly one statement: the cursor is never shared
    between documents.
    """

    def __init__(self, layout: Optional[PageLayout] = None):
        self.layout = layout or PageLayout()
        self.reset()

    def reset(self):
        self.current_page = 0
        self.current_y = self.layout.content_start_y

    @property
    def at_page_top(self) -> bool:
        return self.current_y <= self.layout.content_start_y

    @property
    def available_height(self) -> float:
        return self.layout.content_bottom - self.current_y

    @property
    def page_count(self) -> int:
        return self.current_page + 1

    def can_fit_on_current_page(self, height: float) -> bool:
        return self.current_y + height <= self.layout.content_bottom

    def start_new_page(self) -> int:
        """Advance to the top of the next page; returns its index."""
        self.current_page += 1
        self.current_y = self.layout.content_start_y
        return self.current_page

    def _place_here(self, section: Any, height: float) -> SectionPlacement:
        placement = SectionPlacement(
            section=section,
            page_index=self.current_page,
            x=self.layout.content_start_x,
            y=self.current_y,
            width=self.layout.content_width,
            height=height,
        )
        self.current_y += height + self.layout.section_gap
        return placement

    def plan(self, sections: Sequence[Any]) -> List[SectionPlacement]:
        """
        Compute placements for sections in order.

        Each section provides ``measure(width)`` and ``split(max_height,
        width)``. A section that does not fit moves to a new page; one that
        is taller than a whole page is split where it supports splitting.
        """
        placements: List[SectionPlacement] = []
        width = self.layout.content_width

        for section in sections:
            pending = section
            while pending is not None:
                height = pending.measure(width)

                if self.can_fit_on_current_page(height):
                    placements.append(self._place_here(pending, height))
                    pending = None
                    continue

                if not self.at_page_top:
                    self.start_new_page()
                    continue

                parts = pending.split(self.available_height, width)
                if parts is None:
                    log.warning(
                        "Section %s (%.1fpt) exceeds page content height; drawing anyway",
                        getattr(pending, "name", pending), height,
                    )
                    placements.append(self._place_here(pending, height))
                    pending = None
                    continue

                head, pending = parts
                placements.append(self._place_here(head, head.measure(width)))
                self.start_new_page()

        return placements


def layout_grid_rows(
    y_top: float,
    header_height: float,
    row_height: float,
    num_data_rows: int,
) -> List[GridRow]:
    """Header band followed by ``num_data_rows`` equal bands, top to bottom."""
    rows = [GridRow(0, y_top, y_top + header_height)]
    for index in range(1, num_data_rows + 1):
        top = rows[-1].y_bottom
        rows.append(GridRow(index, top, top + row_height))
    return rows


def layout_grid_cells(
    start_x: float,
    col_widths: Sequence[float],
    rows: Sequence[GridRow],
    row_texts: Sequence[Sequence[str]],
) -> List[GridCell]:
    """Cell boxes for every row/column pair, left to right within each row."""
    edges = [start_x]
    for width in col_widths:
        edges.append(edges[-1] + width)

    return [
        GridCell(row.index, col, edges[col], row.y_top, row.y_bottom, col_widths[col], text)
        for row, texts in zip(rows, row_texts)
        for col, text in enumerate(texts[:len(col_widths)])
    ]
