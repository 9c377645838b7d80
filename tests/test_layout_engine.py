from reportlab.lib.units import mm

from statement_engine.config import EngineConfig
from statement_engine.layout_engine import (
    LayoutEngine, PageLayout, layout_grid_cells, layout_grid_rows
)
from statement_engine.sections import TableSection
from statement_engine.styles import DEFAULT_STYLE
from statement_engine.tables import ACCOUNT_DETAILS_TEMPLATE


class Block:
    """Fixed-height stand-in for a statement section."""

    def __init__(self, name, height):
        self.name = name
        self.height = height

    def measure(self, width):
        return self.height

    def split(self, max_height, width):
        return None


def _layout():
    return PageLayout(
        page_width=200, page_height=300, margin_left=10, margin_right=10,
        margin_top=10, margin_bottom=10, section_gap=5,
    )


def test_layout_from_config_uses_millimetres():
    config = EngineConfig(margin_top_mm=10, margin_bottom_mm=20)
    layout = PageLayout.from_config(config)

    assert layout.margin_top == 10 * mm
    assert layout.content_bottom == layout.page_height - 20 * mm
    assert layout.content_width == layout.page_width - 24 * mm


def test_sections_stack_downward_with_gap():
    engine = LayoutEngine(_layout())
    placements = engine.plan([Block("a", 50), Block("b", 30)])

    assert [(p.page_index, p.y) for p in placements] == [(0, 10), (0, 65)]
    assert engine.current_y == 100
    assert engine.page_count == 1


def test_section_that_does_not_fit_moves_to_next_page():
    engine = LayoutEngine(_layout())
    placements = engine.plan([Block("a", 200), Block("b", 100)])

    # 10 + 200 + 5 = 215; 215 + 100 > 290
    assert placements[1].page_index == 1
    assert placements[1].y == 10
    assert engine.page_count == 2


def test_exact_fit_stays_on_page():
    engine = LayoutEngine(_layout())
    placements = engine.plan([Block("a", 275), Block("b", 0)])

    assert placements[0].page_index == 0
    assert placements[0].bottom == 285
    assert placements[1].page_index == 0


def test_oversized_unsplittable_section_is_placed_alone():
    engine = LayoutEngine(_layout())
    placements = engine.plan([Block("a", 20), Block("huge", 400), Block("c", 10)])

    assert [p.page_index for p in placements] == [0, 1, 2]


def test_can_fit_and_new_page():
    engine = LayoutEngine(_layout())
    assert engine.can_fit_on_current_page(280)
    assert not engine.can_fit_on_current_page(281)

    engine.current_y = 200
    assert engine.start_new_page() == 1
    assert engine.current_y == 10
    engine.reset()
    assert engine.current_page == 0


def test_long_table_splits_across_pages():
    layout = PageLayout.from_config(EngineConfig())
    rows = [["2024-10-31", "RAT", f"LINE {i}", "1", "TARIFF", "R 1.00"] for i in range(150)]
    table = TableSection(ACCOUNT_DETAILS_TEMPLATE, rows, DEFAULT_STYLE)

    engine = LayoutEngine(layout)
    placements = engine.plan([table])

    assert len(placements) > 1
    assert sum(len(p.section.rows) for p in placements) == 150
    assert [p.page_index for p in placements] == list(range(len(placements)))
    assert all(p.bottom <= layout.content_bottom for p in placements)
    assert not placements[0].section.continued
    assert all(p.section.continued for p in placements[1:])


def test_row_and_cell_positions():
    rows = layout_grid_rows(y_top=100, header_height=12, row_height=10, num_data_rows=2)
    assert [(r.y_top, r.y_bottom) for r in rows] == [(100, 112), (112, 122), (122, 132)]

    cells = layout_grid_cells(5, [20, 30], rows, [["H1", "H2"], ["a", "b"], ["c", "d"]])
    assert len(cells) == 6
    assert (cells[3].x, cells[3].y_top, cells[3].text) == (25, 112, "b")
