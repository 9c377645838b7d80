"""Table templates and row data for the statement's grid sections."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .models import StatementModel, format_money, format_quantity


class TableType(Enum):
    """Grid sections of a statement."""
    METER_READINGS = "METER_READINGS"
    ACCOUNT_DETAILS = "ACCOUNT_DETAILS"
    AGING = "AGING"


@dataclass(frozen=True)
class ColumnSpec:
    """Specification for a table column."""
    name: str  # Header label
    width_ratio: float  # Relative width (fractions that sum to 1.0)
    alignment: str = "left"  # "left", "center", "right"


@dataclass(frozen=True)
class TableTemplate:
    """Column layout and title band for one grid section."""
    table_type: TableType
    title: Optional[str]
    column_specs: List[ColumnSpec]
    header_alignment: str = "left"
    # Double rule drawn under the table (aging block closes the account section)
    closing_rules: bool = False


METER_TEMPLATE = TableTemplate(
    table_type=TableType.METER_READINGS,
    title="METER READINGS",
    column_specs=[
        ColumnSpec("METER NO.", 0.17),
        ColumnSpec("METER TYPE", 0.17),
        ColumnSpec("OLD READING", 0.16),
        ColumnSpec("NEW READING", 0.16),
        ColumnSpec("CONSUMPTION", 0.16),
        ColumnSpec("LEVIED AMOUNT", 0.18),
    ],
)

ACCOUNT_DETAILS_TEMPLATE = TableTemplate(
    table_type=TableType.ACCOUNT_DETAILS,
    title="ACCOUNT DETAILS",
    column_specs=[
        ColumnSpec("DATE", 0.14),
        ColumnSpec("CODE", 0.10),
        ColumnSpec("DESCRIPTION", 0.38),
        ColumnSpec("UNITS", 0.08),
        ColumnSpec("TARIFF", 0.16),
        ColumnSpec("VALUE", 0.14),
    ],
)

AGING_TEMPLATE = TableTemplate(
    table_type=TableType.AGING,
    title=None,
    column_specs=[
        ColumnSpec("120+ DAYS", 0.16, "center"),
        ColumnSpec("90 DAYS", 0.16, "center"),
        ColumnSpec("60 DAYS", 0.16, "center"),
        ColumnSpec("30 DAYS", 0.16, "center"),
        ColumnSpec("CURRENT", 0.16, "center"),
        ColumnSpec("CLOSING BALANCE", 0.20, "center"),
    ],
    header_alignment="center",
    closing_rules=True,
)


def compute_column_widths(template: TableTemplate, total_width: float) -> List[float]:
    """Compute absolute column widths from template ratios."""
    return [spec.width_ratio * total_width for spec in template.column_specs]


def header_row(template: TableTemplate) -> List[str]:
    return [spec.name for spec in template.column_specs]


def meter_rows(model: StatementModel) -> List[List[str]]:
    """One row per meter reading; the model always holds at least a placeholder."""
    return [
        [
            line.meter_number,
            line.meter_type,
            format_quantity(line.prev_read),
            format_quantity(line.curr_read),
            format_quantity(line.consumption),
            format_money(line.total_levied),
        ]
        for line in model.meter_readings
    ]


def account_rows(model: StatementModel) -> List[List[str]]:
    """Levy lines in billing order, opening balance first."""
    return [
        [item.date, item.code, item.description, item.units, item.tariff, format_money(item.value)]
        for item in model.levied_lines
    ]


def aging_rows(model: StatementModel) -> List[List[str]]:
    values = list(model.aging.as_row()) + [model.closing_balance]
    return [[format_money(v) for v in values]]
