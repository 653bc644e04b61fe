"""Column tree model -- multi-level headers, leaf flattening and widths.

A column configuration is a tree: group headers carry ``children`` and
leaves are bound to a data field through ``prop``. The body is rendered
from the flattened leaves (depth-first, left-to-right), the header from
one row of cells per tree depth.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

FixedSide = Literal["left", "right"]

DEFAULT_SORT_ORDERS: list[str | None] = ["ascending", "descending", None]

INDEX_PROP = "__index__"
EXPAND_PROP = "__expand__"


class Column(BaseModel):
    """Declarative column node (group header or leaf).

    Accepts the host's camelCase keys as well as snake_case names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    prop: str | None = None
    label: str = ""
    width: int | str | None = None
    min_width: int | str | None = Field(default=None, alias="minWidth")
    align: str | None = None
    header_align: str | None = Field(default=None, alias="headerAlign")
    fixed: FixedSide | None = None
    sortable: bool = False
    sort_orders: list[str | None] | None = Field(default=None, alias="sortOrders")
    sort_script: Callable | None = Field(default=None, alias="sortScript")
    formatter: Callable | None = None
    show_overflow_tooltip: bool = Field(default=False, alias="showOverflowTooltip")
    is_index_column: bool = Field(default=False, alias="isIndexColumn")
    is_expand_column: bool = Field(default=False, alias="isExpandColumn")
    children: list["Column"] = Field(default_factory=list)

    @field_validator("fixed", mode="before")
    @classmethod
    def normalize_fixed(cls, v: Any) -> str | None:
        # ``True`` is the legacy spelling of a left pin
        if v is True or v == "left":
            return "left"
        if v == "right":
            return "right"
        if v in (None, False, "", "none"):
            return None
        logger.warning("Ignoring unknown fixed value %r", v)
        return None

    @field_validator("sort_orders", mode="before")
    @classmethod
    def normalize_sort_orders(cls, v: Any) -> list[str | None] | None:
        if v is None:
            return None
        if not isinstance(v, (list, tuple)) or not v:
            logger.warning("Ignoring invalid sortOrders %r", v)
            return None
        return [None if o in (None, "", "none", "null") else o for o in v]

    @field_validator("sort_script", "formatter", mode="before")
    @classmethod
    def require_callable(cls, v: Any) -> Callable | None:
        if v is None or callable(v):
            return v
        logger.warning("Dropping non-callable column capability of type %s", type(v).__name__)
        return None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def cycle(self) -> list[str | None]:
        """The sort order cycle for this column."""
        return self.sort_orders or DEFAULT_SORT_ORDERS

    def public(self) -> dict[str, Any]:
        """JSON-safe description (capabilities and children excluded)."""
        data = self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"sort_script", "formatter", "children"},
        )
        return {k: v for k, v in data.items() if not callable(v)}


Column.model_rebuild()


@dataclass(frozen=True)
class HeaderCell:
    """One header cell of a multi-row header."""

    column: Column
    depth: int
    col_span: int
    row_span: int
    fixed: FixedSide | None
    leaf_index: int | None = None

    @property
    def is_leaf(self) -> bool:
        return self.column.is_leaf


def parse_columns(raw: Any) -> list[Column]:
    """Validate a raw column tree; malformed entries are skipped with a warning."""
    if isinstance(raw, Column):
        return [raw]
    if not isinstance(raw, (list, tuple)):
        return []
    columns: list[Column] = []
    for item in raw:
        if isinstance(item, Column):
            columns.append(item)
            continue
        try:
            columns.append(Column.model_validate(item))
        except Exception as exc:
            logger.warning("Skipping malformed column %r: %s", item, exc)
    return columns


def flatten_columns(columns: list[Column]) -> list[Column]:
    """Return the leaf columns in depth-first order, with inherited ``fixed``."""
    result: list[Column] = []

    def walk(cols: list[Column], parent_fixed: FixedSide | None) -> None:
        for col in cols:
            fixed = col.fixed or parent_fixed
            if col.children:
                walk(col.children, fixed)
            else:
                result.append(col.model_copy(update={"fixed": fixed}))

    walk(columns, None)
    return result


def get_header_row_count(columns: list[Column]) -> int:
    """Depth of the deepest leaf (at least 1)."""
    max_depth = 1

    def walk(cols: list[Column], depth: int) -> None:
        nonlocal max_depth
        for col in cols:
            if col.children:
                walk(col.children, depth + 1)
            else:
                max_depth = max(max_depth, depth)

    walk(columns, 1)
    return max_depth


def get_col_span(column: Column) -> int:
    if not column.children:
        return 1
    return sum(get_col_span(child) for child in column.children) or 1


def get_row_span(column: Column, depth: int, max_depth: int) -> int:
    # Leaves reach down to the bottom header row
    if not column.children:
        return max_depth - depth + 1
    return 1


def convert_to_header_rows(columns: list[Column]) -> list[list[HeaderCell]]:
    """Lay the column tree out as header rows, one list per depth."""
    max_depth = get_header_row_count(columns)
    rows: list[list[HeaderCell]] = [[] for _ in range(max_depth)]
    leaf_counter = 0

    def walk(cols: list[Column], depth: int, parent_fixed: FixedSide | None) -> None:
        nonlocal leaf_counter
        for col in cols:
            fixed = col.fixed or parent_fixed
            leaf_index = None
            if not col.children:
                leaf_index = leaf_counter
                leaf_counter += 1
            rows[depth - 1].append(HeaderCell(
                column=col,
                depth=depth,
                col_span=get_col_span(col),
                row_span=get_row_span(col, depth, max_depth),
                fixed=fixed,
                leaf_index=leaf_index,
            ))
            if col.children:
                walk(col.children, depth + 1, fixed)

    walk(columns, 1, None)
    return rows


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_width(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        m = _LEADING_INT.match(value)
        return int(m.group(1)) if m else 0
    return 0


def calculate_column_widths(leaves: list[Column]) -> list[int]:
    """Pixel width per leaf: ``width``, else ``minWidth``, else 0 (auto)."""
    widths = []
    for col in leaves:
        if col.width:
            widths.append(_parse_width(col.width))
        elif col.min_width:
            widths.append(_parse_width(col.min_width))
        else:
            widths.append(0)
    return widths


def table_min_width(widths: list[int], default_width: int = 100) -> int | None:
    """Sum of leaf widths with auto columns counted at *default_width*."""
    total = sum(w or default_width for w in widths)
    return total if total > 0 else None


def generate_columns_from_data(rows: list[Any]) -> list[Column]:
    """Derive one plain column per key of the first row."""
    if not rows or not isinstance(rows[0], dict):
        return []
    return [Column(prop=str(key), label=str(key), sortable=False) for key in rows[0]]


def format_cell_value(row: dict[str, Any], column: Column, index: int) -> str:
    """Display text for a body cell."""
    value = row.get(column.prop) if column.prop else None
    if column.formatter is not None:
        try:
            return column.formatter(row, column, value, index)
        except Exception:
            logger.exception("Formatter for column %s failed", column.prop)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
