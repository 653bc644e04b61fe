"""Render-ready table view: header cells, body cells and row metadata."""

from dataclasses import dataclass, field
from typing import Any

from tabula.config import TableConfig
from tabula.engine.capabilities import safe_call, safe_dict, safe_render
from tabula.engine.columns import Column, HeaderCell, format_cell_value, table_min_width
from tabula.engine.detail_rows import DetailState
from tabula.engine.fixed import FixedOffsets, is_first_fixed_right, is_last_fixed_left
from tabula.engine.sorting import SortState
from tabula.engine.tree_data import TreeNode

DETAIL_NOT_CONFIGURED = '<div class="detail-empty">No detail renderer configured</div>'
DETAIL_BAD_RESULT = '<div class="detail-empty">Detail renderer must return an HTML string</div>'
DETAIL_FAILED = '<div class="detail-error">Detail renderer failed</div>'
_FAILED = object()


@dataclass
class TableView:
    """Everything a renderer needs for one frame."""

    header_rows: list[list[dict[str, Any]]]
    columns: list[dict[str, Any]]
    widths: list[int]
    min_width: int | None
    fixed: FixedOffsets
    rows: list[dict[str, Any]]
    sort: SortState
    settings: dict[str, Any]
    header_style: dict[str, Any] = field(default_factory=dict)
    empty: bool = False
    empty_text: str = ""
    tree: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "headerRows": self.header_rows,
            "columns": self.columns,
            "widths": self.widths,
            "minWidth": self.min_width,
            "fixed": self.fixed.to_dict(),
            "rows": self.rows,
            "sort": self.sort.to_dict(),
            "settings": self.settings,
            "headerStyle": self.header_style,
            "empty": self.empty,
            "emptyText": self.empty_text,
            "tree": self.tree,
        }


def _detail_html(config: TableConfig, row: dict[str, Any], row_index: int) -> str:
    fn = config.expand_config.expand_render_fn
    if fn is None:
        return DETAIL_NOT_CONFIGURED
    result = safe_call(fn, row, row_index, default=_FAILED, label="expandRenderFn")
    if result is _FAILED:
        return DETAIL_FAILED
    if not isinstance(result, str):
        return DETAIL_BAD_RESULT
    return result


def _header_cells(
    config: TableConfig,
    header_rows: list[list[HeaderCell]],
    leaves: list[Column],
    fixed: FixedOffsets,
    sort_state: SortState,
) -> list[list[dict[str, Any]]]:
    style = config.advanced_style
    out = []
    for cells in header_rows:
        row_out = []
        for col_index, cell in enumerate(cells):
            col = cell.column
            leaf = cell.leaf_index
            entry: dict[str, Any] = {
                "column": col.public(),
                "colSpan": cell.col_span,
                "rowSpan": cell.row_span,
                "fixed": cell.fixed,
                "isLeaf": cell.is_leaf,
                "leafIndex": leaf,
                "sortable": cell.is_leaf and col.sortable,
                "sortOrder": sort_state.order if cell.is_leaf and col.prop == sort_state.prop else None,
                "style": safe_dict(style.header_cell_style_fn, col, col_index, leaf,
                                   label="headerCellStyleFn"),
                "render": safe_render(style.header_cell_render_fn, col, col_index, leaf,
                                      label="headerCellRenderFn"),
            }
            if leaf is not None and leaf < len(leaves):
                entry["fixedLeft"] = fixed.left_offsets[leaf]
                entry["fixedRight"] = fixed.right_offsets[leaf]
                entry["lastFixedLeft"] = is_last_fixed_left(leaves, leaf)
                entry["firstFixedRight"] = is_first_fixed_right(leaves, leaf)
            row_out.append(entry)
        out.append(row_out)
    return out


def _body_row(
    config: TableConfig,
    row: dict[str, Any],
    row_index: int,
    leaves: list[Column],
    boundaries: list[tuple[bool, bool]],
    node: TreeNode | None,
    detail: DetailState,
) -> dict[str, Any]:
    style = config.advanced_style
    expand_cfg = config.expand_config
    is_open = expand_cfg.enabled and detail.is_expanded(row_index)
    cells = []
    for col_index, col in enumerate(leaves):
        if col.is_expand_column:
            cells.append({
                "expandIcon": expand_cfg.collapse_icon if is_open else expand_cfg.expand_icon,
                "lastFixedLeft": boundaries[col_index][0],
                "firstFixedRight": boundaries[col_index][1],
            })
            continue
        if col.is_index_column:
            value: Any = config.index_column.start + row_index
            text = str(value)
        else:
            value = row.get(col.prop) if col.prop else None
            text = format_cell_value(row, col, row_index)
        cell = {
            "text": text,
            "style": safe_dict(style.cell_style_fn, row, col, row_index, col_index, col_index,
                               label="cellStyleFn"),
            "render": safe_render(style.cell_render_fn, row, col, row_index, col_index, col_index, value,
                                  label="cellRenderFn"),
            "lastFixedLeft": boundaries[col_index][0],
            "firstFixedRight": boundaries[col_index][1],
        }
        if expand_cfg.enabled and expand_cfg.icon_column == "first" and col_index == 0:
            cell["expandIcon"] = expand_cfg.collapse_icon if is_open else expand_cfg.expand_icon
        cells.append(cell)

    data = row
    tree_meta = None
    if node is not None:
        children_field = config.tree_config.children_field
        data = {k: v for k, v in row.items() if k != children_field}
        tree_meta = node.meta() | {"indent": node.level * config.tree_config.indent}

    out: dict[str, Any] = {
        "index": row_index,
        "data": data,
        "cells": cells,
        "style": safe_dict(style.row_style_fn, row, row_index, label="rowStyleFn"),
        "striped": config.table_style.stripe and row_index % 2 == 1,
        "tree": tree_meta,
        "detailExpanded": is_open,
    }
    if is_open:
        out["detailHtml"] = _detail_html(config, row, row_index)
    return out


def build_view(
    config: TableConfig,
    header_rows: list[list[HeaderCell]],
    leaves: list[Column],
    widths: list[int],
    fixed: FixedOffsets,
    rows: list[dict[str, Any]],
    tree_nodes: list[TreeNode] | None,
    sort_state: SortState,
    detail: DetailState,
    current_row: int | None = None,
) -> TableView:
    """Assemble the view; style and render capabilities are applied here."""
    settings = config.table_style
    boundaries = [(is_last_fixed_left(leaves, i), is_first_fixed_right(leaves, i)) for i in range(len(leaves))]
    body = [
        _body_row(config, row, i, leaves, boundaries,
                  tree_nodes[i] if tree_nodes is not None else None, detail)
        for i, row in enumerate(rows)
    ]
    if settings.highlight_current_row and current_row is not None and 0 <= current_row < len(body):
        body[current_row]["current"] = True

    return TableView(
        header_rows=_header_cells(config, header_rows, leaves, fixed, sort_state) if settings.show_header else [],
        columns=[col.public() for col in leaves],
        widths=list(widths),
        min_width=table_min_width(widths),
        fixed=fixed,
        rows=body,
        sort=sort_state,
        settings=settings.model_dump(by_alias=True),
        header_style=safe_dict(config.advanced_style.header_style_fn, label="headerStyleFn"),
        empty=not rows,
        empty_text=settings.empty_text,
        tree=tree_nodes is not None,
    )
