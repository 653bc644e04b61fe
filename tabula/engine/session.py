"""TableSession -- one widget instance: data and configuration in, view out."""

import logging
from typing import Any, Callable

from tabula.config import ExpandConfig, IndexColumnConfig, TableConfig, TreeConfig
from tabula.engine import detail_rows, tree_data
from tabula.engine.capabilities import safe_call
from tabula.engine.columns import (
    EXPAND_PROP,
    INDEX_PROP,
    Column,
    calculate_column_widths,
    convert_to_header_rows,
    flatten_columns,
    generate_columns_from_data,
    parse_columns,
)
from tabula.engine.fixed import calculate_fixed_positions
from tabula.engine.memo import Memo
from tabula.engine.sorting import SortState, find_column, make_comparator, next_sort_state, sort
from tabula.engine.tree_data import TreeDataEngine, TreeNode, TreeState
from tabula.engine.view import TableView, build_view

logger = logging.getLogger(__name__)

EmitFn = Callable[[str, dict[str, Any]], None]


def as_rows(data: Any) -> list[dict]:
    """Host row data; anything but a list is an empty dataset.

    Entries that are not dicts are dropped. A list without such entries is
    returned as is, so its identity still keys the memoized pipeline.
    """
    if data is None:
        return []
    if isinstance(data, list):
        rows = [row for row in data if isinstance(row, dict)]
        if len(rows) == len(data):
            return data
        logger.warning("Dropping %d non-dict row(s)", len(data) - len(rows))
        return rows
    logger.warning("Ignoring non-list row data of type %s", type(data).__name__)
    return []


def build_columns(
    rows: list[dict],
    configured: list[Column],
    column_script_fn: Callable | None,
    index_cfg: IndexColumnConfig,
    expand_cfg: ExpandConfig,
) -> list[Column]:
    """Effective column tree: scripted, else configured, else derived from the data.

    The detail-expand column (separate mode) and the index column are
    prepended in that order.
    """
    columns: list[Column] = []
    if column_script_fn is not None:
        result = safe_call(column_script_fn, rows, default=None, label="columnScriptFn")
        if isinstance(result, list):
            columns = parse_columns(result)
        elif result is not None:
            logger.warning("columnScriptFn returned %s, expected a list", type(result).__name__)
    elif configured:
        columns = list(configured)
    if not columns:
        columns = generate_columns_from_data(rows)

    special: list[Column] = []
    if expand_cfg.enabled and expand_cfg.icon_column == "separate":
        special.append(Column(
            prop=EXPAND_PROP,
            label=expand_cfg.column_label,
            width=expand_cfg.column_width or 48,
            align="center",
            fixed="left",
            is_expand_column=True,
        ))
    if index_cfg.show:
        special.append(Column(
            prop=INDEX_PROP,
            label=index_cfg.label,
            width=index_cfg.width or 60,
            align=index_cfg.align or "center",
            fixed="left" if index_cfg.fixed else None,
            is_index_column=True,
        ))
    return special + columns


class TableSession:
    """Holds the interaction state of one table widget and renders its view.

    Lifecycle:
        1. Construct with the host's configuration, rows and ``emit`` callback.
        2. ``view()`` runs the pipeline: columns -> leaves -> widths/fixed
           offsets -> sort (or per-level tree sort + flatten) -> detail rows.
           Every step is memoized on its inputs, so repeated calls are cheap
           and side-effect free.
        3. Interaction methods (``toggle_sort``, ``toggle_node``,
           ``toggle_detail``, ``click_row``, ``click_cell``) update state and
           emit host events.
        4. ``set_data()`` replaces the dataset and resets tree/detail state.
    """

    def __init__(
        self,
        configuration: Any = None,
        data: Any = None,
        emit: EmitFn | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self.config = TableConfig.parse(configuration)
        self._rows = as_rows(data)
        self._emit = emit
        self._on_change = on_change
        self.sort_state = SortState.from_default(
            self.config.default_sort.model_dump() if self.config.default_sort else None
        )
        self.current_row: int | None = None
        self._tree = TreeDataEngine(self.config.tree_config, on_change=self._notify)
        self._detail = detail_rows.DetailState()

        self._columns = Memo(build_columns)
        self._leaves = Memo(flatten_columns)
        self._header_rows = Memo(convert_to_header_rows)
        self._widths = Memo(calculate_column_widths)
        self._fixed = Memo(calculate_fixed_positions)
        self._sorted = Memo(sort)
        self._flat_tree = Memo(self._flatten_tree)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def rows(self) -> list[dict]:
        return self._rows

    def set_data(self, data: Any) -> None:
        """Replace the dataset; tree and detail state restart from their defaults."""
        self._rows = as_rows(data)
        self.current_row = None

    def reconfigure(self, configuration: Any) -> None:
        """Swap the configuration; sort state is kept, tree state restarts."""
        self.config = TableConfig.parse(configuration)
        self._tree = TreeDataEngine(self.config.tree_config, on_change=self._notify)
        self._detail = detail_rows.DetailState()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def columns(self) -> list[Column]:
        cfg = self.config
        return self._columns(
            self._rows,
            cfg.column_config.columns,
            cfg.column_script_fn,
            cfg.index_column,
            cfg.expand_config,
        )

    def leaf_columns(self) -> list[Column]:
        return self._leaves(self.columns())

    def sorted_rows(self) -> list[dict]:
        return self._sorted(self._rows, self.leaf_columns(), self.sort_state)

    def tree_state(self) -> TreeState:
        return self._tree.sync(self._rows)

    def tree_nodes(self) -> list[TreeNode] | None:
        """Visible tree rows, or ``None`` when the tree feature is off."""
        if not self._tree.enabled:
            self._tree.sync(self._rows)
            return None
        return self._flat_tree(
            self._rows, self.leaf_columns(), self.sort_state, self.tree_state(), self._tree.config
        )

    def display_rows(self) -> list[dict]:
        nodes = self.tree_nodes()
        if nodes is not None:
            return [node.row for node in nodes]
        return self.sorted_rows()

    def detail_state(self) -> detail_rows.DetailState:
        # detail indices point into the displayed sequence; in tree mode that
        # is the memoized flatten result, which changes on every expand/collapse
        nodes = self.tree_nodes()
        displayed = nodes if nodes is not None else self.sorted_rows()
        self._detail = detail_rows.sync_dataset(self._detail, displayed, self.config.expand_config)
        return self._detail

    def view(self) -> TableView:
        columns = self.columns()
        leaves = self._leaves(columns)
        widths = self._widths(leaves)
        nodes = self.tree_nodes()
        rows = [node.row for node in nodes] if nodes is not None else self.sorted_rows()
        return build_view(
            config=self.config,
            header_rows=self._header_rows(columns),
            leaves=leaves,
            widths=widths,
            fixed=self._fixed(leaves, widths),
            rows=rows,
            tree_nodes=nodes,
            sort_state=self.sort_state,
            detail=self.detail_state(),
            current_row=self.current_row,
        )

    def _flatten_tree(self, rows: list[dict], leaves: list[Column], state: SortState,
                      tree_state: TreeState, tree_config: TreeConfig) -> list[TreeNode]:
        comparator = None
        if state.active:
            column = find_column(leaves, state.prop)
            if column is not None:
                comparator = make_comparator(column, state.prop, state.order)
        return tree_data.flatten(rows, tree_state, tree_config, comparator)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def toggle_sort(self, prop: str) -> SortState:
        """Header click on the leaf column bound to *prop*."""
        column = find_column(self.leaf_columns(), prop)
        if column is None or not column.sortable:
            return self.sort_state
        new_state = next_sort_state(self.sort_state, column)
        if new_state == self.sort_state:
            return self.sort_state
        self.sort_state = new_state
        self._emit_event("sortChange", {
            "prop": new_state.prop,
            "order": new_state.order,
            "column": column.public(),
            "data": self._rows,
        })
        return new_state

    def reset_sort(self) -> None:
        self.sort_state = SortState()

    def toggle_node(self, node_id: Any) -> bool:
        """Expand or collapse a visible tree node; False if it is not visible."""
        nodes = self.tree_nodes()
        if nodes is None:
            return False
        for node in nodes:
            if node.node_id == node_id:
                self._tree.toggle(node.node_id, node.row)
                return True
        logger.debug("toggle_node: node %s is not visible", node_id)
        return False

    def expand_all_nodes(self) -> None:
        self.tree_state()
        self._tree.expand_all(self._rows)

    def collapse_all_nodes(self) -> None:
        self.tree_state()
        self._tree.collapse_all()

    def toggle_detail(self, row_index: int) -> None:
        self._detail = detail_rows.toggle(self.detail_state(), row_index, self.config.expand_config)

    def expand_all_details(self) -> None:
        self._detail = detail_rows.expand_all(
            self.detail_state(), len(self.display_rows()), self.config.expand_config
        )

    def collapse_all_details(self) -> None:
        self._detail = detail_rows.collapse_all(self.detail_state(), self.config.expand_config)

    def click_row(self, row_index: int) -> None:
        rows = self.display_rows()
        if not 0 <= row_index < len(rows):
            return
        if self.config.table_style.highlight_current_row:
            self.current_row = row_index
        self._emit_event("rowClick", {"row": rows[row_index], "rowIndex": row_index, "data": self._rows})

    def click_cell(self, row_index: int, col_index: int) -> None:
        """Body cell click; bubbles to a row click unless it toggled a detail row."""
        rows = self.display_rows()
        leaves = self.leaf_columns()
        if not 0 <= row_index < len(rows) or not 0 <= col_index < len(leaves):
            return
        column = leaves[col_index]
        expand_cfg = self.config.expand_config
        if column.is_expand_column or (
            expand_cfg.enabled and expand_cfg.icon_column == "first" and col_index == 0
        ):
            self.toggle_detail(row_index)
            return
        if not column.is_index_column:
            row = rows[row_index]
            self._emit_event("cellClick", {
                "row": row,
                "column": {"prop": column.prop, "label": column.label},
                "rowIndex": row_index,
                "colIndex": col_index,
                "value": row.get(column.prop) if column.prop else None,
                "data": self._rows,
            })
        self.click_row(row_index)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _emit_event(self, name: str, payload: dict[str, Any]) -> None:
        if self._emit is None:
            return
        try:
            self._emit(name, payload)
        except Exception as exc:
            logger.error("emit(%s) failed: %s", name, exc)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
