"""Tests for the column tree model."""

from tabula.engine.columns import (
    Column,
    calculate_column_widths,
    convert_to_header_rows,
    flatten_columns,
    format_cell_value,
    generate_columns_from_data,
    get_col_span,
    get_header_row_count,
    parse_columns,
    table_min_width,
)


def _count_leaves(columns):
    return sum(_count_leaves(c.children) if c.children else 1 for c in columns)


def test_flatten_returns_leaves_in_order(nested_columns):
    columns = parse_columns(nested_columns)
    leaves = flatten_columns(columns)
    assert [c.prop for c in leaves] == ["a", "b", "c", "d"]
    assert len(leaves) == _count_leaves(columns)


def test_flatten_inherits_fixed_from_group(nested_columns):
    leaves = flatten_columns(parse_columns(nested_columns))
    assert [c.fixed for c in leaves] == ["left", "left", "left", "right"]


def test_flatten_does_not_touch_source_tree(nested_columns):
    columns = parse_columns(nested_columns)
    flatten_columns(columns)
    assert columns[0].children[0].fixed is None


def test_col_span_is_sum_of_children(nested_columns):
    columns = parse_columns(nested_columns)
    info = columns[0]
    assert get_col_span(info) == sum(get_col_span(child) for child in info.children) == 3
    assert get_col_span(columns[1]) == 1


def test_header_rows_layout(nested_columns):
    columns = parse_columns(nested_columns)
    rows = convert_to_header_rows(columns)
    assert get_header_row_count(columns) == 3
    assert len(rows) == 3

    top = rows[0]
    assert [(c.column.label, c.col_span, c.row_span) for c in top] == [("Info", 3, 1), ("D", 1, 3)]
    assert sum(c.col_span for c in top) == len(flatten_columns(columns))

    middle = rows[1]
    assert [(c.column.label, c.col_span, c.row_span) for c in middle] == [("A", 1, 2), ("Sub", 2, 1)]
    assert [c.column.label for c in rows[2]] == ["B", "C"]


def test_header_leaf_indices(nested_columns):
    rows = convert_to_header_rows(parse_columns(nested_columns))
    leaf_indices = {c.column.label: c.leaf_index for row in rows for c in row if c.is_leaf}
    assert leaf_indices == {"A": 0, "B": 1, "C": 2, "D": 3}
    assert rows[0][0].leaf_index is None


def test_header_cells_carry_resolved_fixed(nested_columns):
    rows = convert_to_header_rows(parse_columns(nested_columns))
    assert rows[2][0].fixed == "left"
    assert rows[0][1].fixed == "right"


def test_flat_columns_single_header_row():
    rows = convert_to_header_rows(parse_columns([{"prop": "x"}, {"prop": "y"}]))
    assert len(rows) == 1
    assert all(c.row_span == 1 and c.col_span == 1 for c in rows[0])


def test_fixed_normalization():
    assert Column(prop="a", fixed=True).fixed == "left"
    assert Column(prop="a", fixed="right").fixed == "right"
    assert Column(prop="a", fixed=False).fixed is None
    assert Column(prop="a", fixed="middle").fixed is None


def test_sort_orders_accept_none_aliases():
    col = Column.model_validate({"prop": "a", "sortable": True, "sortOrders": ["descending", "none"]})
    assert col.cycle == ["descending", None]


def test_non_callable_capability_is_dropped():
    col = Column.model_validate({"prop": "a", "sortScript": "return a - b"})
    assert col.sort_script is None


def test_parse_columns_skips_malformed():
    columns = parse_columns([{"prop": "a"}, "not a column", {"prop": "b", "sortable": "maybe"}])
    assert [c.prop for c in columns] == ["a"]


def test_parse_columns_non_list():
    assert parse_columns(None) == []
    assert parse_columns({"prop": "a"}) == []


def test_public_excludes_capabilities():
    col = Column.model_validate({"prop": "a", "label": "A", "sortScript": lambda *a: 0, "minWidth": 10})
    public = col.public()
    assert public["prop"] == "a"
    assert public["minWidth"] == 10
    assert "sortScript" not in public
    assert "children" not in public


def test_column_widths(nested_columns):
    leaves = flatten_columns(parse_columns(nested_columns))
    widths = calculate_column_widths(leaves)
    assert widths == [50, 0, 80, 70]
    assert table_min_width(widths) == 50 + 100 + 80 + 70


def test_width_parsing_from_strings():
    leaves = [Column(prop="a", width="120px"), Column(prop="b", width="auto"), Column(prop="c", width=" 45em")]
    assert calculate_column_widths(leaves) == [120, 0, 45]


def test_table_min_width_empty():
    assert table_min_width([]) is None


def test_generate_columns_from_data():
    columns = generate_columns_from_data([{"name": "x", "qty": 2}, {"name": "y"}])
    assert [(c.prop, c.label, c.sortable) for c in columns] == [("name", "name", False), ("qty", "qty", False)]
    assert generate_columns_from_data([]) == []
    assert generate_columns_from_data(["scalar"]) == []


def test_format_cell_value_defaults():
    col = Column(prop="v")
    assert format_cell_value({"v": None}, col, 0) == ""
    assert format_cell_value({}, col, 0) == ""
    assert format_cell_value({"v": True}, col, 0) == "true"
    assert format_cell_value({"v": 1.5}, col, 0) == "1.5"


def test_format_cell_value_formatter():
    col = Column(prop="v", formatter=lambda row, column, value, index: f"{value}!{index}")
    assert format_cell_value({"v": 3}, col, 7) == "3!7"


def test_format_cell_value_formatter_failure_falls_back():
    def broken(row, column, value, index):
        raise RuntimeError("boom")

    col = Column(prop="v", formatter=broken)
    assert format_cell_value({"v": 3}, col, 0) == "3"
