"""Tests for the sort engine."""

from tabula.engine.columns import Column
from tabula.engine.sorting import (
    ASCENDING,
    DESCENDING,
    SortState,
    default_compare,
    make_comparator,
    next_sort_state,
    set_collation_locale,
    sort,
)


def _ids(rows):
    return [r["id"] for r in rows]


def test_ascending_keeps_ties_in_order(amt_rows):
    leaves = [Column(prop="amt", sortable=True)]
    result = sort(amt_rows, leaves, SortState(prop="amt", order=ASCENDING))
    assert _ids(result) == [2, 1, 3]


def test_descending_is_stable(amt_rows):
    leaves = [Column(prop="amt", sortable=True)]
    result = sort(amt_rows, leaves, SortState(prop="amt", order=DESCENDING))
    assert _ids(result) == [1, 3, 2]


def test_sort_does_not_mutate_input(amt_rows):
    before = list(amt_rows)
    sort(amt_rows, [Column(prop="amt")], SortState(prop="amt", order=DESCENDING))
    assert amt_rows == before


def test_inactive_sort_returns_input(amt_rows):
    assert sort(amt_rows, [Column(prop="amt")], SortState()) is amt_rows


def test_missing_column_is_a_noop(amt_rows):
    result = sort(amt_rows, [Column(prop="other")], SortState(prop="amt", order=ASCENDING))
    assert result is amt_rows


def test_nulls_trail_ascending_and_lead_descending():
    rows = [{"id": 1, "v": None}, {"id": 2, "v": 3}, {"id": 3, "v": 1}]
    leaves = [Column(prop="v")]
    assert _ids(sort(rows, leaves, SortState(prop="v", order=ASCENDING))) == [3, 2, 1]
    assert _ids(sort(rows, leaves, SortState(prop="v", order=DESCENDING))) == [1, 2, 3]


def test_strings_collate_accents_with_base_letters():
    rows = [{"id": 1, "n": "f"}, {"id": 2, "n": "é"}, {"id": 3, "n": "Ärger"}, {"id": 4, "n": "b"}]
    result = sort(rows, [Column(prop="n")], SortState(prop="n", order=ASCENDING))
    assert [r["n"] for r in result] == ["Ärger", "b", "é", "f"]


def test_accent_only_breaks_ties():
    rows = [{"id": 1, "n": "résumé"}, {"id": 2, "n": "resume"}, {"id": 3, "n": "rest"}]
    result = sort(rows, [Column(prop="n")], SortState(prop="n", order=ASCENDING))
    assert _ids(result) == [3, 2, 1]


def test_set_collation_locale_rejects_unknown_name():
    assert set_collation_locale("xx_NOT_A_LOCALE.UTF-8") is None


def test_non_dict_rows_compare_as_missing_values():
    rows = [{"id": 1, "v": 2}, None, {"id": 3, "v": 1}]
    result = sort(rows, [Column(prop="v")], SortState(prop="v", order=ASCENDING))
    assert result[:2] == [{"id": 3, "v": 1}, {"id": 1, "v": 2}]
    assert result[2] is None


def test_default_compare_numbers():
    assert default_compare({"x": 1}, {"x": 4}, "x", ASCENDING) < 0
    assert default_compare({"x": 1}, {"x": 4}, "x", DESCENDING) > 0
    assert default_compare({"x": 2}, {"x": 2}, "x", DESCENDING) == 0


def test_sort_script_result_is_final():
    # script sorts by length regardless of the requested order
    col = Column(prop="s", sort_script=lambda a, b, prop, order: len(a[prop]) - len(b[prop]))
    rows = [{"s": "ccc"}, {"s": "a"}, {"s": "bb"}]
    result = sort(rows, [col], SortState(prop="s", order=DESCENDING))
    assert [r["s"] for r in result] == ["a", "bb", "ccc"]


def test_sort_script_failure_falls_back_to_default(amt_rows):
    def broken(a, b, prop, order):
        raise ValueError("bad script")

    col = Column(prop="amt", sort_script=broken)
    result = sort(amt_rows, [col], SortState(prop="amt", order=ASCENDING))
    assert _ids(result) == [2, 1, 3]


def test_sort_script_non_number_falls_back():
    compare = make_comparator(Column(prop="x", sort_script=lambda *a: "nope"), "x", ASCENDING)
    assert compare({"x": 1}, {"x": 2}) < 0


def test_toggle_cycle():
    col = Column(prop="amt", sortable=True)
    state = SortState()
    orders = []
    for _ in range(3):
        state = next_sort_state(state, col)
        orders.append(state.order)
    assert orders == [ASCENDING, DESCENDING, None]
    assert state == SortState()


def test_toggle_other_column_restarts_cycle():
    a = Column(prop="a", sortable=True)
    b = Column(prop="b", sortable=True)
    state = next_sort_state(next_sort_state(SortState(), a), a)
    assert state.order == DESCENDING
    state = next_sort_state(state, b)
    assert (state.prop, state.order) == ("b", ASCENDING)


def test_toggle_custom_cycle():
    col = Column.model_validate({"prop": "a", "sortable": True, "sortOrders": ["descending", "ascending"]})
    state = next_sort_state(SortState(), col)
    assert state.order == DESCENDING
    state = next_sort_state(state, col)
    assert state.order == ASCENDING
    state = next_sort_state(state, col)
    assert state.order == DESCENDING


def test_toggle_non_sortable_is_ignored():
    state = SortState(prop="x", order=ASCENDING)
    assert next_sort_state(state, Column(prop="y")) is state


def test_from_default():
    assert SortState.from_default({"prop": "amt"}) == SortState(prop="amt", order=ASCENDING)
    assert SortState.from_default({"prop": "amt", "order": "descending"}).order == DESCENDING
    assert not SortState.from_default(None).active
