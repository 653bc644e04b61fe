"""Sort engine -- column-aware stable row sorting and the sort toggle cycle."""

import functools
import locale
import logging
import unicodedata
from dataclasses import dataclass
from typing import Any, Callable

from tabula.engine.columns import Column

logger = logging.getLogger(__name__)

ASCENDING = "ascending"
DESCENDING = "descending"


@dataclass(frozen=True)
class SortState:
    """Active sort: ``prop``/``order`` are both ``None`` when unsorted."""

    prop: str | None = None
    order: str | None = None
    column: Column | None = None

    @property
    def active(self) -> bool:
        return bool(self.prop) and bool(self.order)

    @classmethod
    def from_default(cls, default: dict[str, Any] | None) -> "SortState":
        """Initial state from a ``{prop, order}`` default (order defaults to ascending)."""
        if not default or not default.get("prop"):
            return cls()
        return cls(prop=default["prop"], order=default.get("order") or ASCENDING)

    def to_dict(self) -> dict[str, Any]:
        return {"prop": self.prop, "order": self.order}


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _js_string(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def set_collation_locale(name: str = "") -> str | None:
    """Select the locale used for string collation (``""`` = the process environment).

    Returns the locale actually in effect, or ``None`` if *name* is not
    available, in which case the previous collation is kept.
    """
    try:
        return locale.setlocale(locale.LC_COLLATE, name)
    except locale.Error as exc:
        logger.warning("Collation locale %r unavailable: %s", name, exc)
        return None


def _fold(s: str) -> str:
    # strip diacritics: "é" -> "e"
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _locale_compare(a: str, b: str) -> int:
    """Multi-level collation: base letters, then accents, then case."""
    for x, y in ((_fold(a), _fold(b)), (a.casefold(), b.casefold()), (a, b)):
        result = locale.strcoll(x, y)
        if result:
            return result
    return 0


def _field(row: Any, prop: str) -> Any:
    return row.get(prop) if isinstance(row, dict) else None


def default_compare(a: dict[str, Any], b: dict[str, Any], prop: str, order: str) -> float:
    """Built-in comparator.

    ``None`` values compare greater than any value before the direction is
    applied, so they trail under ascending and lead under descending.
    """
    va = _field(a, prop)
    vb = _field(b, prop)
    if va == vb:
        result: float = 0
    elif va is None:
        result = 1
    elif vb is None:
        result = -1
    elif _is_number(va) and _is_number(vb):
        result = va - vb
    else:
        result = _locale_compare(_js_string(va), _js_string(vb))
    return -result if order == DESCENDING else result


def make_comparator(column: Column | None, prop: str, order: str) -> Callable[[dict, dict], float]:
    """Resolve the comparator: the column's ``sortScript`` first, then the default.

    A numeric result from ``sortScript`` is final (it applies the direction
    itself). If it raises or returns a non-number the default comparator
    decides that pair.
    """
    script = column.sort_script if column is not None else None

    def compare(a: dict, b: dict) -> float:
        if script is not None:
            try:
                result = script(a, b, prop, order)
            except Exception:
                logger.exception("sortScript for column %s failed", prop)
            else:
                if _is_number(result):
                    return result
        return default_compare(a, b, prop, order)

    return compare


def find_column(leaves: list[Column], prop: str | None) -> Column | None:
    for col in leaves:
        if col.prop == prop:
            return col
    return None


def sort_rows(rows: list[dict], comparator: Callable[[dict, dict], float]) -> list[dict]:
    """Stable sort into a new list; *rows* is left untouched."""
    return sorted(rows, key=functools.cmp_to_key(comparator))


def sort(rows: list[dict], leaves: list[Column], state: SortState) -> list[dict]:
    """Apply *state* to *rows*.

    Returns *rows* itself when no sort is active or the sorted column is
    not among *leaves*; otherwise a new, stably sorted list.
    """
    if not state.active:
        return rows
    column = find_column(leaves, state.prop)
    if column is None:
        return rows
    return sort_rows(rows, make_comparator(column, state.prop, state.order))


def next_sort_state(state: SortState, column: Column) -> SortState:
    """State after a header click on *column*.

    Non-sortable columns leave the state unchanged. Switching to another
    column restarts that column's cycle at its first entry.
    """
    if not column.sortable or column.is_index_column or column.is_expand_column:
        return state
    cycle = column.cycle
    if state.prop != column.prop:
        current = -1
    else:
        current = cycle.index(state.order) if state.order in cycle else -1
    next_order = cycle[(current + 1) % len(cycle)]
    if not next_order:
        return SortState()
    return SortState(prop=column.prop, order=next_order, column=column)
