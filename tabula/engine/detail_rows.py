"""Row-detail expansion -- which displayed rows show their detail panel."""

from dataclasses import dataclass, replace

from tabula.config import ExpandConfig


@dataclass(frozen=True)
class DetailState:
    """Open row indices plus the dataset they were computed for."""

    expanded_rows: frozenset[int] = frozenset()
    dataset: object = None

    def is_expanded(self, row_index: int) -> bool:
        return row_index in self.expanded_rows


def initial_rows(row_count: int, config: ExpandConfig) -> frozenset[int]:
    if not config.enabled or not config.default_expand_all:
        return frozenset()
    return frozenset(range(row_count))


def sync_dataset(state: DetailState, rows: list | None, config: ExpandConfig) -> DetailState:
    """Reset to the configured initial state when the dataset object changes."""
    if not config.enabled:
        if not state.expanded_rows and state.dataset is None:
            return state
        return DetailState()
    if rows is not None and state.dataset is rows:
        return state
    return DetailState(initial_rows(len(rows or []), config), rows)


def toggle(state: DetailState, row_index: int, config: ExpandConfig) -> DetailState:
    if not config.enabled:
        return state
    is_open = row_index in state.expanded_rows
    if config.accordion:
        # at most one open row
        rows = frozenset() if is_open else frozenset({row_index})
    elif is_open:
        rows = state.expanded_rows - {row_index}
    else:
        rows = state.expanded_rows | {row_index}
    return replace(state, expanded_rows=rows)


def expand_all(state: DetailState, row_count: int, config: ExpandConfig) -> DetailState:
    if not config.enabled:
        return state
    return replace(state, expanded_rows=frozenset(range(row_count)))


def collapse_all(state: DetailState, config: ExpandConfig) -> DetailState:
    if not config.enabled:
        return state
    return replace(state, expanded_rows=frozenset())
