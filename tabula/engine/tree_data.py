"""Tree data engine -- expansion state, lazy subtrees and flattening.

The state is an immutable :class:`TreeState`; the module-level functions
are pure transitions over it. :class:`TreeDataEngine` owns the current
state for one widget and is the only place lazy-load capabilities are
invoked.
"""

import functools
import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping

from tabula.config import TreeConfig

logger = logging.getLogger(__name__)

Comparator = Callable[[dict, dict], float]


@dataclass(frozen=True)
class TreeState:
    """Expansion state for one dataset.

    ``dataset`` is the row sequence the default expansion was computed
    for; ``generation`` changes with it so late lazy-load resolutions for
    an older dataset can be recognised and dropped.
    """

    expanded_keys: frozenset = frozenset()
    lazy_children: Mapping[Any, list[dict]] = field(default_factory=lambda: MappingProxyType({}))
    loading_keys: frozenset = frozenset()
    dataset: Any = field(default=None, compare=False, repr=False)
    generation: int = 0

    @property
    def initialized(self) -> bool:
        return self.dataset is not None


@dataclass
class TreeNode:
    """A visible tree row: the original record plus its position in the tree."""

    row: dict[str, Any]
    node_id: Any
    level: int
    parent_id: Any
    has_children: bool
    is_leaf: bool
    is_expanded: bool
    is_loading: bool

    def meta(self) -> dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "level": self.level,
            "parentId": self.parent_id,
            "hasChildren": self.has_children,
            "isLeaf": self.is_leaf,
            "isExpanded": self.is_expanded,
            "isLoading": self.is_loading,
        }


def node_id_for(row: dict[str, Any], parent_id: Any, index: int) -> Any:
    """Row ``id`` if present, else a positional id derived from the parent."""
    rid = row.get("id")
    if rid is not None and rid != "":
        return rid
    # roots get a "null-" prefix so positional ids never look like plain indices
    return f"{'null' if parent_id is None else parent_id}-{index}"


def _child_rows(row: dict[str, Any], children_field: str) -> list[dict]:
    children = row.get(children_field)
    return children if isinstance(children, list) else []


def node_has_children(row: dict[str, Any], config: TreeConfig) -> bool:
    if config.lazy:
        # lazy rows are expandable unless they opt out
        return row.get("hasChildren") is not False
    return bool(_child_rows(row, config.children_field))


def collect_expandable_keys(
    rows: list[dict],
    config: TreeConfig,
    max_level: int | None = None,
    lazy_children: Mapping[Any, list[dict]] | None = None,
) -> set:
    """Ids of nodes that have children, down to *max_level* levels (all if None)."""
    keys: set = set()

    def walk(nodes: list[dict], level: int, parent_id: Any) -> None:
        if max_level is not None and level >= max_level:
            return
        for i, node in enumerate(nodes):
            if not isinstance(node, dict):
                continue
            nid = node_id_for(node, parent_id, i)
            children = _child_rows(node, config.children_field)
            if not children and lazy_children is not None:
                children = lazy_children.get(nid) or []
            if children:
                keys.add(nid)
                walk(children, level + 1, nid)

    walk(rows, 0, None)
    return keys


def initial_expanded_keys(rows: list[dict], config: TreeConfig) -> frozenset:
    """Default expansion: everything, the first N levels, or nothing."""
    if config.default_expand_all or config.default_expand_level < 0:
        return frozenset(collect_expandable_keys(rows, config))
    if config.default_expand_level > 0:
        return frozenset(collect_expandable_keys(rows, config, config.default_expand_level))
    return frozenset()


def sync_dataset(state: TreeState, rows: list[dict] | None, config: TreeConfig) -> TreeState:
    """Bring *state* in line with the current dataset.

    The default expansion is applied once per dataset object; calling this
    again with the same rows (e.g. after a re-sort) keeps the user's
    expansion.
    """
    if not config.enabled or not rows:
        if state.dataset is None and state == TreeState(generation=state.generation):
            return state
        return TreeState(generation=state.generation + 1)
    if state.dataset is rows:
        return state
    return TreeState(
        expanded_keys=initial_expanded_keys(rows, config),
        dataset=rows,
        generation=state.generation + 1,
    )


def toggle(state: TreeState, node_id: Any, row: dict[str, Any], config: TreeConfig) -> tuple[TreeState, bool]:
    """Flip *node_id*; returns the new state and whether a lazy load must start.

    A node already loading is not loaded a second time.
    """
    if node_id in state.expanded_keys:
        return replace(state, expanded_keys=state.expanded_keys - {node_id}), False

    expanded = state.expanded_keys | {node_id}
    needs_load = (
        config.lazy
        and config.lazy_load_fn is not None
        and node_id not in state.lazy_children
        and node_id not in state.loading_keys
        and node_has_children(row, config)
    )
    if needs_load:
        return replace(state, expanded_keys=expanded, loading_keys=state.loading_keys | {node_id}), True
    return replace(state, expanded_keys=expanded), False


def resolve_children(state: TreeState, node_id: Any, children: list[dict] | None, generation: int) -> TreeState:
    """Store loaded children and clear the loading mark (stale generations are ignored)."""
    if generation != state.generation:
        return state
    cache = dict(state.lazy_children)
    cache[node_id] = list(children) if isinstance(children, (list, tuple)) else []
    return replace(
        state,
        lazy_children=MappingProxyType(cache),
        loading_keys=state.loading_keys - {node_id},
    )


def fail_load(state: TreeState, node_id: Any, generation: int) -> TreeState:
    """Clear the loading mark without caching, so a later expand retries."""
    if generation != state.generation:
        return state
    return replace(state, loading_keys=state.loading_keys - {node_id})


def expand_all(state: TreeState, rows: list[dict], config: TreeConfig) -> TreeState:
    keys = collect_expandable_keys(rows, config, lazy_children=state.lazy_children)
    return replace(state, expanded_keys=frozenset(keys))


def collapse_all(state: TreeState) -> TreeState:
    return replace(state, expanded_keys=frozenset())


def flatten(
    rows: list[dict],
    state: TreeState,
    config: TreeConfig,
    comparator: Comparator | None = None,
) -> list[TreeNode]:
    """Depth-first list of visible nodes.

    With a *comparator*, each sibling list is sorted independently before
    it is walked, so children stay directly under their parent. Children
    of collapsed nodes are never visited.
    """
    result: list[TreeNode] = []

    def walk(nodes: list[dict], level: int, parent_id: Any) -> None:
        # node ids follow the original positions, not the sorted ones
        indexed = [(i, n) for i, n in enumerate(nodes) if isinstance(n, dict)]
        if comparator is not None:
            indexed = _sort_indexed(indexed, comparator)
        for i, node in indexed:
            nid = node_id_for(node, parent_id, i)
            has_children = node_has_children(node, config)
            expanded = nid in state.expanded_keys
            result.append(TreeNode(
                row=node,
                node_id=nid,
                level=level,
                parent_id=parent_id,
                has_children=has_children,
                is_leaf=not has_children,
                is_expanded=expanded,
                is_loading=nid in state.loading_keys,
            ))
            if not expanded:
                continue
            if config.lazy:
                children = state.lazy_children.get(nid) or []
            else:
                children = _child_rows(node, config.children_field)
            if children:
                walk(children, level + 1, nid)

    walk(rows, 0, None)
    return result


def _sort_indexed(indexed: list[tuple[int, dict]], comparator: Comparator) -> list[tuple[int, dict]]:
    key = functools.cmp_to_key(lambda a, b: comparator(a[1], b[1]))
    return sorted(indexed, key=key)


class TreeDataEngine:
    """Owns the tree state of one widget and runs lazy loads.

    Transitions are applied under a lock because a lazy-load capability
    may resolve from another thread. Capabilities are always called with
    the lock released.
    """

    def __init__(self, config: TreeConfig, on_change: Callable[[], None] | None = None):
        self.config = config
        self._state = TreeState()
        self._lock = threading.Lock()
        self._on_change = on_change

    @property
    def state(self) -> TreeState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sync(self, rows: list[dict] | None) -> TreeState:
        with self._lock:
            self._state = sync_dataset(self._state, rows, self.config)
            return self._state

    def toggle(self, node_id: Any, row: dict[str, Any]) -> None:
        """Expand or collapse *node_id*, starting a lazy load when needed."""
        if not self.enabled:
            return
        with self._lock:
            self._state, needs_load = toggle(self._state, node_id, row, self.config)
            generation = self._state.generation
        if needs_load:
            self._load(node_id, row, generation)

    def expand_all(self, rows: list[dict] | None) -> None:
        if not self.enabled or not rows:
            return
        with self._lock:
            self._state = expand_all(self._state, rows, self.config)

    def collapse_all(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._state = collapse_all(self._state)

    def flatten(self, rows: list[dict], comparator: Comparator | None = None) -> list[TreeNode]:
        return flatten(rows, self._state, self.config, comparator)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self, node_id: Any, row: dict[str, Any], generation: int) -> None:
        def resolve(children: list[dict] | None = None) -> None:
            with self._lock:
                self._state = resolve_children(self._state, node_id, children, generation)
            self._notify()

        try:
            self.config.lazy_load_fn(row, resolve)
        except Exception:
            logger.exception("Lazy load for node %s failed", node_id)
            with self._lock:
                self._state = fail_load(self._state, node_id, generation)

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as exc:
            logger.error("Tree change callback failed: %s", exc)
