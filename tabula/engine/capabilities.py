"""Capability functions -- guarded invocation of host-supplied callbacks."""

import logging
import os
import threading
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

# (node, resolve) -> None
LazyLoadFn = Callable[[dict[str, Any], Callable[[list[dict] | None], None]], None]


def safe_call(fn: Callable | None, *args: Any, default: Any = None,
              label: str = "capability") -> Any:
    """Invoke *fn* with *args*, returning *default* if it is missing or raises."""
    if fn is None:
        return default
    try:
        return fn(*args)
    except Exception:
        logger.exception("%s failed", label)
        return default


def safe_dict(fn: Callable | None, *args: Any, label: str = "style callback") -> dict:
    """Call a style capability; anything but a dict becomes an empty style."""
    result = safe_call(fn, *args, default=None, label=label)
    return result if isinstance(result, dict) else {}


def safe_render(fn: Callable | None, *args: Any, label: str = "render callback") -> dict | None:
    """Call a render capability; anything but a dict means default rendering."""
    result = safe_call(fn, *args, default=None, label=label)
    return result if isinstance(result, dict) else None


def _select(body: Any, json_path: str) -> Any:
    """Narrow a response body to the children list, e.g. ``"data.items"`` or ``"results.0.children"``."""
    node = body
    walked: list[str] = []
    for step in filter(None, json_path.split(".")):
        walked.append(step)
        if isinstance(node, list) and step.lstrip("-").isdigit() and -len(node) <= int(step) < len(node):
            node = node[int(step)]
        elif isinstance(node, dict) and step in node:
            node = node[step]
        else:
            raise KeyError(f"No '{'.'.join(walked)}' in lazy-load response")
    return node


def http_children_loader(
    url: str,
    param: str = "parent",
    json_path: str = "",
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    client: httpx.Client | None = None,
) -> LazyLoadFn:
    """Build a lazy-load capability that fetches a node's children over HTTP.

    The request runs on a daemon thread: ``GET url?<param>=<node id>``. The
    response body (optionally narrowed by *json_path*) must be a JSON list.
    A failed request is logged and ``resolve`` is never called, so the node
    stays in the loading state.
    """
    if timeout is None:
        timeout = float(os.environ.get("TABULA_LAZY_LOAD_TIMEOUT", "10"))

    def fetch(node: dict[str, Any], resolve: Callable[[list[dict] | None], None]) -> None:
        node_id = node.get("id")
        try:
            if client is not None:
                resp = client.get(url, params={param: node_id}, headers=headers)
            else:
                resp = httpx.get(url, params={param: node_id}, headers=headers, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
            if json_path:
                data = _select(data, json_path)
            if not isinstance(data, list):
                raise TypeError(f"Expected a JSON list of children, got {type(data).__name__}")
        except Exception as exc:
            logger.error("Lazy load of node %s from %s failed: %s", node_id, url, exc)
            return
        resolve(data)

    def loader(node: dict[str, Any], resolve: Callable[[list[dict] | None], None]) -> None:
        threading.Thread(target=fetch, args=(node, resolve), daemon=True).start()

    loader.fetch = fetch  # synchronous variant, used by tests and sync hosts
    return loader
