"""Node type registry -- how the dashboard host finds the nodes this package ships."""

import logging
from dataclasses import asdict
from typing import Any

from tabula.nodes.base import BaseNode

logger = logging.getLogger(__name__)


class NodeRegistry:
    """Maps node type ids (``meta.id``) to node classes."""

    def __init__(self):
        self.node_types: dict[str, type[BaseNode]] = {}

    def register(self, node_cls: type[BaseNode]) -> type[BaseNode]:
        node_id = node_cls.meta.id
        if node_id in self.node_types and self.node_types[node_id] is not node_cls:
            logger.warning("Node type %s re-registered by %s", node_id, node_cls.__name__)
        self.node_types[node_id] = node_cls
        return node_cls

    def get(self, node_id: str) -> type[BaseNode] | None:
        return self.node_types.get(node_id)

    def create(self, node_id: str) -> BaseNode:
        node_cls = self.get(node_id)
        if node_cls is None:
            raise KeyError(f"Unknown node type '{node_id}'")
        return node_cls()

    def list_nodes(self) -> list[dict[str, Any]]:
        return [asdict(cls.meta) for cls in self.node_types.values()]


def builtin_registry() -> NodeRegistry:
    """Registry holding every node type shipped with tabula."""
    from tabula.nodes.outputs.table import TableNode

    registry = NodeRegistry()
    registry.register(TableNode)
    return registry
