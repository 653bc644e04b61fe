"""Node contract shared with the dashboard host."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class NodePort:
    name: str
    description: str = ""


@dataclass
class NodeMeta:
    id: str
    label: str
    category: str
    description: str = ""
    inputs: list[NodePort] = field(default_factory=list)
    outputs: list[NodePort] = field(default_factory=list)
    config_schema: dict[str, Any] = field(default_factory=dict)


class BaseNode(ABC):
    """A pipeline node: declares its ports in ``meta`` and maps inputs to outputs."""

    meta: NodeMeta

    @abstractmethod
    def execute(self, inputs: dict[str, Any], config: dict[str, Any], env=None) -> dict[str, Any]:
        """Run the node once."""
