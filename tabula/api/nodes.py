"""Nodes API -- list the node types tabula provides and run them for the host."""

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from tabula.engine.node_registry import NodeRegistry, builtin_registry

router = APIRouter(prefix="/api/nodes", tags=["nodes"])

_registry: NodeRegistry | None = None


def get_registry() -> NodeRegistry:
    global _registry
    if _registry is None:
        _registry = builtin_registry()
    return _registry


class ExecutePayload(BaseModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)


@router.get("")
def list_nodes():
    return get_registry().list_nodes()


@router.post("/{node_type}/execute")
def execute_node(node_type: str, payload: ExecutePayload):
    """Run one node with JSON inputs, as a pipeline step would."""
    try:
        node = get_registry().create(node_type)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]))
    return jsonable_encoder(node.execute(payload.inputs, payload.config))
