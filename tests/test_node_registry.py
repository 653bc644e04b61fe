"""Tests for node discovery and the nodes API."""

import pytest

from tabula.engine.node_registry import NodeRegistry, builtin_registry
from tabula.nodes.outputs.table import TableNode


def test_builtin_registry_has_table_node():
    registry = builtin_registry()
    assert registry.get("table") is TableNode
    assert [meta["id"] for meta in registry.list_nodes()] == ["table"]


def test_create_unknown_node():
    with pytest.raises(KeyError):
        NodeRegistry().create("missing")


def test_list_nodes_endpoint(client):
    resp = client.get("/api/nodes")
    assert resp.status_code == 200
    table = resp.json()[0]
    assert table["id"] == "table"
    assert table["category"] == "output"
    assert table["inputs"][0]["name"] == "in"


def test_execute_table_node_endpoint(client):
    resp = client.post("/api/nodes/table/execute", json={
        "inputs": {"rows": [{"a": 2}, {"a": 1}]},
        "config": {"configuration": {"defaultSort": {"prop": "a"},
                                     "columnConfig": {"columns": [{"prop": "a", "sortable": True}]}}},
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert [r["data"]["a"] for r in body["view"]["rows"]] == [1, 2]


def test_execute_unknown_node_endpoint(client):
    assert client.post("/api/nodes/nope/execute", json={}).status_code == 404
