import pytest
from starlette.testclient import TestClient

from tabula.app import app, get_session_registry


@pytest.fixture
def registry():
    reg = get_session_registry()
    reg.clear()
    yield reg
    reg.clear()


@pytest.fixture
def client(registry):
    return TestClient(app)


@pytest.fixture
def amt_rows():
    return [{"id": 1, "amt": 5}, {"id": 2, "amt": -3}, {"id": 3, "amt": 5}]


@pytest.fixture
def nested_columns():
    return [
        {"label": "Info", "fixed": "left", "children": [
            {"prop": "a", "label": "A", "width": 50},
            {"label": "Sub", "children": [
                {"prop": "b", "label": "B"},
                {"prop": "c", "label": "C", "minWidth": "80px"},
            ]},
        ]},
        {"prop": "d", "label": "D", "fixed": "right", "width": 70},
    ]
