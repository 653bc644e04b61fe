"""Tests for capability invocation and the HTTP children loader."""

from unittest.mock import MagicMock

import httpx

from tabula.engine.capabilities import http_children_loader, safe_call, safe_dict, safe_render


def test_safe_call_returns_result():
    assert safe_call(lambda a, b: a + b, 1, 2) == 3


def test_safe_call_missing_fn():
    assert safe_call(None, 1, default="fallback") == "fallback"


def test_safe_call_swallows_and_logs(caplog):
    def broken():
        raise RuntimeError("boom")

    assert safe_call(broken, default=0, label="rowStyleFn") == 0
    assert "rowStyleFn failed" in caplog.text


def test_safe_dict_and_render_reject_wrong_types():
    assert safe_dict(lambda: {"color": "red"}) == {"color": "red"}
    assert safe_dict(lambda: "color: red") == {}
    assert safe_render(lambda: {"type": "tag"}) == {"type": "tag"}
    assert safe_render(lambda: ["tag"]) is None


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_http_loader_resolves_children():
    seen = {}

    def handler(request):
        seen["parent"] = request.url.params.get("parent")
        return httpx.Response(200, json=[{"id": "c1"}, {"id": "c2"}])

    loader = http_children_loader("http://api.test/children", client=_client(handler))
    resolve = MagicMock()
    loader.fetch({"id": "n1"}, resolve)
    resolve.assert_called_once_with([{"id": "c1"}, {"id": "c2"}])
    assert seen["parent"] == "n1"


def test_http_loader_json_path_and_param():
    def handler(request):
        assert request.url.params.get("node") == "7"
        return httpx.Response(200, json={"data": {"items": [{"id": 8}]}})

    loader = http_children_loader("http://api.test/c", param="node", json_path="data.items", client=_client(handler))
    resolve = MagicMock()
    loader.fetch({"id": 7}, resolve)
    resolve.assert_called_once_with([{"id": 8}])


def test_http_loader_error_never_resolves():
    loader = http_children_loader("http://api.test/c", client=_client(lambda request: httpx.Response(500)))
    resolve = MagicMock()
    loader.fetch({"id": 1}, resolve)
    resolve.assert_not_called()


def test_http_loader_rejects_non_list_body():
    loader = http_children_loader("http://api.test/c", client=_client(lambda r: httpx.Response(200, json={"id": 1})))
    resolve = MagicMock()
    loader.fetch({"id": 1}, resolve)
    resolve.assert_not_called()


def test_http_loader_missing_json_path_never_resolves(caplog):
    def handler(request):
        return httpx.Response(200, json={"data": []})

    loader = http_children_loader("http://api.test/c", json_path="data.0.children", client=_client(handler))
    resolve = MagicMock()
    loader.fetch({"id": 1}, resolve)
    resolve.assert_not_called()
    assert "data.0" in caplog.text
