from __future__ import annotations

from types import SimpleNamespace

from tagcatalog.core.request_id import REQUEST_ID_HEADER, new_request_id, request_id_for


def test_new_request_id_format() -> None:
    rid = new_request_id()
    assert rid.startswith("req_")
    assert len(rid) > 8


def test_request_id_for_uses_header() -> None:
    req = SimpleNamespace(headers={REQUEST_ID_HEADER: " req_x "}, state=SimpleNamespace())
    assert request_id_for(req) == "req_x"
    assert req.state.request_id == "req_x"


def test_request_id_for_uses_state_when_present() -> None:
    req = SimpleNamespace(headers={REQUEST_ID_HEADER: "req_header"}, state=SimpleNamespace(request_id="req_state"))
    assert request_id_for(req) == "req_state"


def test_request_id_for_generates_and_keeps_one_id() -> None:
    req = SimpleNamespace(headers={}, state=SimpleNamespace())
    rid = request_id_for(req)
    assert rid.startswith("req_")
    assert request_id_for(req) == rid


def test_request_id_for_truncates_long_header() -> None:
    req = SimpleNamespace(headers={REQUEST_ID_HEADER: "x" * 500}, state=SimpleNamespace())
    assert len(request_id_for(req)) == 128
