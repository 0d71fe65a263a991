import json

import pytest
import requests

from animal_web.client import (
    AnimalClient, AnimalMatch, InputError, NetworkError, PaymentError, ServerError, ResponseFormatError,
)

PAYLOAD = {
    "animal": {"name": "Cat", "description": "hunter", "similarityScore": 0},
    "originalName": "act",
    "totalAnimals": 3,
    "closestMatches": 2,
}


class FakeResponse:
    def __init__(self, status_code=200, body=PAYLOAD, content_type="application/json; charset=utf-8"):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.headers = {"Content-Type": content_type} if content_type else {}
        self.reason = "Reason"

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Replays scripted responses and records each call."""
    def __init__(self, *responses):
        self._responses = list(responses)
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def _client(session, **kw):
    kw.setdefault("sleep", lambda s: None)
    return AnimalClient("http://spirit.test/", session=session, **kw)


def test_success_asks_for_json_explicitly():
    s = FakeSession(FakeResponse())
    m = _client(s).fetch("  act ")
    assert m == AnimalMatch("Cat", "hunter", 0, "act", 3, 2)

    url, kw = s.calls[0]
    assert url == "http://spirit.test/api/animals"
    assert kw["params"] == {"name": "act", "format": "json"}
    assert kw["headers"]["Accept"] == "application/json"
    assert kw["allow_redirects"] is False


def test_blank_name_is_rejected_without_a_request():
    s = FakeSession()
    with pytest.raises(InputError) as exc:
        _client(s).fetch("   ")
    assert exc.value.category == "input"
    assert s.calls == []


def test_payment_then_single_retry():
    s = FakeSession(FakeResponse(402, {"error": "pay"}), FakeResponse())
    paid, slept = [], []

    def pay(resp):
        paid.append(resp.status_code)
        return {"X-PAYMENT": "token"}

    m = _client(s, pay=pay, settle_delay=1.5, sleep=slept.append).fetch("act")
    assert m.name == "Cat"
    assert paid == [402]
    assert slept == [1.5]
    assert len(s.calls) == 2
    retry_headers = s.calls[1][1]["headers"]
    assert retry_headers["X-PAYMENT"] == "token"
    assert retry_headers["X-Retry-Attempt"] == "1"
    assert "X-Retry-Attempt" not in s.calls[0][1]["headers"]


def test_second_402_stops_with_payment_error():
    s = FakeSession(FakeResponse(402, "{}"), FakeResponse(402, "{}"))
    with pytest.raises(PaymentError) as exc:
        _client(s, pay=lambda r: {"X-PAYMENT": "t"}).fetch("act")
    assert exc.value.category == "payment"
    assert len(s.calls) == 2


def test_402_without_payment_capability():
    s = FakeSession(FakeResponse(402, "{}"))
    with pytest.raises(PaymentError):
        _client(s).fetch("act")
    assert len(s.calls) == 1


def test_abandoned_payment_does_not_retry():
    s = FakeSession(FakeResponse(402, "{}"))
    with pytest.raises(PaymentError, match="cancelled"):
        _client(s, pay=lambda r: None).fetch("act")
    assert len(s.calls) == 1


def test_server_error_is_categorized():
    s = FakeSession(FakeResponse(500, {"error": "Failed to fetch animal", "details": "x"}))
    with pytest.raises(ServerError) as exc:
        _client(s).fetch("act")
    assert exc.value.status == 500
    assert exc.value.category == "server"


def test_redirect_is_not_followed_and_not_parsed():
    s = FakeSession(FakeResponse(307, "", content_type="text/html"))
    with pytest.raises(ServerError):
        _client(s).fetch("act")


def test_non_json_content_type_is_a_format_error():
    s = FakeSession(FakeResponse(200, "<html>paywall</html>", content_type="text/html"))
    with pytest.raises(ResponseFormatError) as exc:
        _client(s).fetch("act")
    assert "text/html" in str(exc.value)
    assert exc.value.category == "format"


def test_broken_json_is_a_format_error():
    s = FakeSession(FakeResponse(200, "{not json"))
    with pytest.raises(ResponseFormatError):
        _client(s).fetch("act")


def test_wrong_json_shape_is_a_format_error():
    s = FakeSession(FakeResponse(200, {"animal": "Cat"}))
    with pytest.raises(ResponseFormatError):
        _client(s).fetch("act")


def test_transport_failure_is_a_network_error():
    s = FakeSession(requests.ConnectionError("refused"))
    with pytest.raises(NetworkError) as exc:
        _client(s).fetch("act")
    assert exc.value.category == "network"
