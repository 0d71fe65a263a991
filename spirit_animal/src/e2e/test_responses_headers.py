from animal_engine.models import AnimalRecord, MatchResult
from animal_engine.responses import (
    build_payload, error_payload, resolve_origin, json_headers, preflight_headers,
)


def test_payload_shape():
    res = MatchResult(AnimalRecord("Cat", "hunter"), min_distance=0, tie_count=2, normalized_name="act")
    assert build_payload(res, total_animals=3) == {
        "animal": {"name": "Cat", "description": "hunter", "similarityScore": 0},
        "originalName": "act",
        "totalAnimals": 3,
        "closestMatches": 2,
    }


def test_origin_header_first():
    headers = {"Origin": "https://example.com", "Referer": "https://other.test/x", "Host": "api.test"}
    assert resolve_origin(headers) == "https://example.com"


def test_origin_from_referer():
    assert resolve_origin({"Referer": "http://localhost:3000/animals?name=Ada"}) == "http://localhost:3000"


def test_origin_from_host_and_forwarded_proto():
    assert resolve_origin({"Host": "spirit.test"}) == "https://spirit.test"
    assert resolve_origin({"Host": "spirit.test", "X-Forwarded-Proto": "http"}) == "http://spirit.test"


def test_no_origin_information():
    assert resolve_origin({}) is None


def test_credentialed_headers_echo_origin():
    h = json_headers("https://example.com")
    assert h["Access-Control-Allow-Origin"] == "https://example.com"
    assert h["Access-Control-Allow-Credentials"] == "true"
    assert h["Vary"] == "Origin"
    assert h["Cache-Control"].startswith("no-store")
    assert h["Content-Disposition"] == "inline"
    assert h["X-Content-Type-Options"] == "nosniff"
    assert h["Content-Type"].startswith("application/json")


def test_wildcard_only_without_origin():
    h = json_headers(None)
    assert h["Access-Control-Allow-Origin"] == "*"
    assert "Vary" not in h


def test_preflight_headers_have_max_age():
    h = preflight_headers("https://example.com")
    assert h["Access-Control-Max-Age"] == "86400"
    assert "OPTIONS" in h["Access-Control-Allow-Methods"]
    assert "Content-Type" not in h


def test_error_payload():
    assert error_payload(ValueError("boom")) == {"error": "Failed to fetch animal", "details": "boom"}
    assert error_payload(KeyError())["details"] == "KeyError"
