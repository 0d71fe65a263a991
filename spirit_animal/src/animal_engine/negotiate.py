from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping
from . import config as CFG

@dataclass(frozen=True)
class RequestSignals:
    """Transport-neutral view of the headers/query that decide JSON vs redirect."""
    accept: str = ""
    fetch_mode: str = ""          # Sec-Fetch-Mode
    requested_with: str = ""      # X-Requested-With
    query: Mapping[str, str] = field(default_factory=dict)

@dataclass(frozen=True)
class Classification:
    wants_json: bool
    wants_redirect: bool

JSON = Classification(wants_json=True, wants_redirect=False)
REDIRECT = Classification(wants_json=False, wants_redirect=True)

def header_value(headers: Mapping[str, Any], name: str) -> str:
    # Werkzeug's Headers is case-insensitive; plain dicts from tests may not be
    value = headers.get(name)
    if value is None:
        lower = name.lower()
        value = next((v for k, v in headers.items() if k.lower() == lower), None)
    return str(value or "")

def signals_from_headers(headers: Mapping[str, Any], query: Mapping[str, Any]) -> RequestSignals:
    return RequestSignals(
        accept=header_value(headers, "Accept"),
        fetch_mode=header_value(headers, "Sec-Fetch-Mode"),
        requested_with=header_value(headers, "X-Requested-With"),
        query={k: str(query.get(k)) for k in query.keys()},
    )

def forces_json(query: Mapping[str, str]) -> bool:
    """format=json or json=true in the query string."""
    return any(query.get(k) == v for k, v in (CFG.JSON_FORMAT_PARAM, CFG.JSON_FLAG_PARAM))

def is_programmatic(signals: RequestSignals) -> bool:
    """fetch()/XHR markers; a top-level navigation sends Sec-Fetch-Mode: navigate."""
    return (signals.fetch_mode.lower() in CFG.PROGRAMMATIC_FETCH_MODES
            or signals.requested_with == CFG.AJAX_MARKER)

def classify(signals: RequestSignals) -> Classification:
    """
    Decide whether the caller gets JSON or a redirect to the interactive page.
    First matching rule wins:
      1) explicit query flag           -> JSON
      2) Accept allows application/json -> JSON
      3) fetch/XHR transport markers   -> JSON
      4) Accept prefers text/html       -> redirect
      5) anything else                 -> JSON
    """
    if forces_json(signals.query):
        return JSON
    accept = signals.accept.lower()
    if "application/json" in accept:
        return JSON
    if is_programmatic(signals):
        return JSON
    if "text/html" in accept:
        return REDIRECT
    return JSON
