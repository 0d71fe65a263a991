from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit
from .models import MatchResult
from .negotiate import header_value
from . import config as CFG

ERROR_MESSAGE = "Failed to fetch animal"

# ---------- payloads ----------

def build_payload(result: MatchResult, total_animals: int) -> Dict[str, Any]:
    return {
        "animal": {
            "name": result.selected.name,
            "description": result.selected.description,
            "similarityScore": result.min_distance,
        },
        "originalName": result.normalized_name,
        "totalAnimals": total_animals,
        "closestMatches": result.tie_count,
    }

def error_payload(exc: BaseException) -> Dict[str, str]:
    return {"error": ERROR_MESSAGE, "details": str(exc) or type(exc).__name__}

# ---------- origin ----------

def _origin_of(url: str) -> Optional[str]:
    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return None

def resolve_origin(headers: Mapping[str, Any]) -> Optional[str]:
    """
    Origin to echo back for credentialed CORS:
      Origin header -> scheme://host of Referer -> forwarded proto + Host -> None
    """
    origin = header_value(headers, "Origin")
    if origin:
        return origin
    referer = header_value(headers, "Referer")
    if referer:
        derived = _origin_of(referer)
        if derived:
            return derived
    host = header_value(headers, "Host")
    if host:
        proto = header_value(headers, "X-Forwarded-Proto") or CFG.DEFAULT_FORWARDED_PROTO
        return f"{proto}://{host}"
    return None

# ---------- headers ----------

def cors_headers(origin: Optional[str]) -> Dict[str, str]:
    # Credentialed responses must echo a concrete origin; "*" only when nothing is known
    headers = {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": CFG.ALLOW_METHODS,
        "Access-Control-Allow-Headers": CFG.ALLOW_HEADERS,
    }
    if origin:
        headers["Vary"] = "Origin"
    return headers

def json_headers(origin: Optional[str]) -> Dict[str, str]:
    headers = cors_headers(origin)
    headers.update({
        "Content-Type": "application/json; charset=utf-8",
        "Cache-Control": CFG.NO_STORE,
        "Content-Disposition": "inline",
        "X-Content-Type-Options": "nosniff",
    })
    return headers

def preflight_headers(origin: Optional[str]) -> Dict[str, str]:
    headers = cors_headers(origin)
    headers["Access-Control-Max-Age"] = str(CFG.PREFLIGHT_MAX_AGE)
    return headers
