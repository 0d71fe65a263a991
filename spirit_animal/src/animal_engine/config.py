from __future__ import annotations
import os
from pathlib import Path

# Fallback name when the trimmed input is empty
ANONYMOUS_NAME: str = "anonymous"

# Dataset location (set ANIMALS_DATA_PATH to override the packaged catalog)
PACKAGE_DATA: Path = Path(__file__).resolve().parent / "data" / "animals.json"
DATA_PATH: str = os.environ.get("ANIMALS_DATA_PATH") or str(PACKAGE_DATA)

# Routes
API_PATH: str = "/api/animals"
PAGE_PATH: str = "/animals"

# /* ~~~ query flags that force a JSON response (never redirected) ~~~ */
JSON_FORMAT_PARAM: tuple[str, str] = ("format", "json")
JSON_FLAG_PARAM: tuple[str, str] = ("json", "true")

# /* ~~~ Sec-Fetch-Mode values sent by fetch()/XHR, never by an address-bar visit ~~~ */
PROGRAMMATIC_FETCH_MODES = frozenset({"cors", "same-origin", "no-cors"})
AJAX_MARKER: str = "XMLHttpRequest"

# CORS
ALLOW_METHODS: str = "GET, POST, OPTIONS"
ALLOW_HEADERS: str = "Content-Type, Accept, Authorization, X-Requested-With, X-PAYMENT"
PREFLIGHT_MAX_AGE: int = 86_400  # 24 hours
DEFAULT_FORWARDED_PROTO: str = "https"
NO_STORE: str = "no-store, no-cache, must-revalidate, proxy-revalidate"

# Payment gate pricing for the matching endpoint
RECEIVER_ADDRESS: str = (os.environ.get("RECEIVER_ADDRESS") or os.environ.get("WALLET_ADDRESS") or "").strip()
FACILITATOR_URL: str = os.environ.get("FACILITATOR_URL", "https://x402.org/facilitator")
PRICE: str = os.environ.get("ANIMAL_PRICE", "$0.001")
NETWORK: str = os.environ.get("ANIMAL_NETWORK", "solana-devnet")
PRICE_DESCRIPTION: str = "Get a random animal based on character repetition"
PAYMENT_HEADER: str = "X-PAYMENT"

# Client retry choreography
RETRY_SETTLE_SECONDS: float = 1.5
RETRY_HEADER: str = "X-Retry-Attempt"
CLIENT_TIMEOUT: float = 10.0
