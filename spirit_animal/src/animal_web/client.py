"""
Client side of the matching API.

AnimalClient asks for JSON explicitly and runs the payment choreography:
first attempt -> 402 -> hand over to the payment capability -> wait for the
gate's session to settle -> exactly one retry. Every failure surfaces as an
AnimalClientError subclass tagged with a category the UI can act on.
"""
from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from animal_engine.config import (
    API_PATH, CLIENT_TIMEOUT, RETRY_HEADER, RETRY_SETTLE_SECONDS,
)
from animal_engine.gate import PAYMENT_REQUIRED

log = logging.getLogger(__name__)

# Receives the 402 response; returns headers to attach to the retry, or None if the user gave up
PaymentHandler = Callable[[requests.Response], Optional[Mapping[str, str]]]


# ---------- errors ----------

class AnimalClientError(Exception):
    category = "unknown"

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class InputError(AnimalClientError):
    category = "input"


class NetworkError(AnimalClientError):
    category = "network"


class PaymentError(AnimalClientError):
    category = "payment"


class ServerError(AnimalClientError):
    category = "server"


class ResponseFormatError(AnimalClientError):
    """The server answered, but not with the JSON we asked for."""
    category = "format"


# ---------- result ----------

@dataclass(frozen=True)
class AnimalMatch:
    name: str
    description: str
    similarity_score: int
    original_name: str
    total_animals: int
    closest_matches: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AnimalMatch":
        try:
            animal = data["animal"]
            return cls(
                name=animal["name"],
                description=animal["description"],
                similarity_score=int(animal["similarityScore"]),
                original_name=data["originalName"],
                total_animals=int(data["totalAnimals"]),
                closest_matches=int(data["closestMatches"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ResponseFormatError(f"Unexpected JSON shape: {exc!r}") from exc


# ---------- client ----------

class AnimalClient:
    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        pay: Optional[PaymentHandler] = None,
        settle_delay: float = RETRY_SETTLE_SECONDS,
        timeout: float = CLIENT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = base_url.rstrip("/") + API_PATH
        self.session = session or requests.Session()
        self._pay = pay
        self._settle_delay = settle_delay
        self._timeout = timeout
        self._sleep = sleep

    def fetch(self, name: str) -> AnimalMatch:
        name = name.strip()
        if not name:
            raise InputError("Please enter your name")

        resp = self._get(name, extra_headers=None, is_retry=False)
        if resp.status_code == PAYMENT_REQUIRED:
            extra = self._hand_over_to_payment(resp)
            # Bounded wait for the gate's session state, then one retry
            self._sleep(self._settle_delay)
            resp = self._get(name, extra_headers=extra, is_retry=True)
            if resp.status_code == PAYMENT_REQUIRED:
                raise PaymentError("Payment required: the payment was not accepted", status=resp.status_code)

        return self._parse(resp)

    # ------------- internals -------------

    def _get(self, name: str, *, extra_headers: Optional[Mapping[str, str]], is_retry: bool) -> requests.Response:
        headers = {"Accept": "application/json"}
        if extra_headers:
            headers.update(extra_headers)
        if is_retry:
            headers[RETRY_HEADER] = "1"
        try:
            resp = self.session.get(
                self.url,
                params={"name": name, "format": "json"},
                headers=headers,
                timeout=self._timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            log.error("Request to %s failed: %s", self.url, exc)
            raise NetworkError(f"Network error: failed to connect to {self.url}") from exc
        log.debug("GET %s name=%r retry=%s -> %d", self.url, name, is_retry, resp.status_code)
        return resp

    def _hand_over_to_payment(self, resp: requests.Response) -> Optional[Mapping[str, str]]:
        if self._pay is None:
            raise PaymentError("Payment required and no payment method is configured", status=resp.status_code)
        extra = self._pay(resp)
        if extra is None:
            raise PaymentError("Payment was cancelled", status=resp.status_code)
        return extra

    def _parse(self, resp: requests.Response) -> AnimalMatch:
        if not 200 <= resp.status_code < 300:
            body = resp.text
            log.error("API error %d: %s", resp.status_code, body)
            raise ServerError(f"Server error {resp.status_code}: {body or resp.reason}", status=resp.status_code)

        ctype = resp.headers.get("Content-Type", "")
        if "application/json" not in ctype:
            raise ResponseFormatError(
                f"Unexpected response format. Expected JSON but got {ctype or 'unknown'}",
                status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise ResponseFormatError("Invalid JSON response from server", status=resp.status_code) from exc
        if not isinstance(data, dict):
            raise ResponseFormatError("Invalid JSON response from server", status=resp.status_code)
        return AnimalMatch.from_json(data)


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Ask a running server for your spirit animal")
    ap.add_argument("name")
    ap.add_argument("--url", default="http://127.0.0.1:8000")
    ap.add_argument("--payment", default=None, help="X-PAYMENT token to send when the server asks for payment")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    pay = (lambda _resp: {"X-PAYMENT": args.payment}) if args.payment else None
    client = AnimalClient(args.url, pay=pay)
    try:
        m = client.fetch(args.name)
    except AnimalClientError as exc:
        print(f"[{exc.category}] {exc}")
        return 1
    print(f"{m.original_name} -> {m.name}: {m.description}")
    print(f"   similarity={m.similarity_score}  closest={m.closest_matches}/{m.total_animals}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
