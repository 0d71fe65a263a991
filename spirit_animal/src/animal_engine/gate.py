"""
Payment gate boundary.

The matching core never knows how a micropayment is granted, only whether the
request may proceed. A gate answers with a GateDecision: either `allowed`, or a
ready-made payment-required response (status, body, headers) that the web
layer returns verbatim.
"""
from __future__ import annotations
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

import requests

from .negotiate import header_value
from . import config as CFG

log = logging.getLogger(__name__)

PAYMENT_REQUIRED = 402

@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    status: int = 200
    body: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)

ALLOW = GateDecision(allowed=True)

class PaymentGate(Protocol):
    def check(self, method: str, path: str, headers: Mapping[str, Any]) -> GateDecision: ...

class OpenGate:
    """Lets every request through (local development and tests)."""
    def check(self, method: str, path: str, headers: Mapping[str, Any]) -> GateDecision:
        return ALLOW

@dataclass(frozen=True)
class Pricing:
    price: str = CFG.PRICE
    network: str = CFG.NETWORK
    pay_to: str = CFG.RECEIVER_ADDRESS
    description: str = CFG.PRICE_DESCRIPTION
    facilitator_url: str = CFG.FACILITATOR_URL

class PaymentHeaderGate:
    """
    Requires an X-PAYMENT header on every gated call.

    `verify(token, path)` settles the payload with the facilitator and returns
    True when the payment is good; without it any non-empty token is accepted.
    """

    def __init__(self, pricing: Pricing, verify: Optional[Callable[[str, str], bool]] = None) -> None:
        self.pricing = pricing
        self._verify = verify

    def check(self, method: str, path: str, headers: Mapping[str, Any]) -> GateDecision:
        token = header_value(headers, CFG.PAYMENT_HEADER).strip()
        if not token:
            return self._required(path, f"{CFG.PAYMENT_HEADER} header is required")
        if self._verify is not None and not self._verify(token, path):
            log.warning("Payment rejected for %s", path)
            return self._required(path, "Payment verification failed")
        return ALLOW

    def _required(self, path: str, reason: str) -> GateDecision:
        p = self.pricing
        return GateDecision(
            allowed=False,
            status=PAYMENT_REQUIRED,
            body={
                "error": reason,
                "accepts": [{
                    "price": p.price,
                    "network": p.network,
                    "payTo": p.pay_to,
                    "resource": path,
                    "description": p.description,
                    "facilitator": p.facilitator_url,
                }],
            },
            headers={"Content-Type": "application/json; charset=utf-8", "Cache-Control": CFG.NO_STORE},
        )

class FacilitatorVerifier:
    """
    Checks an X-PAYMENT token with the facilitator before the call is served.

    The token is base64-encoded JSON (x402 payment payload). It is posted to
    `<facilitator>/verify` with the route's payment requirements and then to
    `<facilitator>/settle`; the call is allowed only when both succeed.
    Undecodable tokens are rejected without contacting the facilitator.
    """

    def __init__(self, pricing: Pricing, *, session: Optional[requests.Session] = None,
                 timeout: float = CFG.CLIENT_TIMEOUT) -> None:
        self.pricing = pricing
        self.base_url = pricing.facilitator_url.rstrip("/")
        self.session = session or requests.Session()
        self._timeout = timeout

    def __call__(self, token: str, path: str) -> bool:
        payload = decode_payment(token)
        if payload is None:
            log.info("Undecodable %s header for %s", CFG.PAYMENT_HEADER, path)
            return False
        body = {
            "x402Version": payload.get("x402Version", 1),
            "paymentPayload": payload,
            "paymentRequirements": self.requirements(path),
        }
        verified = self._post("verify", body)
        if not verified.get("isValid"):
            log.warning("Facilitator rejected payment for %s: %s", path, verified.get("invalidReason"))
            return False
        settled = self._post("settle", body)
        if not settled.get("success"):
            log.warning("Payment settlement failed for %s: %s", path, settled.get("errorReason"))
            return False
        return True

    def requirements(self, path: str) -> Dict[str, Any]:
        p = self.pricing
        return {
            "scheme": "exact",
            "network": p.network,
            "maxAmountRequired": atomic_amount(p.price),
            "resource": path,
            "description": p.description,
            "payTo": p.pay_to,
            "maxTimeoutSeconds": 60,
        }

    def _post(self, action: str, body: Dict[str, Any]) -> Dict[str, Any]:
        # An unreachable or misbehaving facilitator means "not paid"
        try:
            resp = self.session.post(f"{self.base_url}/{action}", json=body, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.error("Facilitator %s failed: %s", action, exc)
            return {}
        return data if isinstance(data, dict) else {}

def decode_payment(token: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(base64.b64decode(token, validate=True))
    except (binascii.Error, ValueError):
        return None
    return data if isinstance(data, dict) else None

def atomic_amount(price: str, decimals: int = 6) -> str:
    """'$0.001' -> '1000' (USDC has 6 decimals)."""
    return str(int(Decimal(price.lstrip("$")) * (10 ** decimals)))

def gate_from_env() -> PaymentGate:
    """Facilitator-verified gate when a receiver address is configured, open otherwise."""
    if CFG.RECEIVER_ADDRESS:
        pricing = Pricing(pay_to=CFG.RECEIVER_ADDRESS)
        log.info("Payment gate enabled: %s on %s to %s, verified by %s",
                 pricing.price, pricing.network, pricing.pay_to, pricing.facilitator_url)
        return PaymentHeaderGate(pricing, verify=FacilitatorVerifier(pricing))
    log.warning("RECEIVER_ADDRESS is not set; %s is served without payment", CFG.API_PATH)
    return OpenGate()
