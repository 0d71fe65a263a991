"""Flask surface and HTTP client for the spirit-animal matcher."""
from __future__ import annotations
from .web import app, init_app
from .client import (
    AnimalClient, AnimalMatch, AnimalClientError,
    InputError, NetworkError, PaymentError, ServerError, ResponseFormatError,
)

__all__ = [
    "app", "init_app",
    "AnimalClient", "AnimalMatch", "AnimalClientError",
    "InputError", "NetworkError", "PaymentError", "ServerError", "ResponseFormatError",
]
