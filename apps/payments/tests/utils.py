"""Helpers for building gateway webhooks in tests."""

from __future__ import annotations

import hashlib
import hmac
import time

from django.conf import settings  # type: ignore


def stripe_signature_header(payload: bytes, *, secret: str | None = None, timestamp: int | None = None) -> str:
    """`Stripe-Signature` value as the gateway sends it: t=<unix>,v1=<hmac of "t.body">."""
    secret = settings.PAYMENT_WEBHOOK_SECRET if secret is None else secret
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
