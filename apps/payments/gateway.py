"""
Payment gateway adapter.

PaymentIntent integration built on the `stripe` SDK: the booking core asks
for an authorization and later learns the outcome from a signed webhook.
The core only sees `Authorization` and `PaymentOutcome`; gateway payloads
and error texts never leave this module.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

from shared.domain.errors import InvalidRequest

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"

SUCCEEDED = "succeeded"
FAILED = "failed"

# Gateway event type -> outcome status
EVENT_STATUSES = {
    "payment_intent.succeeded": SUCCEEDED,
    "payment_intent.payment_failed": FAILED,
    "payment_intent.canceled": FAILED,
}


class PaymentGatewayError(Exception):
    """Any failure talking to the payment gateway."""


class WebhookSignatureError(PaymentGatewayError):
    pass


@dataclass(frozen=True)
class Authorization:
    client_token: str
    gateway_ref: str


@dataclass(frozen=True)
class PaymentOutcome:
    gateway_ref: str
    status: str
    correlation_token: str | None = None
    event_id: str = ""
    event_type: str = ""
    failure_message: str = ""
    payload: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


def to_minor_units(amount: Decimal) -> int:
    """12.345 EUR -> 1235 cents."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def configure_stripe() -> None:
    """Network settings of the SDK; called once from PaymentsConfig.ready()."""
    stripe.max_network_retries = settings.PAYMENT_GATEWAY_MAX_RETRIES
    stripe.default_http_client = stripe.RequestsClient(timeout=settings.PAYMENT_GATEWAY_TIMEOUT)


class StripePaymentGateway:
    """
    Client for the gateway's PaymentIntent API.

    Without a secret key (or with DEBUG on) the adapter runs in emulation
    mode and fabricates intents locally, as in development nobody can pay
    against the real gateway anyway.
    """

    def __init__(self, secret_key: str | None = None):
        self.secret_key = settings.PAYMENT_GATEWAY_SECRET_KEY if secret_key is None else secret_key

    @property
    def emulated(self) -> bool:
        return settings.DEBUG or not self.secret_key

    def authorize(
        self,
        amount: Decimal,
        currency: str,
        correlation_token: str,
        metadata: dict[str, Any] | None = None,
    ) -> Authorization:
        """
        Create a payment intent for `amount` and return the token the client
        needs to confirm it together with the gateway's reference.

        The correlation token is sent as idempotency key and in metadata, so a
        retried request never creates a second intent and webhooks can be
        matched even before the reference is stored.
        """
        metadata = {**(metadata or {}), "correlation_token": correlation_token}
        logger.info(f"Authorizing payment {correlation_token}: {amount} {currency}")

        if self.emulated:
            logger.warning("Payment gateway emulation is active (DEBUG or no secret key)")
            gateway_ref = f"pi_emulated_{uuid.uuid4().hex[:16]}"
            return Authorization(
                client_token=f"{gateway_ref}_secret_{uuid.uuid4().hex[:12]}",
                gateway_ref=gateway_ref,
            )

        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                automatic_payment_methods={"enabled": True},
                metadata={key: str(value) for key, value in metadata.items()},
                idempotency_key=correlation_token,
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Payment intent creation failed for {correlation_token}: {e}")
            raise PaymentGatewayError(f"Gateway request failed: {e}") from e

        gateway_ref = intent.get("id")
        client_token = intent.get("client_secret")
        if not gateway_ref or not client_token:
            logger.error(f"Payment intent without id/client_secret for {correlation_token}")
            raise PaymentGatewayError("Gateway response is missing id or client_secret")

        logger.info(f"Payment intent {gateway_ref} created for {correlation_token}")
        return Authorization(client_token=client_token, gateway_ref=gateway_ref)

    def cancel(self, gateway_ref: str) -> bool:
        """Best effort: cancel an intent whose hold was released. Never raises."""
        if self.emulated or not gateway_ref:
            return True
        try:
            stripe.PaymentIntent.cancel(gateway_ref, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.warning(f"Could not cancel payment intent {gateway_ref}: {e}")
            return False
        logger.info(f"Payment intent {gateway_ref} cancelled")
        return True


def get_gateway():
    """Instantiate the adapter configured in PAYMENT_GATEWAY_CLASS."""
    return import_string(settings.PAYMENT_GATEWAY_CLASS)()


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


def construct_event(payload: bytes, header: str):
    """
    Verify the `Stripe-Signature` header and decode the event.

    Raises:
        WebhookSignatureError: secret not configured, signature missing, wrong or stale
        InvalidRequest: body is not a JSON event
    """
    secret = settings.PAYMENT_WEBHOOK_SECRET
    if not secret:
        logger.error("PAYMENT_WEBHOOK_SECRET is not configured, rejecting webhook")
        raise WebhookSignatureError("Webhook secret is not configured")

    try:
        return stripe.Webhook.construct_event(
            payload,
            header or "",
            secret,
            tolerance=settings.PAYMENT_WEBHOOK_TOLERANCE,
        )
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError("Webhook signature verification failed") from e
    except (ValueError, TypeError, AttributeError):
        raise InvalidRequest("Некорректный JSON в webhook.") from None


def parse_webhook(payload: bytes, header: str) -> PaymentOutcome | None:
    """
    Verify and decode a webhook.

    Returns None for event types that do not decide a payment.
    """
    event = construct_event(payload, header)

    event_type = event.get("type", "")
    status = EVENT_STATUSES.get(event_type)
    if status is None:
        logger.info(f"Unhandled webhook event type: {event_type}")
        return None

    intent = (event.get("data") or {}).get("object") or {}
    gateway_ref = intent.get("id")
    if not gateway_ref:
        raise InvalidRequest("В событии отсутствует идентификатор платежа.", event_type=event_type)

    failure = intent.get("last_payment_error") or {}
    return PaymentOutcome(
        gateway_ref=gateway_ref,
        status=status,
        correlation_token=(intent.get("metadata") or {}).get("correlation_token"),
        event_id=event.get("id", ""),
        event_type=event_type,
        failure_message=failure.get("message", "") if isinstance(failure, dict) else "",
        payload=dict(event),
    )
