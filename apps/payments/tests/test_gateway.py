"""Tests for the payment gateway adapter and webhook verification."""

from __future__ import annotations

import json
import time
from decimal import Decimal
from unittest.mock import patch

import pytest
import stripe
from django.test import SimpleTestCase, override_settings

from apps.payments import gateway
from apps.payments.gateway import (
    PaymentGatewayError,
    StripePaymentGateway,
    WebhookSignatureError,
    configure_stripe,
    parse_webhook,
    to_minor_units,
)
from apps.payments.tests.utils import stripe_signature_header
from shared.domain.errors import InvalidRequest

GATEWAY_MODULE_PATH = "apps.payments.gateway"


def _event(event_type: str, **intent) -> bytes:
    intent.setdefault("id", "pi_123")
    intent.setdefault("object", "payment_intent")
    intent.setdefault("metadata", {"correlation_token": "0b7f6f43-7c39-4a47-9a3d-2f5d9a7f8e10"})
    return json.dumps(
        {"id": "evt_1", "object": "event", "type": event_type, "data": {"object": intent}}
    ).encode()


def test_minor_units_rounding():
    assert to_minor_units(Decimal("25.00")) == 2500
    assert to_minor_units(Decimal("12.345")) == 1235
    assert to_minor_units(Decimal("0.01")) == 1


def test_configure_stripe_applies_network_settings(settings):
    settings.PAYMENT_GATEWAY_TIMEOUT = 7
    settings.PAYMENT_GATEWAY_MAX_RETRIES = 3

    configure_stripe()

    assert stripe.max_network_retries == 3
    assert isinstance(stripe.default_http_client, stripe.RequestsClient)


@override_settings(DEBUG=False)
class StripePaymentGatewayTests(SimpleTestCase):
    def setUp(self) -> None:
        self.gateway = StripePaymentGateway(secret_key="sk_test_123")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.create")
    def test_authorize_creates_payment_intent(self, mock_create) -> None:
        mock_create.return_value = {"id": "pi_abc", "client_secret": "pi_abc_secret_x"}

        authorization = self.gateway.authorize(
            amount=Decimal("75.00"),
            currency="EUR",
            correlation_token="token-1",
            metadata={"excursion_id": "sunset-kayak", "quantity": 3},
        )

        self.assertEqual(authorization.gateway_ref, "pi_abc")
        self.assertEqual(authorization.client_token, "pi_abc_secret_x")
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs["amount"], 7500)
        self.assertEqual(kwargs["currency"], "eur")
        self.assertEqual(kwargs["automatic_payment_methods"], {"enabled": True})
        self.assertEqual(
            kwargs["metadata"],
            {"excursion_id": "sunset-kayak", "quantity": "3", "correlation_token": "token-1"},
        )
        self.assertEqual(kwargs["idempotency_key"], "token-1")
        self.assertEqual(kwargs["api_key"], "sk_test_123")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.create")
    def test_authorize_wraps_connection_errors(self, mock_create) -> None:
        mock_create.side_effect = stripe.APIConnectionError("connection refused")

        with self.assertRaises(PaymentGatewayError):
            self.gateway.authorize(Decimal("10.00"), "eur", "token-2")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.create")
    def test_authorize_wraps_api_errors(self, mock_create) -> None:
        mock_create.side_effect = stripe.InvalidRequestError("Amount must be positive", param="amount")

        with self.assertRaises(PaymentGatewayError):
            self.gateway.authorize(Decimal("10.00"), "eur", "token-3")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.create")
    def test_authorize_rejects_incomplete_response(self, mock_create) -> None:
        mock_create.return_value = {"id": "pi_abc"}

        with self.assertRaises(PaymentGatewayError):
            self.gateway.authorize(Decimal("10.00"), "eur", "token-4")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.cancel")
    def test_cancel_calls_gateway(self, mock_cancel) -> None:
        self.assertTrue(self.gateway.cancel("pi_abc"))
        mock_cancel.assert_called_once_with("pi_abc", api_key="sk_test_123")

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.cancel")
    def test_cancel_never_raises(self, mock_cancel) -> None:
        mock_cancel.side_effect = stripe.APIConnectionError("timeout")

        self.assertFalse(self.gateway.cancel("pi_abc"))

    @patch(f"{GATEWAY_MODULE_PATH}.stripe.PaymentIntent.create")
    def test_emulation_without_secret_key(self, mock_create) -> None:
        emulated = StripePaymentGateway(secret_key="")

        authorization = emulated.authorize(Decimal("10.00"), "eur", "token-5")

        self.assertTrue(authorization.gateway_ref.startswith("pi_emulated_"))
        self.assertIn("_secret_", authorization.client_token)
        mock_create.assert_not_called()


def test_get_gateway_uses_configured_class(settings):
    settings.PAYMENT_GATEWAY_CLASS = "apps.payments.gateway.StripePaymentGateway"

    assert isinstance(gateway.get_gateway(), StripePaymentGateway)


def test_parse_succeeded_event():
    payload = _event("payment_intent.succeeded")

    outcome = parse_webhook(payload, stripe_signature_header(payload))

    assert outcome is not None
    assert outcome.succeeded
    assert outcome.gateway_ref == "pi_123"
    assert outcome.event_id == "evt_1"
    assert outcome.correlation_token == "0b7f6f43-7c39-4a47-9a3d-2f5d9a7f8e10"
    assert outcome.payload["type"] == "payment_intent.succeeded"


@pytest.mark.parametrize("event_type", ["payment_intent.payment_failed", "payment_intent.canceled"])
def test_parse_failure_events(event_type):
    payload = _event(event_type, last_payment_error={"message": "Card declined"})

    outcome = parse_webhook(payload, stripe_signature_header(payload))

    assert outcome.status == "failed"
    assert outcome.failure_message == "Card declined"


def test_parse_ignores_unrelated_events():
    payload = _event("charge.refunded")

    assert parse_webhook(payload, stripe_signature_header(payload)) is None


def test_parse_rejects_foreign_secret():
    payload = _event("payment_intent.succeeded")

    with pytest.raises(WebhookSignatureError):
        parse_webhook(payload, stripe_signature_header(payload, secret="someone_else"))


def test_parse_rejects_tampered_payload():
    header = stripe_signature_header(_event("payment_intent.payment_failed"))

    with pytest.raises(WebhookSignatureError):
        parse_webhook(_event("payment_intent.succeeded"), header)


def test_parse_rejects_stale_signature(settings):
    settings.PAYMENT_WEBHOOK_TOLERANCE = 300
    payload = _event("payment_intent.succeeded")
    header = stripe_signature_header(payload, timestamp=int(time.time()) - 3600)

    with pytest.raises(WebhookSignatureError):
        parse_webhook(payload, header)


@pytest.mark.parametrize("header", ["", "garbage", "t=123"])
def test_parse_rejects_malformed_headers(header):
    with pytest.raises(WebhookSignatureError):
        parse_webhook(_event("payment_intent.succeeded"), header)


def test_missing_secret_rejects_everything(settings):
    payload = _event("payment_intent.succeeded")
    header = stripe_signature_header(payload)
    settings.PAYMENT_WEBHOOK_SECRET = ""

    with pytest.raises(WebhookSignatureError):
        parse_webhook(payload, header)


def test_parse_rejects_malformed_json():
    payload = b"not json"

    with pytest.raises(InvalidRequest):
        parse_webhook(payload, stripe_signature_header(payload))
