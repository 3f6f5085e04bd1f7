# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Stripe Checkout over its REST API."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
import uuid
from collections.abc import Callable
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from tourbook.application.interfaces import (
    CheckoutRequest,
    CheckoutSession,
    PaymentEvent,
    PaymentProvider,
    PaymentProviderError,
)
from tourbook.shared.config import PaymentsConfig
from tourbook.shared.errors import DomainError
from tourbook.shared.logging import logger


class InvalidWebhookSignatureError(DomainError):
    code = "invalid_webhook_signature"
    message = "Webhook signature verification failed."


def _parse_signature_header(header: str) -> tuple[int | None, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def sign_payload(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


class StripeCheckoutProvider(PaymentProvider):
    def __init__(
        self,
        config: PaymentsConfig,
        *,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._client = client or httpx.Client(base_url=config.stripe_api_base, timeout=config.timeout)
        self._clock = clock

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        if not self._config.stripe_secret_key:
            raise PaymentProviderError("STRIPE_SECRET_KEY is not configured.")

        form = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "customer_email": request.customer_email,
            "client_reference_id": request.tour_id,
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": self._config.currency,
            "line_items[0][price_data][unit_amount]": str(int(round(request.price * 100))),
            "line_items[0][price_data][product_data][name]": f"{request.tour_name} Tour",
            "line_items[0][price_data][product_data][description]": request.tour_summary,
        }
        if request.tour_image:
            form["line_items[0][price_data][product_data][images][0]"] = request.tour_image

        # one key for every attempt, so Stripe replays a session it already created
        headers = {"Idempotency-Key": f"checkout-{uuid.uuid4()}"}
        retry = Retrying(
            stop=stop_after_attempt(self._config.max_retries + 1),
            wait=wait_exponential(multiplier=self._config.backoff_base, max=self._config.backoff_cap),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        try:
            for attempt in retry:
                with attempt:
                    logger.debug(
                        f"payments.stripe: checkout attempt={attempt.retry_state.attempt_number}"
                    )
                    response = self._client.post(
                        "/v1/checkout/sessions",
                        data=form,
                        headers=headers,
                        auth=(self._config.stripe_secret_key, ""),
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(f"payments.stripe: checkout failed status={exc.response.status_code}")
            raise PaymentProviderError("Payment provider rejected the checkout session.") from exc
        except httpx.HTTPError as exc:
            logger.error(f"payments.stripe: checkout request failed: {exc}")
            raise PaymentProviderError("Payment provider is unreachable.") from exc

        payload: dict[str, Any] = response.json()
        logger.info(f"payments.stripe: session created tour={request.tour_id}")
        return CheckoutSession(id=payload["id"], url=payload.get("url"), raw=payload)

    def parse_webhook(self, payload: bytes, signature: str | None) -> PaymentEvent:
        secret = self._config.stripe_webhook_secret
        if not secret:
            raise PaymentProviderError("STRIPE_WEBHOOK_SECRET is not configured.")

        timestamp, candidates = _parse_signature_header(signature or "")
        if timestamp is None or not candidates:
            raise InvalidWebhookSignatureError()
        if abs(self._clock() - timestamp) > self._config.webhook_tolerance_seconds:
            raise InvalidWebhookSignatureError(message="Webhook timestamp outside the tolerance window.")

        expected = sign_payload(payload, secret, timestamp)
        if not any(hmac.compare_digest(expected, candidate) for candidate in candidates):
            raise InvalidWebhookSignatureError()

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise InvalidWebhookSignatureError(message="Webhook payload is not valid JSON.") from exc
        return PaymentEvent(type=str(event.get("type", "")), data=event.get("data", {}).get("object", {}))

    def close(self) -> None:
        self._client.close()


__all__ = ["InvalidWebhookSignatureError", "StripeCheckoutProvider", "sign_payload"]
