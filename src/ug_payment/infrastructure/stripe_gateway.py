"""Stripe implementation of PaymentGatewayProtocol.

The Stripe SDK is synchronous; calls run in a worker thread so the event
loop is never blocked. The API key is passed per call instead of being set
on the ``stripe`` module, since sandbox and live keys are chosen per request.
"""

import asyncio
import logging
from typing import Any

import stripe

from config.settings import settings
from src.ug_common.errors import PaymentGatewayError, WebhookSignatureError
from src.ug_payment.domain.gateway import GatewayEvent, GatewayIntent

logger = logging.getLogger(__name__)


def is_sandbox_host(host: str | None) -> bool:
    if not host:
        return False
    hosts = [h.strip() for h in settings.STRIPE_SANDBOX_HOSTS.split(",") if h.strip()]
    return any(h in host for h in hosts)


def select_secret_key(host: str | None) -> str:
    """Sandbox key for local and preview deployments, live key otherwise."""
    if is_sandbox_host(host):
        return settings.STRIPE_SECRET_KEY_SANDBOX
    return settings.STRIPE_SECRET_KEY


def _get_value(obj: Any, attr: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(attr)
    return getattr(obj, attr, None)


def _metadata_to_dict(metadata: Any) -> dict[str, str]:
    """Convert a Stripe metadata object into a plain dictionary."""
    if metadata is None:
        return {}
    if isinstance(metadata, dict):
        return {str(k): str(v) for k, v in metadata.items()}
    to_dict = getattr(metadata, "to_dict", None)
    if callable(to_dict):
        return {str(k): str(v) for k, v in to_dict().items()}
    return {str(k): str(v) for k, v in dict(metadata).items()}


def to_gateway_intent(obj: Any) -> GatewayIntent:
    return GatewayIntent(
        id=str(_get_value(obj, "id")),
        status=str(_get_value(obj, "status")),
        amount=int(_get_value(obj, "amount") or 0),
        currency=str(_get_value(obj, "currency") or ""),
        client_secret=_get_value(obj, "client_secret"),
        metadata=_metadata_to_dict(_get_value(obj, "metadata")),
    )


class StripeGateway:
    def __init__(self, api_key: str, webhook_secret: str | None = None) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    @classmethod
    def for_host(cls, host: str | None) -> "StripeGateway":
        return cls(api_key=select_secret_key(host))

    def _require_key(self) -> None:
        if not self._api_key:
            raise PaymentGatewayError("payment processing is not configured")

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str,
        receipt_email: str | None,
    ) -> GatewayIntent:
        self._require_key()
        params: dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
            "description": description,
        }
        if receipt_email:
            params["receipt_email"] = receipt_email
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                api_key=self._api_key,
                **params,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe error creating payment intent: %s", exc)
            raise PaymentGatewayError(exc.user_message or "could not create payment") from exc
        created = to_gateway_intent(intent)
        logger.info("Created Stripe payment intent %s amount=%d", created.id, amount)
        return created

    async def retrieve_intent(self, intent_id: str) -> GatewayIntent:
        self._require_key()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve, intent_id, api_key=self._api_key
            )
        except stripe.StripeError as exc:
            logger.error("Stripe error retrieving payment intent %s: %s", intent_id, exc)
            raise PaymentGatewayError(exc.user_message or "could not verify payment") from exc
        return to_gateway_intent(intent)

    async def cancel_intent(self, intent_id: str) -> GatewayIntent:
        self._require_key()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.cancel, intent_id, api_key=self._api_key
            )
        except stripe.StripeError as exc:
            logger.error("Stripe error canceling payment intent %s: %s", intent_id, exc)
            raise PaymentGatewayError(exc.user_message or "could not cancel payment") from exc
        logger.info("Canceled Stripe payment intent %s", intent_id)
        return to_gateway_intent(intent)

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent:
        if not self._webhook_secret:
            raise PaymentGatewayError("webhook secret is not configured")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected Stripe webhook: %s", exc)
            raise WebhookSignatureError() from exc

        event_type = str(_get_value(event, "type"))
        data_object = _get_value(_get_value(event, "data"), "object")
        intent = None
        if event_type.startswith("payment_intent.") and data_object is not None:
            intent = to_gateway_intent(data_object)
        return GatewayEvent(id=str(_get_value(event, "id")), event_type=event_type, intent=intent)
