"""Payment receipt e-mail through the Resend HTTP API.

Receipts are best-effort: the purchase is already committed when this runs,
so failures are logged and never raised.
"""

import html
import logging
from dataclasses import dataclass

import httpx

from config.settings import settings
from src.ug_common.cents import cents_to_display

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 10.0


@dataclass
class Receipt:
    to_email: str
    to_name: str | None
    release_title: str | None
    release_uuid: str
    product_names: list[str]
    amount_cents: int
    transaction_id: str


def render_receipt_html(receipt: Receipt) -> str:
    items = "".join(f"<li>{html.escape(name)}</li>" for name in receipt.product_names)
    greeting = html.escape(receipt.to_name or "there")
    title = html.escape(receipt.release_title or "your release")
    link = f"{settings.APP_URL.rstrip('/')}/pr/{receipt.release_uuid}"
    return (
        f"<p>Hi {greeting},</p>"
        f"<p>Thanks for your purchase for <strong>{title}</strong>.</p>"
        f"<ul>{items}</ul>"
        f"<p>Total charged: <strong>{cents_to_display(receipt.amount_cents)}</strong><br>"
        f"Transaction ID: {html.escape(receipt.transaction_id)}</p>"
        f'<p><a href="{html.escape(link)}">View your release</a></p>'
    )


class ResendReceiptMailer:
    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def send_receipt(self, receipt: Receipt) -> bool:
        if not settings.RESEND_API_KEY:
            logger.info("Receipt e-mail disabled, skipping transaction=%s", receipt.transaction_id)
            return False
        payload = {
            "from": settings.RECEIPT_FROM_EMAIL,
            "to": [receipt.to_email],
            "subject": f"Payment receipt: {', '.join(receipt.product_names)}",
            "html": render_receipt_html(receipt),
        }
        headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}
        try:
            if self._client is not None:
                response = await self._client.post(settings.RESEND_API_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                    response = await client.post(settings.RESEND_API_URL, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                "Failed to send payment receipt: transaction=%s error=%s",
                receipt.transaction_id,
                exc,
            )
            return False
        logger.info("Payment receipt sent: transaction=%s", receipt.transaction_id)
        return True
