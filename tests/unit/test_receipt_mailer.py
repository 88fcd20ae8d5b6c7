"""Unit tests for the Resend receipt mailer (httpx MockTransport)."""

import json

import httpx
import pytest

from config.settings import settings
from src.ug_payment.infrastructure.receipt_mailer import (
    Receipt,
    ResendReceiptMailer,
    render_receipt_html,
)


def _receipt() -> Receipt:
    return Receipt(
        to_email="owner@example.com",
        to_name="Ann <Admin>",
        release_title="Launch Day",
        release_uuid="rel-uuid-10",
        product_names=["Enhanced Distribution", "Yahoo Finance"],
        amount_cents=22500,
        transaction_id="pi_1",
    )


class TestRender:
    def test_contents_escaped(self) -> None:
        body = render_receipt_html(_receipt())
        assert "Ann &lt;Admin&gt;" in body
        assert "$225.00" in body
        assert "<li>Yahoo Finance</li>" in body
        assert "/pr/rel-uuid-10" in body


class TestSendReceipt:
    async def test_disabled_without_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "RESEND_API_KEY", "")
        assert await ResendReceiptMailer().send_receipt(_receipt()) is False

    async def test_posts_to_resend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "email_1"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sent = await ResendReceiptMailer(client=client).send_receipt(_receipt())

        assert sent is True
        assert seen[0].headers["Authorization"] == "Bearer re_test"
        body = json.loads(seen[0].content)
        assert body["to"] == ["owner@example.com"]
        assert body["subject"] == "Payment receipt: Enhanced Distribution, Yahoo Finance"

    async def test_http_error_is_logged_not_raised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        async with httpx.AsyncClient(transport=transport) as client:
            sent = await ResendReceiptMailer(client=client).send_receipt(_receipt())

        assert sent is False
