"""Per-request wiring for payment services.

The Stripe key depends on the request host (sandbox for local and preview
deployments), so the orchestrator is built per request.
"""

from fastapi import Request

from src.ug_payment.application.credit_purchase import CreditPurchaseService
from src.ug_payment.application.orchestrator import PaymentOrchestrator
from src.ug_payment.infrastructure.stripe_gateway import StripeGateway

_credit_purchase = CreditPurchaseService()


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return PaymentOrchestrator(gateway=StripeGateway.for_host(request.headers.get("host")))


def get_credit_purchase() -> CreditPurchaseService:
    return _credit_purchase
