"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Credits
  3xxx: Catalog / Cart validation
  4xxx: Payment
  5xxx: Distribution
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class IdempotencyNoop(Exception):
    """A repeated confirmation that was already applied.

    Not an AppError: callers catch it and report success.
    """

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Already applied: {reference}")


# --- 1xxx: Auth ---

class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Token is invalid or expired", 401)


class ImpersonationNotAllowedError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Only administrators may act on behalf of another user", 403)


# --- 2xxx: Credits ---

class InsufficientCreditsError(AppError):
    def __init__(self, product_type: str, required: int, available: int) -> None:
        self.product_type = product_type
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient {product_type} credits: required {required}, available {available}",
            422,
        )


# --- 3xxx: Catalog / Cart validation ---

class ValidationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class EmptySelectionError(ValidationError):
    def __init__(self) -> None:
        super().__init__(3001, "No upgrades selected")


class UnknownProductTypeError(ValidationError):
    def __init__(self, product_type: str) -> None:
        self.product_type = product_type
        super().__init__(3002, f"Unknown product type: {product_type}")


class AlreadyPurchasedError(ValidationError):
    def __init__(self, product_types: list[str]) -> None:
        super().__init__(3003, f"Already purchased: {', '.join(sorted(product_types))}")


class MissingParameterError(ValidationError):
    def __init__(self, name: str, action: str) -> None:
        super().__init__(3006, f"{name} is required for {action}")


class ExclusivityViolation(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Exclusive upgrade conflict: {detail}", 422)


class ReleaseNotFoundError(AppError):
    def __init__(self, release_ref: str) -> None:
        super().__init__(3005, f"Release not found: {release_ref}", 404)


# --- 4xxx: Payment ---

class PaymentGatewayError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Payment gateway error: {detail}", 502)


class PaymentIntentNotFoundError(AppError):
    def __init__(self, intent_id: str) -> None:
        super().__init__(4002, f"Payment intent not found: {intent_id}", 404)


class PaymentNotCompletedError(AppError):
    def __init__(self, intent_id: str, status: str) -> None:
        super().__init__(4003, f"Payment {intent_id} not completed (status: {status})", 409)


class PaymentMismatchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4004, f"Payment does not match this purchase: {detail}", 422)


class PaymentIntentClosedError(AppError):
    def __init__(self, intent_id: str, status: str) -> None:
        super().__init__(4005, f"Payment {intent_id} is already {status}", 409)


class WebhookSignatureError(AppError):
    def __init__(self) -> None:
        super().__init__(4006, "Invalid webhook signature", 400)


class PaymentAlreadyMadeError(AppError):
    def __init__(self, intent_id: str) -> None:
        self.intent_id = intent_id
        super().__init__(
            4007, f"Payment {intent_id} already covers these upgrades; confirm it instead", 409
        )


# --- 5xxx: Distribution ---

class ReconciliationConflict(AppError):
    def __init__(self, release_id: int, detail: str) -> None:
        self.release_id = release_id
        super().__init__(5001, f"Distribution conflict on release {release_id}: {detail}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
