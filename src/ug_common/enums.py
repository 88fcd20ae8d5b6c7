"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class PaymentIntentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"
    FAILED = "failed"


class FundingMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class CreditScope(str, Enum):
    """brand = rows tied to a company; user = rows with company_id NULL"""
    BRAND = "brand"
    USER = "user"
