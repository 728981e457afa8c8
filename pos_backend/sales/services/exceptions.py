# sales/services/exceptions.py

"""
SALES SERVICE ERRORS

Centralized domain errors for the sale calculation engine.

Every failure is a rejection of the attempted calculation. The caller
corrects the input and retries; nothing is partially applied.
"""

from __future__ import annotations

FIELD_ITEMS = "items"
FIELD_DISCOUNT_TOTAL = "discountTotal"
FIELD_PAYMENTS = "payments"
FIELD_TAX_RATE = "taxRate"
FIELD_TAX_MODE = "taxMode"


class SaleCalculationError(ValueError):
    """Base exception for all sale calculation failures."""


class SaleValidationError(SaleCalculationError):
    """
    Raised when a checkout attempt violates a financial rule.

    `field` tags the input area that failed ("items", "discountTotal",
    "payments", "taxRate", "taxMode") and is None for the final
    negative-total guard.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_dict(self) -> dict:
        return {"detail": self.message, "field": self.field}

    def __repr__(self) -> str:
        return f"SaleValidationError({self.message!r}, field={self.field!r})"
