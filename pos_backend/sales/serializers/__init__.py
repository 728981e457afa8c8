from .checkout import (
    CheckoutInputSerializer,
    CheckoutValidationResultSerializer,
    SaleFinancialsSerializer,
    SaleItemInputSerializer,
    SalePaymentInputSerializer,
)

__all__ = [
    "CheckoutInputSerializer",
    "CheckoutValidationResultSerializer",
    "SaleFinancialsSerializer",
    "SaleItemInputSerializer",
    "SalePaymentInputSerializer",
]
