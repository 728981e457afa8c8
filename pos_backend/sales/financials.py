# sales/financials.py

"""
PATH: sales/financials.py

SALE FINANCIALS DOMAIN (FRAMEWORK-AGNOSTIC VALUE OBJECTS)

Purpose:
- Typed, immutable inputs and outputs of the sale calculation engine.
- Used by BOTH:
  - DRF checkout serializers (API layer)
  - sales.services.sale_calculation (pure calculation layer)

Rules:
- Money is Decimal. Inputs are coerced but NOT rounded here;
  rounding to 2dp happens at every computation step in the engine.
- Quantities are whole integer units.
- A missing `taxable` flag means the line is taxable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple

from django.db import models

from sales.services.exceptions import (
    FIELD_DISCOUNT_TOTAL,
    FIELD_ITEMS,
    FIELD_PAYMENTS,
    FIELD_TAX_MODE,
    FIELD_TAX_RATE,
    SaleValidationError,
)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_TAX_RATE = Decimal("100")


def money(value) -> Decimal:
    """Quantize to 2dp HALF_UP. None / "" count as zero."""
    if value is None or value == "":
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_decimal(value, *, field_name: str, error_field: str | None = None) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise SaleValidationError(f"{field_name} must be a number", error_field)
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise SaleValidationError(f"{field_name} must be a number, got {value!r}", error_field) from exc

    if not d.is_finite():
        raise SaleValidationError(f"{field_name} must be a finite number", error_field)
    return d


def to_tax_rate(value) -> Decimal:
    """Tax rate in percent, 0..100 inclusive."""
    rate = to_decimal(value, field_name="tax_rate", error_field=FIELD_TAX_RATE)
    if rate < ZERO or rate > MAX_TAX_RATE:
        raise SaleValidationError(f"Tax rate must be between 0 and 100, got {value}", FIELD_TAX_RATE)
    return rate


class TaxMode(models.TextChoices):
    INCLUSIVE = "INCLUSIVE", "Tax included in price"
    EXCLUSIVE = "EXCLUSIVE", "Tax added on top"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    QRIS = "QRIS", "QR code wallet"
    EWALLET = "EWALLET", "E-wallet"


class PaperSize(models.TextChoices):
    MM_58 = "58MM", "58 mm"
    MM_80 = "80MM", "80 mm"


DEFAULT_PAPER_SIZE = PaperSize.MM_80


@dataclass(frozen=True)
class SaleLineItem:
    """
    One cart row.

    - product_id: opaque identifier (non-empty)
    - quantity: integer units (> 0, checked by the item validator)
    - unit_price / discount: Decimal money, unrounded
    - taxable: None means "taxable"
    """

    product_id: str
    quantity: int
    unit_price: Decimal
    discount: Decimal = ZERO
    taxable: Optional[bool] = None

    def __post_init__(self):
        product_id = str(self.product_id or "").strip()
        if not product_id:
            raise SaleValidationError("Product is required for every line", FIELD_ITEMS)
        object.__setattr__(self, "product_id", product_id)
        object.__setattr__(
            self, "unit_price", to_decimal(self.unit_price, field_name="unit_price", error_field=FIELD_ITEMS)
        )
        object.__setattr__(
            self, "discount", to_decimal(self.discount, field_name="discount", error_field=FIELD_ITEMS)
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * Decimal(self.quantity)

    @property
    def net_amount(self) -> Decimal:
        return self.line_total - self.discount

    @property
    def is_taxable(self) -> bool:
        return self.taxable is not False


@dataclass(frozen=True)
class SaleCalculationInput:
    """Transient value object built per checkout attempt."""

    items: Tuple[SaleLineItem, ...]
    discount_total: Decimal = ZERO
    apply_tax: bool = False
    tax_rate: Optional[Decimal] = None
    tax_mode: str = TaxMode.EXCLUSIVE

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items or ()))
        object.__setattr__(
            self,
            "discount_total",
            to_decimal(self.discount_total, field_name="discount_total", error_field=FIELD_DISCOUNT_TOTAL),
        )
        if self.tax_rate is not None:
            object.__setattr__(self, "tax_rate", to_tax_rate(self.tax_rate))
        try:
            tax_mode = TaxMode(self.tax_mode)
        except ValueError as exc:
            raise SaleValidationError(f"Unknown tax mode: {self.tax_mode!r}", FIELD_TAX_MODE) from exc
        object.__setattr__(self, "tax_mode", tax_mode)


@dataclass(frozen=True)
class SaleFinancials:
    """
    Engine output. All fields are 2dp Decimals.

    Invariants:
    - total_discount == item_discount_total + manual_discount
    - total_net >= 0
    """

    total_gross: Decimal
    item_discount_total: Decimal
    manual_discount: Decimal
    total_discount: Decimal
    net_after_discount: Decimal
    taxable_base: Decimal
    tax_amount: Decimal
    total_net: Decimal

    def as_dict(self) -> dict:
        return {
            "total_gross": f"{self.total_gross:.2f}",
            "item_discount_total": f"{self.item_discount_total:.2f}",
            "manual_discount": f"{self.manual_discount:.2f}",
            "total_discount": f"{self.total_discount:.2f}",
            "net_after_discount": f"{self.net_after_discount:.2f}",
            "taxable_base": f"{self.taxable_base:.2f}",
            "tax_amount": f"{self.tax_amount:.2f}",
            "total_net": f"{self.total_net:.2f}",
        }


@dataclass(frozen=True)
class SalePaymentInput:
    """One tendered payment leg."""

    method: str
    amount: Decimal
    reference: str = ""

    def __post_init__(self):
        try:
            method = PaymentMethod(str(self.method or "").strip().upper())
        except ValueError as exc:
            raise SaleValidationError(f"Unknown payment method: {self.method!r}", FIELD_PAYMENTS) from exc
        object.__setattr__(self, "method", method)
        object.__setattr__(
            self, "amount", to_decimal(self.amount, field_name="amount", error_field=FIELD_PAYMENTS)
        )
        object.__setattr__(self, "reference", str(self.reference or "").strip())


@dataclass(frozen=True)
class CheckoutValidationResult:
    """What the checkout handler needs after a successful validation."""

    financials: SaleFinancials
    line_taxes: Tuple[Optional[Decimal], ...]
    paper_size: str
    amount_paid: Decimal
    change_due: Decimal
    payments: Tuple[SalePaymentInput, ...] = field(default_factory=tuple)
