# sales/services/sale_calculation.py

"""
SALE CALCULATION ENGINE (PURE DOMAIN SERVICE)

Purpose:
- Compute gross / discount / tax / net totals for one checkout attempt.
- Enforce line discounts, the manual (cart-level) discount and the
  store discount-limit policy.
- Reconcile tendered payments against the computed total.

DESIGN PRINCIPLES:
- No database access, no settings lookups, no side effects
- Deterministic: same input -> same SaleFinancials
- Money is rounded to 2dp (HALF_UP) at EVERY step, not once at the end.
  Totals can differ by cents if this is collapsed into a single rounding.

Pipeline:
    validate_items -> enforce_manual_discount -> calculate_taxable_base
    -> calculate_tax_amount -> ensure_non_negative_total
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from django.core.exceptions import ImproperlyConfigured

from sales.financials import (
    DEFAULT_PAPER_SIZE,
    ZERO,
    PaperSize,
    SaleCalculationInput,
    SaleFinancials,
    SaleLineItem,
    SalePaymentInput,
    TaxMode,
    money,
    to_decimal,
    to_tax_rate,
)
from sales.services.exceptions import (
    FIELD_DISCOUNT_TOTAL,
    FIELD_ITEMS,
    FIELD_PAYMENTS,
    FIELD_TAX_MODE,
    SaleValidationError,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _format_percent(value: Decimal) -> str:
    # Decimal("50").normalize() is 5E+1, so force fixed notation
    return format(value.normalize(), "f")


def _reject(message: str, field: str | None = None) -> SaleValidationError:
    logger.debug("Sale calculation rejected", extra={"reason": message, "field": field})
    return SaleValidationError(message, field)


# ============================================================
# ITEM VALIDATOR + TOTALS AGGREGATOR
# ============================================================


def _validate_item(item: SaleLineItem, index: int) -> None:
    label = f"Line {index + 1} ({item.product_id})"

    if item.unit_price < ZERO:
        raise _reject(f"{label}: price cannot be negative", FIELD_ITEMS)

    quantity = item.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        # bool is an int subclass in Python
        raise _reject(f"{label}: quantity must be a whole number", FIELD_ITEMS)

    if quantity <= 0:
        raise _reject(f"{label}: quantity must be at least 1", FIELD_ITEMS)

    if item.discount < ZERO:
        raise _reject(f"{label}: discount cannot be negative", FIELD_ITEMS)

    if item.discount > item.line_total:
        raise _reject(f"{label}: discount exceeds price", FIELD_ITEMS)


def aggregate_totals(items: Iterable[SaleLineItem]) -> Tuple[Decimal, Decimal]:
    """
    Returns (total_gross, item_discount_total), each rounded after summation.
    Assumes items were already validated.
    """
    total_gross = ZERO
    item_discount_total = ZERO
    for item in items:
        total_gross += item.line_total
        item_discount_total += item.discount

    return money(total_gross), money(item_discount_total)


def validate_items(items: Sequence[SaleLineItem]) -> Tuple[Decimal, Decimal]:
    """
    Validate every cart line, then aggregate.

    Any violating line fails the whole batch. Messages carry the line number
    and distinguish "discount exceeds price" from the other numeric rules.
    """
    items = tuple(items or ())
    if not items:
        raise _reject("At least one product is required in the cart", FIELD_ITEMS)

    for index, item in enumerate(items):
        _validate_item(item, index)

    return aggregate_totals(items)


# ============================================================
# DISCOUNT ENFORCER
# ============================================================


def enforce_manual_discount(net_after_item, manual_discount) -> None:
    net_after_item = money(net_after_item)
    manual_discount = money(manual_discount)

    if manual_discount < ZERO:
        raise _reject("Additional discount cannot be negative", FIELD_DISCOUNT_TOTAL)

    if manual_discount > net_after_item:
        raise _reject(
            f"Additional discount ({manual_discount}) exceeds the total after item discounts ({net_after_item})",
            FIELD_DISCOUNT_TOTAL,
        )


def enforce_discount_limit(total_gross, total_discount, limit_percent) -> None:
    """
    Store policy: total_discount may not exceed limit_percent of total_gross.

    limit_percent outside 0..100 is a configuration mistake, not a bad sale.
    """
    if limit_percent is None or limit_percent == "":
        raise ImproperlyConfigured("Discount limit percent is not configured")

    try:
        limit = to_decimal(limit_percent, field_name="limit_percent")
    except SaleValidationError as exc:
        raise ImproperlyConfigured(f"Discount limit percent must be a number, got {limit_percent!r}") from exc
    if limit < ZERO or limit > HUNDRED:
        raise ImproperlyConfigured(
            f"Discount limit percent must be between 0 and 100, got {_format_percent(limit)}"
        )

    max_discount = money(money(total_gross) * limit / HUNDRED)
    if money(total_discount) > max_discount:
        raise _reject(
            f"Discount exceeds the store limit ({_format_percent(limit)}% of sale)",
            FIELD_DISCOUNT_TOTAL,
        )


# ============================================================
# TAX CALCULATOR
# ============================================================


def calculate_taxable_base(items: Iterable[SaleLineItem], apply_tax: bool) -> Decimal:
    if not apply_tax:
        return ZERO

    total = ZERO
    for item in items:
        if not item.is_taxable:
            continue
        total += max(item.net_amount, ZERO)

    return money(total)


def calculate_tax_amount(
    taxable_base,
    manual_discount,
    apply_tax: bool,
    tax_rate,
    tax_mode: str,
) -> Decimal:
    """
    The manual discount comes off the taxable base once, globally. It is not
    pro-rated between taxable and non-taxable lines.
    """
    if not apply_tax or not tax_rate:
        return ZERO

    rate = to_tax_rate(tax_rate) / HUNDRED
    try:
        mode = TaxMode(tax_mode)
    except ValueError as exc:
        raise _reject(f"Unknown tax mode: {tax_mode!r}", FIELD_TAX_MODE) from exc

    adjusted_base = max(money(taxable_base) - money(manual_discount), ZERO)

    if adjusted_base == ZERO:
        return ZERO

    if mode == TaxMode.INCLUSIVE:
        pre_tax = adjusted_base / (Decimal("1") + rate)
        return money(adjusted_base - pre_tax)

    return money(adjusted_base * rate)


# ============================================================
# FINANCIAL SUMMARIZER
# ============================================================


def ensure_non_negative_total(total_net) -> None:
    if money(total_net) < ZERO:
        raise _reject("Transaction total cannot be negative")


def calculate_financials(calculation_input: SaleCalculationInput) -> SaleFinancials:
    items = calculation_input.items
    total_gross, item_discount_total = validate_items(items)
    manual_discount = money(calculation_input.discount_total)

    net_after_item = money(total_gross - item_discount_total)
    enforce_manual_discount(net_after_item, manual_discount)

    net_after_discount = money(net_after_item - manual_discount)
    taxable_base = calculate_taxable_base(items, calculation_input.apply_tax)
    tax_amount = calculate_tax_amount(
        taxable_base,
        manual_discount,
        calculation_input.apply_tax,
        calculation_input.tax_rate,
        calculation_input.tax_mode,
    )

    if calculation_input.apply_tax and calculation_input.tax_mode == TaxMode.INCLUSIVE:
        total_net = net_after_discount
    else:
        total_net = money(net_after_discount + tax_amount)

    ensure_non_negative_total(total_net)

    return SaleFinancials(
        total_gross=total_gross,
        item_discount_total=item_discount_total,
        manual_discount=manual_discount,
        total_discount=money(item_discount_total + manual_discount),
        net_after_discount=net_after_discount,
        taxable_base=taxable_base,
        tax_amount=tax_amount,
        total_net=total_net,
    )


# ============================================================
# LINE TAX ALLOCATION
# ============================================================


def allocate_line_taxes(
    items: Sequence[SaleLineItem],
    financials: SaleFinancials,
    apply_tax: bool,
) -> Tuple[Optional[Decimal], ...]:
    """
    Share the header tax across taxable lines by line net / taxable base.

    Non-taxable lines (and every line when tax is off or the base is zero)
    get None. Rounded shares are not forced to sum to tax_amount.
    """
    base = financials.taxable_base
    if not apply_tax or base <= ZERO:
        return tuple(None for _ in items)

    shares = []
    for item in items:
        if not item.is_taxable:
            shares.append(None)
            continue
        shares.append(money(item.net_amount / base * financials.tax_amount))

    return tuple(shares)


# ============================================================
# PAYMENT RECONCILER
# ============================================================


def _sum_payments(payments: Iterable[SalePaymentInput]) -> Decimal:
    # Unrounded: coverage is decided on what was actually tendered
    paid = ZERO
    for index, payment in enumerate(payments or ()):
        if payment.amount < ZERO:
            raise _reject(f"Payment {index + 1}: amount cannot be negative", FIELD_PAYMENTS)
        paid += payment.amount
    return paid


def total_paid(payments: Iterable[SalePaymentInput]) -> Decimal:
    return money(_sum_payments(payments))


def ensure_payments_cover_total(payments: Iterable[SalePaymentInput], total_net) -> None:
    """
    Overpayment is fine; change handling belongs to the caller.

    The tendered sum is compared exactly, so 99.995 does not cover 100.00.
    """
    paid = _sum_payments(payments)
    required = money(total_net)
    if paid < required:
        raise _reject(
            f"Payment amount ({paid}) is less than the total ({required})",
            FIELD_PAYMENTS,
        )


def calculate_change_due(payments: Iterable[SalePaymentInput], total_net) -> Decimal:
    return max(money(_sum_payments(payments) - money(total_net)), ZERO)


# ============================================================
# PAPER SIZE
# ============================================================


def normalize_paper_size(paper_size=None) -> PaperSize:
    if paper_size == PaperSize.MM_58:
        return PaperSize.MM_58
    return DEFAULT_PAPER_SIZE
