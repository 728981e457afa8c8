# sales/services/checkout_validation.py

"""
CHECKOUT VALIDATION (APPLICATION SERVICE)

Purpose:
- Decide whether a proposed sale is financially valid BEFORE anything is written.
- Run the full sequence the checkout handler needs:
    1) calculate_financials (items, manual discount, tax)
    2) enforce_discount_limit (store policy from settings)
    3) ensure_payments_cover_total (tendered payments vs total_net)

Hard rules:
- Money values are computed server-side; frontend never calculates totals.
- This service never persists. The caller wraps its own DB writes in a
  transaction after this returns.
- Any rule violation raises SaleValidationError; no partial result is returned.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings

from sales.financials import (
    CheckoutValidationResult,
    SaleCalculationInput,
    SalePaymentInput,
)
from sales.services.exceptions import SaleValidationError
from sales.services.sale_calculation import (
    allocate_line_taxes,
    calculate_change_due,
    calculate_financials,
    enforce_discount_limit,
    ensure_payments_cover_total,
    normalize_paper_size,
    total_paid,
)

logger = logging.getLogger(__name__)


def get_discount_limit_percent():
    """Read per call so override_settings / env reloads are honoured."""
    return getattr(settings, "SALES_DISCOUNT_LIMIT_PERCENT", None)


def validate_checkout(
    *,
    calculation_input: SaleCalculationInput,
    payments: Iterable[SalePaymentInput],
    paper_size=None,
    discount_limit_percent=None,
) -> CheckoutValidationResult:
    payments = tuple(payments or ())
    limit_percent = (
        discount_limit_percent
        if discount_limit_percent is not None
        else get_discount_limit_percent()
    )

    try:
        financials = calculate_financials(calculation_input)

        enforce_discount_limit(
            financials.total_gross,
            financials.total_discount,
            limit_percent,
        )

        ensure_payments_cover_total(payments, financials.total_net)
    except SaleValidationError as exc:
        logger.warning(
            "Checkout rejected",
            extra={
                "field": exc.field,
                "reason": exc.message,
                "item_count": len(calculation_input.items),
                "payment_count": len(payments),
            },
        )
        raise

    result = CheckoutValidationResult(
        financials=financials,
        line_taxes=allocate_line_taxes(
            calculation_input.items,
            financials,
            calculation_input.apply_tax,
        ),
        paper_size=normalize_paper_size(paper_size),
        amount_paid=total_paid(payments),
        change_due=calculate_change_due(payments, financials.total_net),
        payments=payments,
    )

    logger.info(
        "Checkout validated",
        extra={
            "total_net": str(financials.total_net),
            "tax_amount": str(financials.tax_amount),
            "total_discount": str(financials.total_discount),
            "change_due": str(result.change_due),
        },
    )
    return result
