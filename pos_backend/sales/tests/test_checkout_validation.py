"""
CHECKOUT VALIDATION TESTS

Run with:
    python manage.py test sales -v 2

Covers the full pre-persistence sequence:
calculate_financials -> store discount limit (settings) -> payments.
"""

from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from sales.financials import (
    PaperSize,
    PaymentMethod,
    SaleCalculationInput,
    SaleLineItem,
    SalePaymentInput,
    TaxMode,
)
from sales.services.checkout_validation import validate_checkout
from sales.services.exceptions import SaleValidationError

LOGGER = "sales.services.checkout_validation"


def _calculation_input(discount_total="1000"):
    return SaleCalculationInput(
        items=(
            SaleLineItem(product_id="p1", quantity=2, unit_price=Decimal("10000")),
            SaleLineItem(
                product_id="p2",
                quantity=1,
                unit_price=Decimal("5000"),
                discount=Decimal("1000"),
            ),
        ),
        discount_total=Decimal(discount_total),
        apply_tax=True,
        tax_rate=Decimal("11"),
        tax_mode=TaxMode.EXCLUSIVE,
    )


def _cash(amount):
    return SalePaymentInput(method=PaymentMethod.CASH, amount=Decimal(amount))


@override_settings(SALES_DISCOUNT_LIMIT_PERCENT=Decimal("50"))
class ValidateCheckoutTests(SimpleTestCase):
    """
    GUARANTEES:
    - a valid sale returns financials, per-line tax, paper size and change
    - the store discount limit is read from settings per call
    - any rejection propagates as SaleValidationError and is logged
    """

    def test_valid_checkout_returns_full_result(self):
        result = validate_checkout(
            calculation_input=_calculation_input(),
            payments=[_cash("20000"), SalePaymentInput(method=PaymentMethod.QRIS, amount=Decimal("6000"))],
            paper_size="58MM",
        )

        self.assertEqual(result.financials.total_net, Decimal("25530.00"))
        self.assertEqual(result.line_taxes, (Decimal("2108.33"), Decimal("421.67")))
        self.assertEqual(result.paper_size, PaperSize.MM_58)
        self.assertEqual(result.amount_paid, Decimal("26000.00"))
        self.assertEqual(result.change_due, Decimal("470.00"))
        self.assertEqual(len(result.payments), 2)

    def test_paper_size_defaults_to_80mm(self):
        result = validate_checkout(
            calculation_input=_calculation_input(),
            payments=[_cash("25530")],
        )
        self.assertEqual(result.paper_size, "80MM")
        self.assertEqual(result.change_due, Decimal("0.00"))

    @override_settings(SALES_DISCOUNT_LIMIT_PERCENT=Decimal("5"))
    def test_discount_limit_comes_from_settings(self):
        """
        Business rule:
        2000 discount on 25000 gross is 8%, above a 5% store limit.
        """
        with self.assertRaises(SaleValidationError) as ctx:
            validate_checkout(
                calculation_input=_calculation_input(),
                payments=[_cash("30000")],
            )
        self.assertEqual(ctx.exception.field, "discountTotal")
        self.assertIn("5%", ctx.exception.message)

    def test_explicit_limit_overrides_settings(self):
        with self.assertRaises(SaleValidationError):
            validate_checkout(
                calculation_input=_calculation_input(),
                payments=[_cash("30000")],
                discount_limit_percent=Decimal("7"),
            )

    def test_payment_shortfall_is_rejected(self):
        with self.assertRaises(SaleValidationError) as ctx:
            validate_checkout(
                calculation_input=_calculation_input(),
                payments=[_cash("25529.99")],
            )
        self.assertEqual(ctx.exception.field, "payments")

    def test_calculation_errors_stop_before_payments(self):
        with self.assertRaises(SaleValidationError) as ctx:
            validate_checkout(
                calculation_input=_calculation_input(discount_total="30000"),
                payments=[],
            )
        self.assertEqual(ctx.exception.field, "discountTotal")

    # =====================================================
    # LOGGING
    # =====================================================

    def test_rejection_is_logged_as_warning(self):
        with self.assertLogs(LOGGER, level="WARNING") as logs:
            with self.assertRaises(SaleValidationError):
                validate_checkout(
                    calculation_input=_calculation_input(),
                    payments=[_cash("1")],
                )
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].field, "payments")

    def test_accepted_checkout_is_logged(self):
        with self.assertLogs(LOGGER, level="INFO") as logs:
            validate_checkout(
                calculation_input=_calculation_input(),
                payments=[_cash("25530")],
            )
        self.assertEqual(logs.records[-1].total_net, "25530.00")
