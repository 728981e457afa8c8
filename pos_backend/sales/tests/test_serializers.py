"""
CHECKOUT SERIALIZER TESTS

Schema-layer rules for the checkout payload and the mapping into the
calculation engine's value objects.
"""

from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase

from sales.financials import PaperSize, PaymentMethod, SaleLineItem, TaxMode
from sales.serializers import (
    CheckoutInputSerializer,
    CheckoutValidationResultSerializer,
    SaleFinancialsSerializer,
)
from sales.services.checkout_validation import validate_checkout
from sales.services.sale_calculation import calculate_financials


def _payload(**overrides):
    payload = {
        "items": [
            {"productId": "p1", "quantity": 2, "unitPrice": "10000"},
            {"productId": "p2", "quantity": 1, "unitPrice": "5000", "discount": "1000"},
        ],
        "payments": [{"method": "CASH", "amount": "30000"}],
        "discountTotal": "1000",
        "applyTax": True,
        "taxRate": "11",
        "taxMode": "EXCLUSIVE",
    }
    payload.update(overrides)
    return payload


class CheckoutInputSerializerTests(SimpleTestCase):
    def test_valid_payload_maps_to_engine_input(self):
        serializer = CheckoutInputSerializer(data=_payload())
        self.assertTrue(serializer.is_valid(), serializer.errors)

        calculation_input = serializer.to_calculation_input()

        self.assertEqual(len(calculation_input.items), 2)
        first = calculation_input.items[0]
        self.assertIsInstance(first, SaleLineItem)
        self.assertEqual(first.product_id, "p1")
        self.assertEqual(first.unit_price, Decimal("10000.00"))
        self.assertEqual(first.discount, Decimal("0.00"))
        self.assertIsNone(first.taxable)
        self.assertEqual(calculation_input.discount_total, Decimal("1000.00"))
        self.assertTrue(calculation_input.apply_tax)
        self.assertEqual(calculation_input.tax_rate, Decimal("11.00"))
        self.assertEqual(calculation_input.tax_mode, TaxMode.EXCLUSIVE)

        payments = serializer.to_payments()
        self.assertEqual(payments[0].method, PaymentMethod.CASH)
        self.assertEqual(payments[0].amount, Decimal("30000.00"))

        self.assertEqual(
            calculate_financials(calculation_input).total_net,
            Decimal("25530.00"),
        )

    def test_defaults_are_applied(self):
        serializer = CheckoutInputSerializer(
            data={
                "items": [{"productId": "p1", "quantity": 1, "unitPrice": "10"}],
                "payments": [{"method": "QRIS", "amount": "10"}],
            }
        )
        self.assertTrue(serializer.is_valid(), serializer.errors)
        data = serializer.validated_data

        self.assertEqual(data["discount_total"], Decimal("0.00"))
        self.assertFalse(data["apply_tax"])
        self.assertEqual(data["tax_mode"], TaxMode.EXCLUSIVE)
        self.assertEqual(data["paper_size"], PaperSize.MM_80)
        self.assertNotIn("tax_rate", data)

    def test_tax_rate_requires_apply_tax(self):
        serializer = CheckoutInputSerializer(data=_payload(applyTax=False))
        self.assertFalse(serializer.is_valid())
        self.assertIn("taxRate", serializer.errors)

    def test_tax_rate_must_be_a_percentage(self):
        serializer = CheckoutInputSerializer(data=_payload(taxRate="100.01"))
        self.assertFalse(serializer.is_valid())
        self.assertIn("taxRate", serializer.errors)

    def test_items_and_payments_are_required(self):
        serializer = CheckoutInputSerializer(data=_payload(items=[], payments=[]))
        self.assertFalse(serializer.is_valid())
        self.assertIn("items", serializer.errors)
        self.assertIn("payments", serializer.errors)

    def test_item_field_rules(self):
        serializer = CheckoutInputSerializer(
            data=_payload(
                items=[
                    {"productId": "", "quantity": 0, "unitPrice": "-1", "discount": "-1"},
                ]
            )
        )
        self.assertFalse(serializer.is_valid())
        item_errors = serializer.errors["items"][0]
        for field_name in ("productId", "quantity", "unitPrice", "discount"):
            with self.subTest(field=field_name):
                self.assertIn(field_name, item_errors)

    def test_unknown_payment_method_is_rejected(self):
        serializer = CheckoutInputSerializer(
            data=_payload(payments=[{"method": "BARTER", "amount": "1"}])
        )
        self.assertFalse(serializer.is_valid())
        self.assertIn("method", serializer.errors["payments"][0])

    def test_unknown_paper_size_is_rejected(self):
        serializer = CheckoutInputSerializer(data=_payload(paperSize="A4"))
        self.assertFalse(serializer.is_valid())
        self.assertIn("paperSize", serializer.errors)


class OutputSerializerTests(SimpleTestCase):
    def test_financials_render_as_two_decimal_strings(self):
        serializer = CheckoutInputSerializer(data=_payload())
        self.assertTrue(serializer.is_valid(), serializer.errors)

        data = SaleFinancialsSerializer(calculate_financials(serializer.to_calculation_input())).data

        self.assertEqual(data["totalGross"], "25000.00")
        self.assertEqual(data["totalDiscount"], "2000.00")
        self.assertEqual(data["taxAmount"], "2530.00")
        self.assertEqual(data["totalNet"], "25530.00")

    def test_validation_result_renders_line_taxes(self):
        serializer = CheckoutInputSerializer(
            data=_payload(
                items=[
                    {"productId": "taxed", "quantity": 1, "unitPrice": "100"},
                    {"productId": "exempt", "quantity": 1, "unitPrice": "50", "taxable": False},
                ],
                discountTotal="0",
                taxRate="10",
                payments=[{"method": "CARD", "amount": "200"}],
                paperSize="58MM",
            )
        )
        self.assertTrue(serializer.is_valid(), serializer.errors)

        result = validate_checkout(
            calculation_input=serializer.to_calculation_input(),
            payments=serializer.to_payments(),
            paper_size=serializer.validated_data["paper_size"],
            discount_limit_percent=Decimal("50"),
        )
        data = CheckoutValidationResultSerializer(result).data

        self.assertEqual(data["lineTaxes"], ["10.00", None])
        self.assertEqual(data["paperSize"], "58MM")
        self.assertEqual(data["amountPaid"], "200.00")
        self.assertEqual(data["changeDue"], "40.00")
        self.assertEqual(data["financials"]["totalNet"], "160.00")
