# sales/serializers/checkout.py

"""
PATH: sales/serializers/checkout.py

CHECKOUT SERIALIZERS

Purpose:
- Validate the raw checkout payload (wire shape is camelCase).
- Hand the calculation engine typed value objects.
- Render SaleFinancials / validation results back as 2dp strings.

These serializers do NOT touch the database. Field-level rules here are the
schema layer; the financial rules (discount vs price, payments vs total)
live in sales.services.sale_calculation and raise SaleValidationError.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from sales.financials import (
    PaperSize,
    PaymentMethod,
    SaleCalculationInput,
    SaleLineItem,
    SalePaymentInput,
    TaxMode,
)

MONEY_FIELD_KWARGS = {"max_digits": 14, "decimal_places": 2}


class SaleItemInputSerializer(serializers.Serializer):
    productId = serializers.CharField(source="product_id", max_length=64, trim_whitespace=True)
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(
        source="unit_price",
        min_value=Decimal("0"),
        **MONEY_FIELD_KWARGS,
    )
    discount = serializers.DecimalField(
        min_value=Decimal("0"),
        default=Decimal("0.00"),
        **MONEY_FIELD_KWARGS,
    )
    taxable = serializers.BooleanField(required=False, allow_null=True)

    def to_line_item(self, data=None) -> SaleLineItem:
        data = self.validated_data if data is None else data
        return SaleLineItem(
            product_id=data["product_id"],
            quantity=data["quantity"],
            unit_price=data["unit_price"],
            discount=data.get("discount", Decimal("0.00")),
            taxable=data.get("taxable"),
        )


class SalePaymentInputSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    amount = serializers.DecimalField(min_value=Decimal("0"), **MONEY_FIELD_KWARGS)
    reference = serializers.CharField(required=False, max_length=128)

    def to_payment(self, data=None) -> SalePaymentInput:
        data = self.validated_data if data is None else data
        return SalePaymentInput(
            method=data["method"],
            amount=data["amount"],
            reference=data.get("reference", ""),
        )


class CheckoutInputSerializer(serializers.Serializer):
    """
    Command serializer for a checkout attempt.

    Rules:
    - at least one item and one payment
    - taxRate (0..100) may only be sent when applyTax is true
    - paperSize defaults to 80MM
    """

    items = SaleItemInputSerializer(many=True, allow_empty=False)
    payments = SalePaymentInputSerializer(many=True, allow_empty=False)

    discountTotal = serializers.DecimalField(
        source="discount_total",
        min_value=Decimal("0"),
        default=Decimal("0.00"),
        **MONEY_FIELD_KWARGS,
    )
    applyTax = serializers.BooleanField(source="apply_tax", default=False)
    taxRate = serializers.DecimalField(
        source="tax_rate",
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        required=False,
        allow_null=True,
    )
    taxMode = serializers.ChoiceField(
        source="tax_mode",
        choices=TaxMode.choices,
        default=TaxMode.EXCLUSIVE,
    )
    paperSize = serializers.ChoiceField(
        source="paper_size",
        choices=PaperSize.choices,
        default=PaperSize.MM_80,
    )

    def validate(self, attrs):
        if not attrs.get("apply_tax") and attrs.get("tax_rate") is not None:
            raise serializers.ValidationError(
                {"taxRate": "Tax rate can only be set when tax is applied."}
            )
        return attrs

    def to_calculation_input(self) -> SaleCalculationInput:
        data = self.validated_data
        item_serializer = SaleItemInputSerializer()
        return SaleCalculationInput(
            items=tuple(item_serializer.to_line_item(row) for row in data["items"]),
            discount_total=data.get("discount_total", Decimal("0.00")),
            apply_tax=data.get("apply_tax", False),
            tax_rate=data.get("tax_rate"),
            tax_mode=data.get("tax_mode", TaxMode.EXCLUSIVE),
        )

    def to_payments(self) -> tuple:
        payment_serializer = SalePaymentInputSerializer()
        return tuple(payment_serializer.to_payment(row) for row in self.validated_data["payments"])


class SaleFinancialsSerializer(serializers.Serializer):
    """Read-only rendering of SaleFinancials (money as 2dp strings)."""

    totalGross = serializers.DecimalField(source="total_gross", read_only=True, **MONEY_FIELD_KWARGS)
    itemDiscountTotal = serializers.DecimalField(
        source="item_discount_total", read_only=True, **MONEY_FIELD_KWARGS
    )
    manualDiscount = serializers.DecimalField(source="manual_discount", read_only=True, **MONEY_FIELD_KWARGS)
    totalDiscount = serializers.DecimalField(source="total_discount", read_only=True, **MONEY_FIELD_KWARGS)
    netAfterDiscount = serializers.DecimalField(
        source="net_after_discount", read_only=True, **MONEY_FIELD_KWARGS
    )
    taxableBase = serializers.DecimalField(source="taxable_base", read_only=True, **MONEY_FIELD_KWARGS)
    taxAmount = serializers.DecimalField(source="tax_amount", read_only=True, **MONEY_FIELD_KWARGS)
    totalNet = serializers.DecimalField(source="total_net", read_only=True, **MONEY_FIELD_KWARGS)


class CheckoutValidationResultSerializer(serializers.Serializer):
    financials = SaleFinancialsSerializer(read_only=True)
    lineTaxes = serializers.ListField(
        source="line_taxes",
        child=serializers.DecimalField(allow_null=True, **MONEY_FIELD_KWARGS),
        read_only=True,
    )
    paperSize = serializers.CharField(source="paper_size", read_only=True)
    amountPaid = serializers.DecimalField(source="amount_paid", read_only=True, **MONEY_FIELD_KWARGS)
    changeDue = serializers.DecimalField(source="change_due", read_only=True, **MONEY_FIELD_KWARGS)
