from rest_framework import serializers


class CurrencyPairSerializer(serializers.Serializer):
    from_currency = serializers.CharField(max_length=3, min_length=3)
    to_currency = serializers.CharField(max_length=3, min_length=3)


class ConvertPriceSerializer(CurrencyPairSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class QuotationLineInputSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, default='')
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1)


class QuotationPreviewSerializer(serializers.Serializer):
    line_items = QuotationLineInputSerializer(many=True, allow_empty=False)
    deposit_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=0, max_value=1, required=False, default=0)
    shipping_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)


class WholesaleCartLineSerializer(serializers.Serializer):
    product_id = serializers.CharField(required=False)
    quantity = serializers.IntegerField(min_value=1)
    unit_price_cents = serializers.IntegerField(min_value=0, required=False)
    moq = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class WholesaleCartPreviewSerializer(serializers.Serializer):
    items = WholesaleCartLineSerializer(many=True)
    deposit_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)

    def validate_items(self, items):
        if any('unit_price_cents' not in item for item in items):
            raise serializers.ValidationError('unit_price_cents is required for every item')
        return items
