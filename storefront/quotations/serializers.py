from rest_framework import serializers
from .models import TradeQuotation, TradeQuotationItem, TradeQuotationEvent, TradePaymentSchedule


class TradeQuotationItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = TradeQuotationItem
        fields = ['id', 'line_number', 'description', 'product', 'unit_price', 'quantity', 'line_total']
        read_only_fields = fields


class TradeQuotationEventSerializer(serializers.ModelSerializer):
    performed_by_username = serializers.CharField(source='performed_by.username', read_only=True, allow_null=True)

    class Meta:
        model = TradeQuotationEvent
        fields = ['id', 'event_type', 'performed_by', 'performed_by_username', 'payload', 'created_at']
        read_only_fields = fields


class TradePaymentScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = TradePaymentSchedule
        fields = ['id', 'payment_type', 'amount', 'due_date', 'status', 'paid_at', 'created_at']
        read_only_fields = fields


class TradeQuotationListSerializer(serializers.ModelSerializer):
    class Meta:
        model = TradeQuotation
        fields = [
            'id', 'quotation_number', 'buyer_email', 'buyer', 'status', 'currency',
            'total', 'deposit_amount', 'balance_amount', 'valid_until', 'created_at'
        ]


class TradeQuotationSerializer(serializers.ModelSerializer):
    items = TradeQuotationItemSerializer(many=True, read_only=True)
    seller_name = serializers.CharField(source='seller.company_name', read_only=True)

    class Meta:
        model = TradeQuotation
        fields = [
            'id', 'quotation_number', 'seller', 'seller_name', 'buyer_email', 'buyer', 'token', 'status',
            'currency', 'subtotal', 'tax_rate', 'tax_amount', 'shipping_amount', 'total',
            'deposit_percentage', 'deposit_amount', 'balance_amount', 'valid_until',
            'delivery_terms', 'data_sheet_url', 'terms_and_conditions_url', 'metadata',
            'items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PublicTradeQuotationSerializer(TradeQuotationSerializer):
    """What the buyer sees through the share link"""

    class Meta(TradeQuotationSerializer.Meta):
        fields = [
            'quotation_number', 'seller_name', 'buyer_email', 'status', 'currency',
            'subtotal', 'tax_amount', 'shipping_amount', 'total', 'deposit_percentage',
            'deposit_amount', 'balance_amount', 'valid_until', 'delivery_terms',
            'data_sheet_url', 'terms_and_conditions_url', 'items', 'created_at'
        ]
        read_only_fields = fields


class QuotationLineSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1)
    product_id = serializers.IntegerField(required=False, allow_null=True)


class CreateQuotationSerializer(serializers.Serializer):
    buyer_email = serializers.EmailField()
    buyer_id = serializers.IntegerField(required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, required=False)
    items = QuotationLineSerializer(many=True)
    deposit_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4, min_value=0, max_value=1, required=False)
    shipping_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    valid_until = serializers.DateField(required=False, allow_null=True)
    delivery_terms = serializers.CharField(required=False, allow_blank=True)
    data_sheet_url = serializers.URLField(required=False, allow_blank=True)
    terms_and_conditions_url = serializers.URLField(required=False, allow_blank=True)
    metadata = serializers.JSONField(required=False)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one line item is required')
        return value


class UpdateQuotationSerializer(serializers.Serializer):
    items = QuotationLineSerializer(many=True, required=False)
    deposit_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False)
    shipping_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    valid_until = serializers.DateField(required=False, allow_null=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one line item is required')
        return value


class BuyerInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    company = serializers.CharField(max_length=200, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)


class RejectQuotationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
