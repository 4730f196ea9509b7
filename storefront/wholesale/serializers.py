from rest_framework import serializers
from .models import (
    WholesaleProduct, WholesaleInvitation, WholesaleAccessGrant,
    WholesaleOrder, WholesaleOrderItem, WholesaleOrderEvent
)


class WholesaleProductSerializer(serializers.ModelSerializer):
    discount_percentage = serializers.SerializerMethodField()

    class Meta:
        model = WholesaleProduct
        fields = [
            'id', 'seller', 'product', 'name', 'description', 'rrp', 'wholesale_price',
            'discount_percentage', 'moq', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['seller', 'created_at', 'updated_at']

    def get_discount_percentage(self, obj):
        if not obj.rrp:
            return '0.00'
        return f"{(obj.rrp - obj.wholesale_price) / obj.rrp * 100:.2f}"

    def validate(self, data):
        rrp = data.get('rrp', getattr(self.instance, 'rrp', None))
        wholesale_price = data.get('wholesale_price', getattr(self.instance, 'wholesale_price', None))
        if rrp is not None and wholesale_price is not None and wholesale_price > rrp:
            raise serializers.ValidationError({'wholesale_price': 'Wholesale price cannot exceed the recommended retail price'})
        product = data.get('product')
        request = self.context.get('request')
        if product is not None and request is not None and product.seller_id != request.user.id:
            raise serializers.ValidationError({'product': 'Product does not belong to this seller'})
        return data


class WholesaleTermsSerializer(serializers.Serializer):
    allowedPaymentTerms = serializers.ListField(child=serializers.CharField(), required=False)
    minimumOrderValue = serializers.FloatField(min_value=0, required=False)
    depositPercentage = serializers.FloatField(min_value=0, max_value=100, required=False)


class WholesaleInvitationSerializer(serializers.ModelSerializer):
    seller_name = serializers.CharField(source='seller.company_name', read_only=True)

    class Meta:
        model = WholesaleInvitation
        fields = [
            'id', 'seller', 'seller_name', 'buyer_email', 'buyer_name', 'buyer', 'token', 'status',
            'wholesale_terms', 'message', 'expires_at', 'accepted_at', 'created_at'
        ]
        read_only_fields = fields


class CreateInvitationSerializer(serializers.Serializer):
    buyer_email = serializers.EmailField()
    buyer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    message = serializers.CharField(required=False, allow_blank=True, default='')
    wholesale_terms = WholesaleTermsSerializer(required=False)


class WholesaleAccessGrantSerializer(serializers.ModelSerializer):
    buyer_username = serializers.CharField(source='buyer.username', read_only=True)
    seller_username = serializers.CharField(source='seller.username', read_only=True)
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = WholesaleAccessGrant
        fields = ['id', 'buyer', 'buyer_username', 'seller', 'seller_username', 'status', 'is_active', 'wholesale_terms', 'created_at']
        read_only_fields = fields


class WholesaleOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = WholesaleOrderItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'variant_key', 'quantity', 'moq', 'unit_price_cents', 'subtotal_cents']


class WholesaleOrderEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = WholesaleOrderEvent
        fields = ['id', 'event_type', 'description', 'payload', 'performed_by', 'created_at']


class WholesaleOrderSerializer(serializers.ModelSerializer):
    items = WholesaleOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = WholesaleOrder
        fields = [
            'id', 'order_number', 'seller', 'buyer', 'status', 'subtotal_cents', 'tax_amount_cents',
            'total_cents', 'deposit_amount_cents', 'balance_amount_cents', 'deposit_percentage',
            'balance_percentage', 'payment_terms', 'balance_due_date', 'po_number', 'buyer_email',
            'buyer_name', 'currency', 'shipping_address', 'billing_address', 'deposit_paid_at',
            'balance_paid_at', 'items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OrderLineSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    variant_key = serializers.CharField(required=False, allow_blank=True)


class PlaceWholesaleOrderSerializer(serializers.Serializer):
    seller_id = serializers.IntegerField()
    items = OrderLineSerializer(many=True, allow_empty=False)
    payment_terms = serializers.CharField(required=False, allow_blank=True)
    po_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    shipping_address = serializers.DictField(required=False)
    billing_address = serializers.DictField(required=False)


class RecordPaymentSerializer(serializers.Serializer):
    payment_type = serializers.ChoiceField(choices=['deposit', 'balance'])
