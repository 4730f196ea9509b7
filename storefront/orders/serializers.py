from rest_framework import serializers
from .models import Order, OrderItem, OrderEvent, Refund
from .presentation import get_order_presentation


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'variant_key', 'quantity', 'price',
            'subtotal', 'item_status', 'tracking_number', 'carrier'
        ]


class OrderEventSerializer(serializers.ModelSerializer):
    performed_by_username = serializers.CharField(source='performed_by.username', read_only=True, allow_null=True)

    class Meta:
        model = OrderEvent
        fields = ['id', 'event_type', 'description', 'performed_by', 'performed_by_username', 'payload', 'created_at']


class RefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = Refund
        fields = ['id', 'order', 'amount', 'refund_type', 'reason', 'line_items', 'processed_by', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    presentation = serializers.SerializerMethodField()
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'buyer', 'seller', 'status', 'fulfillment_status', 'payment_status',
            'total', 'currency', 'item_count', 'presentation', 'created_at'
        ]

    def get_presentation(self, obj):
        return get_order_presentation(obj)

    def get_item_count(self, obj):
        return sum(item.quantity for item in obj.items.all())


class OrderSerializer(OrderListSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'buyer', 'seller', 'cart', 'status', 'fulfillment_status', 'payment_status',
            'subtotal', 'tax_amount', 'shipping_cost', 'total', 'amount_paid', 'amount_refunded', 'currency',
            'shipping_name', 'shipping_address', 'shipping_city', 'shipping_state', 'shipping_postal_code',
            'shipping_country', 'billing_name', 'billing_address', 'billing_city', 'billing_state',
            'billing_postal_code', 'billing_country', 'tracking_number', 'carrier', 'buyer_notes',
            'items', 'item_count', 'presentation', 'created_at', 'updated_at'
        ]


class AddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)


class CreateOrderSerializer(serializers.Serializer):
    cart_id = serializers.IntegerField()
    shipping_address = AddressSerializer()
    billing_address = AddressSerializer(required=False, allow_null=True)
    buyer_notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=30)


class FulfillmentSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=30)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    carrier = serializers.CharField(max_length=100, required=False, allow_blank=True)


class RefundLineSerializer(serializers.Serializer):
    order_item_id = serializers.IntegerField(required=False)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class IssueRefundSerializer(serializers.Serializer):
    refund_type = serializers.ChoiceField(choices=['full', 'partial'])
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    line_items = RefundLineSerializer(many=True, required=False)
