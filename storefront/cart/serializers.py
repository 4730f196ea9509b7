from rest_framework import serializers
from .models import Cart, CartItem


class CartItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_type = serializers.CharField(source='product.product_type', read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = [
            'id', 'product', 'product_name', 'product_sku', 'product_type', 'variant', 'variant_key',
            'quantity', 'unit_price', 'original_price', 'discount_amount', 'line_total', 'created_at'
        ]
        read_only_fields = fields

    def get_line_total(self, obj):
        return str(obj.get_line_total())


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    subtotal = serializers.SerializerMethodField()
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ['id', 'session_id', 'buyer', 'seller', 'status', 'items', 'subtotal', 'item_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_subtotal(self, obj):
        return str(obj.get_subtotal())

    def get_item_count(self, obj):
        return obj.get_item_count()


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    variant_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    seller_id = serializers.IntegerField(required=False, allow_null=True)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)


class ValidateCartItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    variant_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)
