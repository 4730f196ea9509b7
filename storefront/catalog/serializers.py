from rest_framework import serializers
from .models import Product, ProductVariant
from .presentation import get_product_presentation
from .utils import effective_price


class ProductVariantSerializer(serializers.ModelSerializer):
    variant_key = serializers.CharField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = ['id', 'product', 'variant_key', 'size', 'color', 'sku', 'price', 'stock_quantity', 'is_active']
        read_only_fields = ['product']


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)
    seller_name = serializers.CharField(source='seller.username', read_only=True)
    effective_price = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'seller', 'seller_name', 'name', 'sku', 'description', 'price', 'compare_at_price',
            'effective_price', 'stock_quantity', 'status', 'product_type', 'is_wholesale',
            'minimum_order_quantity', 'discount_percentage', 'promotion_active', 'promotion_end_date',
            'image', 'variants', 'created_at', 'updated_at'
        ]
        read_only_fields = ['seller', 'created_at', 'updated_at']

    def get_effective_price(self, obj):
        price, _, _ = effective_price(obj)
        return str(price)

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative')
        return value

    def validate_discount_percentage(self, value):
        if value is not None and not (0 <= value <= 100):
            raise serializers.ValidationError('Discount percentage must be between 0 and 100')
        return value


class StorefrontProductSerializer(ProductSerializer):
    """Public product shape: catalog fields plus presentation state"""
    presentation = serializers.SerializerMethodField()

    class Meta(ProductSerializer.Meta):
        fields = [
            'id', 'name', 'sku', 'description', 'price', 'compare_at_price', 'effective_price',
            'product_type', 'is_wholesale', 'minimum_order_quantity', 'image', 'variants',
            'presentation', 'created_at'
        ]

    def get_presentation(self, obj):
        return get_product_presentation(obj)
