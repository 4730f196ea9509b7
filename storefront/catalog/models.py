from django.db import models
from decimal import Decimal
from storefront.core.models import User


class Product(models.Model):
    """Seller product, sold retail and optionally wholesale"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('archived', 'Archived'),
    ]

    PRODUCT_TYPE_CHOICES = [
        ('in-stock', 'In Stock'),
        ('pre-order', 'Pre-order'),
        ('made-to-order', 'Made to Order'),
    ]

    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=200, db_index=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True, db_index=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    compare_at_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    stock_quantity = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    product_type = models.CharField(max_length=20, choices=PRODUCT_TYPE_CHOICES, default='in-stock')
    is_wholesale = models.BooleanField(default=False)
    minimum_order_quantity = models.PositiveIntegerField(default=1)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    promotion_active = models.BooleanField(default=False)
    promotion_end_date = models.DateTimeField(null=True, blank=True)
    image = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku or 'NO-SKU'})"

    @property
    def tracks_stock(self):
        """Made-to-order and pre-order products are sold regardless of stock"""
        return self.product_type == 'in-stock'

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class ProductVariant(models.Model):
    """Size/color variant of a product"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    size = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=50, blank=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    stock_quantity = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def variant_key(self):
        """Client-facing variant identifier, e.g. "m-red" """
        return f"{self.size}-{self.color}".lower()

    def __str__(self):
        return f"{self.product.name} - {self.variant_key}"

    class Meta:
        db_table = 'product_variants'
        unique_together = [['product', 'size', 'color']]
