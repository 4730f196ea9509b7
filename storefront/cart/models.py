from django.db import models
from decimal import Decimal
from storefront.core.models import User
from storefront.catalog.models import Product, ProductVariant


class Cart(models.Model):
    """Shopping cart; holds products of a single seller"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('abandoned', 'Abandoned'),
    ]

    session_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    buyer = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='carts')
    seller = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='seller_carts')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart-{self.id} ({self.status})"

    def get_subtotal(self):
        return sum((item.get_line_total() for item in self.items.all()), Decimal('0.00'))

    def get_item_count(self):
        return sum(item.quantity for item in self.items.all())

    class Meta:
        db_table = 'carts'
        ordering = ['-updated_at']


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    variant = models.ForeignKey(ProductVariant, on_delete=models.SET_NULL, null=True, blank=True)
    variant_key = models.CharField(max_length=120, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    original_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product.name} x {self.quantity}"

    def get_line_total(self):
        return self.unit_price * self.quantity

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at', 'id']
