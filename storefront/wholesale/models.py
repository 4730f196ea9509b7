from django.db import models
from storefront.core.models import User
from storefront.catalog.models import Product


class WholesaleProduct(models.Model):
    """Wholesale catalog entry: B2B price and MOQ for a seller's product"""
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wholesale_products')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='wholesale_entries')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    rrp = models.DecimalField(max_digits=12, decimal_places=2, help_text="Recommended retail price")
    wholesale_price = models.DecimalField(max_digits=12, decimal_places=2)
    moq = models.PositiveIntegerField(default=1, help_text="Minimum order quantity")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} (MOQ {self.moq})"

    class Meta:
        db_table = 'wholesale_products'
        unique_together = [['seller', 'product']]
        ordering = ['name']


class WholesaleInvitation(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('expired', 'Expired'),
    ]

    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wholesale_invitations_sent')
    buyer_email = models.EmailField()
    buyer_name = models.CharField(max_length=200, blank=True)
    buyer = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='wholesale_invitations')
    token = models.CharField(max_length=64, unique=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    wholesale_terms = models.JSONField(default=dict, blank=True, help_text="allowedPaymentTerms, minimumOrderValue, depositPercentage")
    message = models.TextField(blank=True)
    expires_at = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Invitation to {self.buyer_email} ({self.status})"

    class Meta:
        db_table = 'wholesale_invitations'
        ordering = ['-created_at']


class WholesaleAccessGrant(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('revoked', 'Revoked'),
    ]

    buyer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wholesale_grants')
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='wholesale_buyer_grants')
    invitation = models.ForeignKey(WholesaleInvitation, on_delete=models.SET_NULL, null=True, blank=True, related_name='grants')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    wholesale_terms = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_active(self):
        return self.status == 'active'

    def __str__(self):
        return f"{self.buyer} -> {self.seller} ({self.status})"

    class Meta:
        db_table = 'wholesale_access_grants'
        unique_together = [['buyer', 'seller']]


class WholesaleOrder(models.Model):
    """B2B order; all amounts in integer cents"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('deposit_paid', 'Deposit Paid'),
        ('awaiting_balance', 'Awaiting Balance'),
        ('balance_overdue', 'Balance Overdue'),
        ('paid', 'Paid'),
        ('processing', 'Processing'),
        ('fulfilled', 'Fulfilled'),
        ('cancelled', 'Cancelled'),
    ]

    order_number = models.CharField(max_length=50, unique=True, db_index=True)
    seller = models.ForeignKey(User, on_delete=models.PROTECT, related_name='wholesale_sales')
    buyer = models.ForeignKey(User, on_delete=models.PROTECT, related_name='wholesale_orders')
    invitation = models.ForeignKey(WholesaleInvitation, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending', db_index=True)
    subtotal_cents = models.BigIntegerField(default=0)
    tax_amount_cents = models.BigIntegerField(default=0)
    total_cents = models.BigIntegerField(default=0)
    deposit_amount_cents = models.BigIntegerField(default=0)
    balance_amount_cents = models.BigIntegerField(default=0)
    deposit_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    balance_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    payment_terms = models.CharField(max_length=30, default='Net 30')
    balance_due_date = models.DateField(null=True, blank=True)
    po_number = models.CharField(max_length=100, blank=True)
    buyer_email = models.EmailField(blank=True)
    buyer_name = models.CharField(max_length=200, blank=True)
    currency = models.CharField(max_length=3, default='USD')
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    deposit_paid_at = models.DateTimeField(null=True, blank=True)
    balance_paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'wholesale_orders'
        ordering = ['-created_at']


class WholesaleOrderItem(models.Model):
    order = models.ForeignKey(WholesaleOrder, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True)
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=100, blank=True)
    variant_key = models.CharField(max_length=120, blank=True)
    quantity = models.PositiveIntegerField()
    moq = models.PositiveIntegerField(default=1)
    unit_price_cents = models.BigIntegerField()
    subtotal_cents = models.BigIntegerField()

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    class Meta:
        db_table = 'wholesale_order_items'
        ordering = ['id']


class WholesaleOrderEvent(models.Model):
    order = models.ForeignKey(WholesaleOrder, on_delete=models.CASCADE, related_name='events')
    event_type = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    payload = models.JSONField(default=dict, blank=True)
    performed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.event_type}"

    class Meta:
        db_table = 'wholesale_order_events'
        ordering = ['-created_at', '-id']
