from django.db import models
from decimal import Decimal
from storefront.core.models import User
from storefront.catalog.models import Product


class TradeQuotation(models.Model):
    """B2B price quotation sent by a seller to a trade buyer"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('sent', 'Sent'),
        ('viewed', 'Viewed'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('expired', 'Expired'),
    ]

    quotation_number = models.CharField(max_length=50, unique=True, db_index=True)
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='trade_quotations')
    buyer_email = models.EmailField()
    buyer = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='received_quotations')
    token = models.CharField(max_length=64, unique=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    currency = models.CharField(max_length=3, default='USD')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    deposit_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('50.00'))
    deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    valid_until = models.DateField(null=True, blank=True)
    delivery_terms = models.TextField(blank=True)
    data_sheet_url = models.URLField(blank=True)
    terms_and_conditions_url = models.URLField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.quotation_number

    class Meta:
        db_table = 'trade_quotations'
        ordering = ['-created_at']


class TradeQuotationItem(models.Model):
    quotation = models.ForeignKey(TradeQuotation, on_delete=models.CASCADE, related_name='items')
    line_number = models.PositiveIntegerField()
    description = models.CharField(max_length=500)
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f"{self.quotation.quotation_number} #{self.line_number}"

    class Meta:
        db_table = 'trade_quotation_items'
        ordering = ['line_number']


class TradeQuotationEvent(models.Model):
    quotation = models.ForeignKey(TradeQuotation, on_delete=models.CASCADE, related_name='events')
    event_type = models.CharField(max_length=50)
    performed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trade_quotation_events'
        ordering = ['-created_at', '-id']


class TradePaymentSchedule(models.Model):
    PAYMENT_TYPE_CHOICES = [
        ('deposit', 'Deposit'),
        ('balance', 'Balance'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
    ]

    quotation = models.ForeignKey(TradeQuotation, on_delete=models.CASCADE, related_name='payment_schedules')
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.quotation.quotation_number} {self.payment_type}: {self.amount}"

    class Meta:
        db_table = 'trade_payment_schedules'
        ordering = ['created_at', 'id']
        unique_together = [['quotation', 'payment_type']]
