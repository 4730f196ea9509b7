from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model: sellers run storefronts, buyers shop retail or wholesale"""
    USER_TYPE_CHOICES = [
        ('seller', 'Seller'),
        ('buyer', 'Buyer'),
        ('admin', 'Admin'),
    ]

    user_type = models.CharField(max_length=20, choices=USER_TYPE_CHOICES, default='buyer', db_index=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    company_name = models.CharField(max_length=200, blank=True)
    # Public storefront path segment, /s/<store_slug>/
    store_slug = models.SlugField(max_length=100, unique=True, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_seller(self):
        return self.user_type == 'seller'

    @property
    def is_buyer(self):
        return self.user_type == 'buyer'

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """Runtime overrides for STOREFRONT settings (value stored as JSON text)"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('cart_add', 'Add to Cart'),
        ('cart_update', 'Cart Update'),
        ('cart_remove', 'Remove from Cart'),
        ('order_create', 'Order Created'),
        ('order_status', 'Order Status Changed'),
        ('order_fulfillment', 'Order Fulfillment Updated'),
        ('order_refund', 'Order Refunded'),
        ('quotation_create', 'Quotation Created'),
        ('quotation_update', 'Quotation Updated'),
        ('quotation_send', 'Quotation Sent'),
        ('quotation_accept', 'Quotation Accepted'),
        ('invitation_create', 'Wholesale Invitation Created'),
        ('invitation_accept', 'Wholesale Invitation Accepted'),
        ('invitation_reject', 'Wholesale Invitation Rejected'),
        ('wholesale_order_create', 'Wholesale Order Placed'),
        ('wholesale_payment', 'Wholesale Payment Recorded'),
        ('price_change', 'Price Change'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, quotation number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_c6d3e1_idx'),
            models.Index(fields=['action'], name='audit_logs_action_4f1b2a_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_8a7c3d_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__2e9f5b_idx'),
        ]
