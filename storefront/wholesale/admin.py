from django.contrib import admin
from .models import (
    WholesaleProduct, WholesaleInvitation, WholesaleAccessGrant,
    WholesaleOrder, WholesaleOrderItem, WholesaleOrderEvent
)


@admin.register(WholesaleProduct)
class WholesaleProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'seller', 'rrp', 'wholesale_price', 'moq', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'seller__username']


@admin.register(WholesaleInvitation)
class WholesaleInvitationAdmin(admin.ModelAdmin):
    list_display = ['buyer_email', 'seller', 'status', 'expires_at', 'accepted_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['buyer_email', 'buyer_name', 'seller__username']
    readonly_fields = ['token', 'created_at']


@admin.register(WholesaleAccessGrant)
class WholesaleAccessGrantAdmin(admin.ModelAdmin):
    list_display = ['buyer', 'seller', 'status', 'created_at']
    list_filter = ['status']


class WholesaleOrderItemInline(admin.TabularInline):
    model = WholesaleOrderItem
    extra = 0


class WholesaleOrderEventInline(admin.TabularInline):
    model = WholesaleOrderEvent
    extra = 0
    readonly_fields = ['event_type', 'description', 'payload', 'performed_by', 'created_at']


@admin.register(WholesaleOrder)
class WholesaleOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'buyer', 'seller', 'status', 'total_cents', 'payment_terms', 'balance_due_date', 'created_at']
    list_filter = ['status', 'payment_terms', 'created_at']
    search_fields = ['order_number', 'po_number', 'buyer_email']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [WholesaleOrderItemInline, WholesaleOrderEventInline]
