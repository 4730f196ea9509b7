from django.contrib import admin
from .models import Order, OrderItem, OrderEvent, Refund


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


class OrderEventInline(admin.TabularInline):
    model = OrderEvent
    extra = 0
    readonly_fields = ['event_type', 'description', 'performed_by', 'payload', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'buyer', 'seller', 'status', 'fulfillment_status', 'payment_status', 'total', 'created_at']
    list_filter = ['status', 'fulfillment_status', 'payment_status', 'created_at']
    search_fields = ['order_number', 'buyer__username', 'seller__username', 'tracking_number']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline, OrderEventInline]


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ['order', 'amount', 'refund_type', 'processed_by', 'created_at']
    list_filter = ['refund_type', 'created_at']
    search_fields = ['order__order_number', 'reason']
