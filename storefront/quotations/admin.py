from django.contrib import admin
from .models import TradeQuotation, TradeQuotationItem, TradeQuotationEvent, TradePaymentSchedule


class TradeQuotationItemInline(admin.TabularInline):
    model = TradeQuotationItem
    extra = 0


class TradePaymentScheduleInline(admin.TabularInline):
    model = TradePaymentSchedule
    extra = 0


class TradeQuotationEventInline(admin.TabularInline):
    model = TradeQuotationEvent
    extra = 0
    readonly_fields = ['event_type', 'performed_by', 'payload', 'created_at']


@admin.register(TradeQuotation)
class TradeQuotationAdmin(admin.ModelAdmin):
    list_display = ['quotation_number', 'seller', 'buyer_email', 'status', 'total', 'valid_until', 'created_at']
    list_filter = ['status', 'currency', 'created_at']
    search_fields = ['quotation_number', 'buyer_email', 'seller__username']
    readonly_fields = ['quotation_number', 'token', 'created_at', 'updated_at']
    inlines = [TradeQuotationItemInline, TradePaymentScheduleInline, TradeQuotationEventInline]
