from django.contrib import admin
from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ['unit_price', 'original_price', 'discount_amount', 'created_at']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['id', 'session_id', 'buyer', 'seller', 'status', 'updated_at']
    list_filter = ['status', 'created_at']
    search_fields = ['session_id', 'buyer__username', 'seller__username']
    inlines = [CartItemInline]
