from django.contrib import admin
from .models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 1


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'seller', 'price', 'stock_quantity', 'status', 'product_type', 'is_wholesale', 'created_at']
    list_filter = ['status', 'product_type', 'is_wholesale', 'promotion_active', 'created_at']
    search_fields = ['name', 'sku', 'seller__username']
    ordering = ['-created_at']
    inlines = [ProductVariantInline]
    readonly_fields = ['created_at', 'updated_at']
