from django.urls import path
from .views import (
    product_list_create, product_detail, product_variants, product_variant_detail,
    product_presentation, storefront_products, storefront_product_detail
)

urlpatterns = [
    # Seller product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/variants/', product_variants, name='product-variants'),
    path('products/<int:pk>/variants/<int:variant_id>/', product_variant_detail, name='product-variant-detail'),
    path('products/<int:pk>/presentation/', product_presentation, name='product-presentation'),

    # Public storefront endpoints
    path('storefront/<slug:store_slug>/products/', storefront_products, name='storefront-products'),
    path('storefront/<slug:store_slug>/products/<int:pk>/', storefront_product_detail, name='storefront-product-detail'),
]
