from django.urls import path
from .views import (
    cart_detail, cart_add_item, cart_item_detail, cart_clear, cart_totals,
    cart_validate, cart_validate_wholesale, cart_validate_item
)

urlpatterns = [
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/items/', cart_add_item, name='cart-add-item'),
    path('cart/items/<int:item_id>/', cart_item_detail, name='cart-item-detail'),
    path('cart/clear/', cart_clear, name='cart-clear'),
    path('cart/totals/', cart_totals, name='cart-totals'),
    path('cart/validate/', cart_validate, name='cart-validate'),
    path('cart/validate-wholesale/', cart_validate_wholesale, name='cart-validate-wholesale'),
    path('cart/validate-item/', cart_validate_item, name='cart-validate-item'),
]
