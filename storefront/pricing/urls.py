from django.urls import path
from .views import exchange_rate, convert, quotation_preview, wholesale_cart_preview, validate_moq

urlpatterns = [
    path('pricing/exchange-rate/', exchange_rate, name='pricing-exchange-rate'),
    path('pricing/convert/', convert, name='pricing-convert'),
    path('pricing/quotation-preview/', quotation_preview, name='pricing-quotation-preview'),
    path('pricing/wholesale-cart-preview/', wholesale_cart_preview, name='pricing-wholesale-cart-preview'),
    path('pricing/validate-moq/', validate_moq, name='pricing-validate-moq'),
]
