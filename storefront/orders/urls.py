from django.urls import path
from .views import (
    order_list_create, order_detail, order_presentation, order_events,
    order_update_status, order_update_fulfillment, order_refund
)

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/presentation/', order_presentation, name='order-presentation'),
    path('orders/<int:pk>/events/', order_events, name='order-events'),
    path('orders/<int:pk>/status/', order_update_status, name='order-update-status'),
    path('orders/<int:pk>/fulfillment/', order_update_fulfillment, name='order-update-fulfillment'),
    path('orders/<int:pk>/refund/', order_refund, name='order-refund'),
]
