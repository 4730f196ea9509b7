from django.urls import path
from .views import (
    wholesale_product_list_create, wholesale_product_detail, wholesale_catalog,
    invitation_list_create, invitation_by_token, invitation_accept, invitation_reject,
    access_grant_list, wholesale_order_list_create, wholesale_order_detail,
    wholesale_order_items, wholesale_order_events, wholesale_order_payment
)

urlpatterns = [
    # Wholesale catalog
    path('wholesale/products/', wholesale_product_list_create, name='wholesale-product-list-create'),
    path('wholesale/products/<int:pk>/', wholesale_product_detail, name='wholesale-product-detail'),
    path('wholesale/catalog/<int:seller_id>/', wholesale_catalog, name='wholesale-catalog'),

    # Invitations and access
    path('wholesale/invitations/', invitation_list_create, name='wholesale-invitation-list-create'),
    path('wholesale/invitations/<str:token>/', invitation_by_token, name='wholesale-invitation-by-token'),
    path('wholesale/invitations/<str:token>/accept/', invitation_accept, name='wholesale-invitation-accept'),
    path('wholesale/invitations/<str:token>/reject/', invitation_reject, name='wholesale-invitation-reject'),
    path('wholesale/access-grants/', access_grant_list, name='wholesale-access-grants'),

    # Orders
    path('wholesale/orders/', wholesale_order_list_create, name='wholesale-order-list-create'),
    path('wholesale/orders/<int:pk>/', wholesale_order_detail, name='wholesale-order-detail'),
    path('wholesale/orders/<int:pk>/items/', wholesale_order_items, name='wholesale-order-items'),
    path('wholesale/orders/<int:pk>/events/', wholesale_order_events, name='wholesale-order-events'),
    path('wholesale/orders/<int:pk>/payments/', wholesale_order_payment, name='wholesale-order-payment'),
]
