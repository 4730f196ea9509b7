from django.urls import path
from .views import (
    quotation_list_create, quotation_detail, quotation_send, quotation_items,
    quotation_activities, quotation_payments, public_quotation,
    public_quotation_accept, public_quotation_reject
)

urlpatterns = [
    path('quotations/', quotation_list_create, name='quotation-list-create'),
    path('quotations/<int:pk>/', quotation_detail, name='quotation-detail'),
    path('quotations/<int:pk>/send/', quotation_send, name='quotation-send'),
    path('quotations/<int:pk>/items/', quotation_items, name='quotation-items'),
    path('quotations/<int:pk>/activities/', quotation_activities, name='quotation-activities'),
    path('quotations/<int:pk>/payments/', quotation_payments, name='quotation-payments'),

    # Share link
    path('quotations/public/<str:token>/', public_quotation, name='quotation-public'),
    path('quotations/public/<str:token>/accept/', public_quotation_accept, name='quotation-public-accept'),
    path('quotations/public/<str:token>/reject/', public_quotation_reject, name='quotation-public-reject'),
]
