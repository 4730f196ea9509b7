"""
URL configuration for the storefront project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Storefront Admin Panel"
admin.site.site_title = "Storefront Admin Portal"
admin.site.index_title = "Storefront & Wholesale Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('storefront.core.urls')),
    path('api/v1/', include('storefront.catalog.urls')),
    path('api/v1/', include('storefront.cart.urls')),
    path('api/v1/', include('storefront.orders.urls')),
    path('api/v1/', include('storefront.pricing.urls')),
    path('api/v1/', include('storefront.wholesale.urls')),
    path('api/v1/', include('storefront.quotations.urls')),
    path('api/v1/', include('storefront.campaigns.urls')),
]
