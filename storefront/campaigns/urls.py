from django.urls import path
from .views import (
    newsletter_list_create, newsletter_detail, newsletter_send, newsletter_event,
    newsletter_campaign_analytics, newsletter_analytics, ad_campaign_list_create,
    ad_campaign_detail, ad_campaign_metrics, ad_analytics, ad_analytics_export
)

urlpatterns = [
    # Newsletters
    path('campaigns/', newsletter_list_create, name='newsletter-list-create'),
    path('campaigns/analytics/', newsletter_analytics, name='newsletter-analytics'),
    path('campaigns/<int:pk>/', newsletter_detail, name='newsletter-detail'),
    path('campaigns/<int:pk>/send/', newsletter_send, name='newsletter-send'),
    path('campaigns/<int:pk>/events/', newsletter_event, name='newsletter-event'),
    path('campaigns/<int:pk>/analytics/', newsletter_campaign_analytics, name='newsletter-campaign-analytics'),

    # Meta ads
    path('meta-ads/', ad_campaign_list_create, name='ad-campaign-list-create'),
    path('meta-ads/analytics/', ad_analytics, name='ad-analytics'),
    path('meta-ads/analytics/export/', ad_analytics_export, name='ad-analytics-export'),
    path('meta-ads/<int:pk>/', ad_campaign_detail, name='ad-campaign-detail'),
    path('meta-ads/<int:pk>/metrics/', ad_campaign_metrics, name='ad-campaign-metrics'),
]
