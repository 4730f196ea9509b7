from django.contrib import admin
from .models import NewsletterCampaign, NewsletterAnalytics, AdCampaign, AdDailyMetric


@admin.register(NewsletterCampaign)
class NewsletterCampaignAdmin(admin.ModelAdmin):
    list_display = ['subject', 'seller', 'status', 'sent_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['subject', 'seller__username']


@admin.register(NewsletterAnalytics)
class NewsletterAnalyticsAdmin(admin.ModelAdmin):
    list_display = ['campaign', 'total_sent', 'total_opened', 'total_clicked', 'open_rate', 'click_rate']


class AdDailyMetricInline(admin.TabularInline):
    model = AdDailyMetric
    extra = 0


@admin.register(AdCampaign)
class AdCampaignAdmin(admin.ModelAdmin):
    list_display = ['name', 'seller', 'status', 'external_id', 'daily_budget', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'external_id']
    inlines = [AdDailyMetricInline]
