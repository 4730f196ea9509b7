from django.db import models
from decimal import Decimal, ROUND_HALF_UP
from storefront.core.models import User


def _percent(part, whole):
    if not whole:
        return Decimal('0.00')
    return (Decimal(part) / Decimal(whole) * 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class NewsletterCampaign(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('scheduled', 'Scheduled'),
        ('sent', 'Sent'),
    ]

    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='newsletter_campaigns')
    subject = models.CharField(max_length=255)
    content = models.TextField(blank=True)
    html_content = models.TextField(blank=True)
    recipients = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    scheduled_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.subject

    class Meta:
        db_table = 'newsletter_campaigns'
        ordering = ['-created_at']


class NewsletterEvent(models.Model):
    """Engagement event reported by the mail provider"""
    EVENT_TYPE_CHOICES = [
        ('open', 'Open'),
        ('click', 'Click'),
        ('bounce', 'Bounce'),
        ('unsubscribe', 'Unsubscribe'),
    ]

    campaign = models.ForeignKey(NewsletterCampaign, on_delete=models.CASCADE, related_name='events')
    recipient_email = models.EmailField()
    event_type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES)
    event_data = models.JSONField(default=dict, blank=True)
    webhook_event_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'newsletter_events'
        unique_together = [['campaign', 'recipient_email', 'event_type']]
        ordering = ['-created_at']


class NewsletterAnalytics(models.Model):
    campaign = models.OneToOneField(NewsletterCampaign, on_delete=models.CASCADE, related_name='analytics')
    total_sent = models.PositiveIntegerField(default=0)
    total_delivered = models.PositiveIntegerField(default=0)
    total_opened = models.PositiveIntegerField(default=0)
    total_clicked = models.PositiveIntegerField(default=0)
    total_bounced = models.PositiveIntegerField(default=0)
    total_unsubscribed = models.PositiveIntegerField(default=0)
    last_updated = models.DateTimeField(auto_now=True)

    @property
    def open_rate(self):
        return _percent(self.total_opened, self.total_delivered)

    @property
    def click_rate(self):
        return _percent(self.total_clicked, self.total_delivered)

    @property
    def bounce_rate(self):
        return _percent(self.total_bounced, self.total_sent)

    def __str__(self):
        return f"Analytics for {self.campaign.subject}"

    class Meta:
        db_table = 'newsletter_analytics'


class AdCampaign(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
    ]

    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='ad_campaigns')
    name = models.CharField(max_length=255)
    objective = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    external_id = models.CharField(max_length=100, blank=True, db_index=True)
    daily_budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'ad_campaigns'
        ordering = ['-created_at']


class AdDailyMetric(models.Model):
    campaign = models.ForeignKey(AdCampaign, on_delete=models.CASCADE, related_name='daily_metrics')
    date = models.DateField()
    spend = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    impressions = models.PositiveIntegerField(default=0)
    reach = models.PositiveIntegerField(default=0)
    clicks = models.PositiveIntegerField(default=0)
    conversions = models.PositiveIntegerField(default=0)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.campaign.name} {self.date}"

    class Meta:
        db_table = 'ad_daily_metrics'
        unique_together = [['campaign', 'date']]
        ordering = ['date']
