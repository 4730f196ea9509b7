from rest_framework import serializers
from .models import NewsletterCampaign, NewsletterAnalytics, AdCampaign, AdDailyMetric


class NewsletterCampaignSerializer(serializers.ModelSerializer):
    recipient_count = serializers.SerializerMethodField()

    class Meta:
        model = NewsletterCampaign
        fields = [
            'id', 'seller', 'subject', 'content', 'html_content', 'recipients', 'recipient_count',
            'status', 'scheduled_at', 'sent_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['seller', 'status', 'sent_at', 'created_at', 'updated_at']

    def get_recipient_count(self, obj):
        return len(obj.recipients) if isinstance(obj.recipients, list) else 0

    def validate_recipients(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Recipients must be a list of email addresses')
        email_field = serializers.EmailField()
        return [email_field.run_validation(email).lower() for email in value]


class NewsletterAnalyticsSerializer(serializers.ModelSerializer):
    open_rate = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)
    click_rate = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)
    bounce_rate = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = NewsletterAnalytics
        fields = [
            'campaign', 'total_sent', 'total_delivered', 'total_opened', 'total_clicked',
            'total_bounced', 'total_unsubscribed', 'open_rate', 'click_rate', 'bounce_rate', 'last_updated'
        ]
        read_only_fields = fields


class NewsletterEventSerializer(serializers.Serializer):
    recipient_email = serializers.EmailField()
    event_type = serializers.ChoiceField(choices=['open', 'click', 'bounce', 'unsubscribe'])
    event_data = serializers.JSONField(required=False)
    webhook_event_id = serializers.CharField(max_length=255, required=False, allow_blank=True)


class AdCampaignSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdCampaign
        fields = ['id', 'seller', 'name', 'objective', 'status', 'external_id', 'daily_budget', 'created_at', 'updated_at']
        read_only_fields = ['seller', 'created_at', 'updated_at']


class AdDailyMetricSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdDailyMetric
        fields = ['id', 'campaign', 'date', 'spend', 'impressions', 'reach', 'clicks', 'conversions', 'revenue']
        read_only_fields = ['id', 'campaign']

    def validate(self, data):
        if data.get('clicks', 0) > data.get('impressions', 0):
            raise serializers.ValidationError({'clicks': 'Clicks cannot exceed impressions'})
        return data


class AdAnalyticsQuerySerializer(serializers.Serializer):
    campaign_id = serializers.IntegerField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, data):
        start_date = data.get('start_date')
        end_date = data.get('end_date')
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({'end_date': 'End date must be on or after start date'})
        return data
