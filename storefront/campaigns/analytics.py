"""
Campaign analytics: newsletter engagement and ad performance.

Ad KPIs:
    CTR  = clicks / impressions * 100
    CPC  = spend / clicks
    CPM  = spend / impressions * 1000
    ROAS = revenue / spend
Each is zero when its denominator is zero.
"""
import csv
import io
import logging
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound

from .models import NewsletterAnalytics, NewsletterEvent, AdCampaign, AdDailyMetric

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
FOUR_PLACES = Decimal('0.0001')
CSV_HEADERS = ['Date', 'Spend', 'Impressions', 'Clicks', 'Conversions', 'CTR']


def _ratio(numerator, denominator, places, scale=1):
    if not denominator:
        return Decimal('0').quantize(places)
    value = Decimal(str(numerator)) / Decimal(str(denominator)) * scale
    return value.quantize(places, rounding=ROUND_HALF_UP)


# Newsletters
def record_newsletter_event(campaign, recipient_email, event_type, event_data=None, webhook_event_id=None):
    """
    Store an engagement event and refresh the campaign's analytics.

    Returns False when the event was already recorded (same webhook id, or
    same recipient and event type).
    """
    if webhook_event_id and NewsletterEvent.objects.filter(webhook_event_id=webhook_event_id).exists():
        logger.info(f"Newsletter event {webhook_event_id} already processed")
        return False

    try:
        with transaction.atomic():
            NewsletterEvent.objects.create(
                campaign=campaign,
                recipient_email=recipient_email.lower(),
                event_type=event_type,
                event_data=event_data or {},
                webhook_event_id=webhook_event_id or None,
            )
    except IntegrityError:
        logger.warning(f"Duplicate {event_type} event for campaign {campaign.id} and {recipient_email}")
        return False

    update_newsletter_analytics(campaign)
    return True


def update_newsletter_analytics(campaign):
    """
    Recompute a campaign's analytics row from its stored events.

    A click (unsubscribe links included) implies an open, since tracking
    pixels are often blocked.
    """
    openers = set()
    clickers = set()
    bounced = 0
    unsubscribed = 0
    for event in campaign.events.all():
        email = event.recipient_email.lower()
        if event.event_type == 'open':
            openers.add(email)
        elif event.event_type in ('click', 'unsubscribe'):
            openers.add(email)
            clickers.add(email)
        if event.event_type == 'bounce':
            bounced += 1
        if event.event_type == 'unsubscribe':
            unsubscribed += 1

    total_sent = len(campaign.recipients) if isinstance(campaign.recipients, list) else 0
    analytics, _ = NewsletterAnalytics.objects.update_or_create(
        campaign=campaign,
        defaults={
            'total_sent': total_sent,
            'total_delivered': max(total_sent - bounced, 0),
            'total_opened': len(openers),
            'total_clicked': len(clickers),
            'total_bounced': bounced,
            'total_unsubscribed': unsubscribed,
        },
    )
    logger.info(f"Newsletter analytics updated for campaign {campaign.id}: open rate {analytics.open_rate}%")
    return analytics


def rollup_newsletter_analytics(rows):
    """
    Seller-level summary over per-campaign analytics rows.

    Average rates are the mean of the per-campaign rates, not rates of the
    summed counts.
    """
    rows = list(rows)
    count = len(rows)
    if count:
        avg_open_rate = sum((row.open_rate for row in rows), Decimal('0')) / count
        avg_click_rate = sum((row.click_rate for row in rows), Decimal('0')) / count
    else:
        avg_open_rate = avg_click_rate = Decimal('0')

    return {
        'avg_open_rate': avg_open_rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
        'avg_click_rate': avg_click_rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
        'total_sent': sum(row.total_sent for row in rows),
        'total_opened': sum(row.total_opened for row in rows),
        'total_clicked': sum(row.total_clicked for row in rows),
        'campaign_count': count,
    }


def newsletter_analytics_for_seller(seller):
    rows = NewsletterAnalytics.objects.filter(campaign__seller=seller)
    return rollup_newsletter_analytics(rows)


# Ads
def compute_ad_metrics(spend, impressions, clicks, conversions=0, revenue=0):
    return {
        'ctr': _ratio(clicks, impressions, TWO_PLACES, 100),
        'cpc': _ratio(spend, clicks, FOUR_PLACES),
        'cpm': _ratio(spend, impressions, FOUR_PLACES, 1000),
        'roas': _ratio(revenue, spend, TWO_PLACES),
        'conversion_rate': _ratio(conversions, clicks, TWO_PLACES, 100),
    }


def get_seller_campaign(seller, campaign_id):
    campaign = AdCampaign.objects.filter(pk=campaign_id, seller=seller).first()
    if campaign is None:
        raise NotFound('Campaign not found')
    return campaign


def record_daily_metrics(campaign, date, **values):
    """Insert or replace the metrics of one campaign day"""
    metric, created = AdDailyMetric.objects.update_or_create(campaign=campaign, date=date, defaults=values)
    logger.info(f"{'Recorded' if created else 'Updated'} ad metrics for campaign {campaign.id} on {date}")
    return metric


def ad_campaign_analytics(seller, campaign_id=None, start_date=None, end_date=None):
    """
    Totals, derived KPIs and a per-day series for one or all of the
    seller's ad campaigns. Days are summed across campaigns.
    """
    metrics = AdDailyMetric.objects.filter(campaign__seller=seller)
    if campaign_id is not None:
        metrics = metrics.filter(campaign=get_seller_campaign(seller, campaign_id))
    if start_date:
        metrics = metrics.filter(date__gte=start_date)
    if end_date:
        metrics = metrics.filter(date__lte=end_date)

    days = OrderedDict()
    for metric in metrics.order_by('date', 'id'):
        day = days.setdefault(metric.date, {
            'spend': Decimal('0'), 'impressions': 0, 'clicks': 0, 'conversions': 0, 'revenue': Decimal('0'),
        })
        day['spend'] += metric.spend
        day['impressions'] += metric.impressions
        day['clicks'] += metric.clicks
        day['conversions'] += metric.conversions
        day['revenue'] += metric.revenue

    series = []
    for date, day in days.items():
        series.append({
            'date': date,
            **day,
            'ctr': compute_ad_metrics(day['spend'], day['impressions'], day['clicks'])['ctr'],
        })

    totals = {
        'spend': sum((day['spend'] for day in series), Decimal('0')),
        'impressions': sum(day['impressions'] for day in series),
        'clicks': sum(day['clicks'] for day in series),
        'conversions': sum(day['conversions'] for day in series),
        'revenue': sum((day['revenue'] for day in series), Decimal('0')),
    }
    return {
        'campaign_id': campaign_id,
        'start_date': start_date,
        'end_date': end_date,
        'totals': totals,
        'metrics': compute_ad_metrics(**totals),
        'daily': series,
    }


def export_daily_metrics_csv(series):
    """CSV text of a per-day series"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for day in series:
        writer.writerow([
            day['date'].isoformat(),
            f"{day['spend']:.2f}",
            day['impressions'],
            day['clicks'],
            day['conversions'],
            f"{day['ctr']:.2f}",
        ])
    return output.getvalue()
