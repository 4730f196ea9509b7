"""
Test suite for the campaigns module
Tests: newsletter events and rates, seller rollup, ad KPIs, daily series, CSV export, campaign endpoints
"""
from datetime import date
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.campaigns import analytics
from storefront.campaigns.models import NewsletterAnalytics, NewsletterCampaign, NewsletterEvent


def _day(campaign, day, spend, impressions, clicks, conversions=0, revenue=0):
    return analytics.record_daily_metrics(
        campaign, day, spend=Decimal(spend), impressions=impressions, reach=impressions,
        clicks=clicks, conversions=conversions, revenue=Decimal(revenue),
    )


class NewsletterAnalyticsTests(TestCase):
    """Test newsletter event recording and rates"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.campaign = TestDataFactory.create_newsletter(
            self.seller,
            recipients=['a@test.com', 'b@test.com', 'c@test.com', 'd@test.com', 'e@test.com'],
            status='sent',
        )

    def test_rates_from_events(self):
        """Test open and click rates are shares of delivered mail"""
        analytics.record_newsletter_event(self.campaign, 'a@test.com', 'open')
        analytics.record_newsletter_event(self.campaign, 'b@test.com', 'click')
        analytics.record_newsletter_event(self.campaign, 'e@test.com', 'bounce')
        row = NewsletterAnalytics.objects.get(campaign=self.campaign)
        self.assertEqual(row.total_sent, 5)
        self.assertEqual(row.total_delivered, 4)
        self.assertEqual(row.total_opened, 2)
        self.assertEqual(row.total_clicked, 1)
        self.assertEqual(row.open_rate, Decimal('50.00'))
        self.assertEqual(row.click_rate, Decimal('25.00'))
        self.assertEqual(row.bounce_rate, Decimal('20.00'))

    def test_unsubscribe_counts_as_click_and_open(self):
        """Test an unsubscribe link click implies an open"""
        analytics.record_newsletter_event(self.campaign, 'c@test.com', 'unsubscribe')
        row = NewsletterAnalytics.objects.get(campaign=self.campaign)
        self.assertEqual(row.total_opened, 1)
        self.assertEqual(row.total_clicked, 1)
        self.assertEqual(row.total_unsubscribed, 1)

    def test_duplicate_webhook_ignored(self):
        """Test the same webhook delivery is only stored once"""
        self.assertTrue(analytics.record_newsletter_event(self.campaign, 'a@test.com', 'open', webhook_event_id='wh-1'))
        self.assertFalse(analytics.record_newsletter_event(self.campaign, 'a@test.com', 'click', webhook_event_id='wh-1'))
        self.assertEqual(NewsletterEvent.objects.count(), 1)

    def test_duplicate_recipient_event_ignored(self):
        """Test a recipient's second open is not counted"""
        analytics.record_newsletter_event(self.campaign, 'A@test.com', 'open')
        self.assertFalse(analytics.record_newsletter_event(self.campaign, 'a@test.com', 'open'))
        self.assertEqual(NewsletterAnalytics.objects.get(campaign=self.campaign).total_opened, 1)

    def test_no_recipients(self):
        """Test rates are zero without deliveries"""
        campaign = TestDataFactory.create_newsletter(self.seller, recipients=[])
        row = analytics.update_newsletter_analytics(campaign)
        self.assertEqual(row.open_rate, Decimal('0.00'))
        self.assertEqual(row.bounce_rate, Decimal('0.00'))

    def test_rollup_averages_campaign_rates(self):
        """Test the seller summary averages per-campaign rates"""
        analytics.record_newsletter_event(self.campaign, 'a@test.com', 'open')
        other = TestDataFactory.create_newsletter(self.seller, recipients=['x@test.com', 'y@test.com'], status='sent')
        analytics.record_newsletter_event(other, 'x@test.com', 'click')
        analytics.record_newsletter_event(other, 'y@test.com', 'open')

        summary = analytics.newsletter_analytics_for_seller(self.seller)
        self.assertEqual(summary['campaign_count'], 2)
        self.assertEqual(summary['avg_open_rate'], Decimal('60.00'))
        self.assertEqual(summary['avg_click_rate'], Decimal('25.00'))
        self.assertEqual(summary['total_sent'], 7)
        self.assertEqual(summary['total_opened'], 3)

    def test_rollup_empty(self):
        """Test a seller without campaigns gets zeros"""
        summary = analytics.rollup_newsletter_analytics([])
        self.assertEqual(summary['avg_open_rate'], Decimal('0.00'))
        self.assertEqual(summary['campaign_count'], 0)


class AdAnalyticsTests(TestCase):
    """Test ad KPIs and the daily series"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.campaign = TestDataFactory.create_ad_campaign(self.seller)

    def test_compute_metrics(self):
        """Test CTR, CPC, CPM and ROAS"""
        metrics = analytics.compute_ad_metrics(Decimal('50.00'), 10000, 250, conversions=10, revenue=Decimal('200.00'))
        self.assertEqual(metrics['ctr'], Decimal('2.50'))
        self.assertEqual(metrics['cpc'], Decimal('0.2000'))
        self.assertEqual(metrics['cpm'], Decimal('5.0000'))
        self.assertEqual(metrics['roas'], Decimal('4.00'))
        self.assertEqual(metrics['conversion_rate'], Decimal('4.00'))

    def test_zero_denominators(self):
        """Test KPIs are zero rather than failing on empty data"""
        metrics = analytics.compute_ad_metrics(0, 0, 0)
        self.assertEqual(metrics['ctr'], Decimal('0.00'))
        self.assertEqual(metrics['cpc'], Decimal('0.0000'))
        self.assertEqual(metrics['roas'], Decimal('0.00'))

    def test_record_daily_metrics_replaces_day(self):
        """Test recording a day twice keeps one row"""
        _day(self.campaign, date(2024, 5, 1), '10.00', 1000, 10)
        _day(self.campaign, date(2024, 5, 1), '12.00', 1200, 12)
        self.assertEqual(self.campaign.daily_metrics.count(), 1)
        self.assertEqual(self.campaign.daily_metrics.get().spend, Decimal('12.00'))

    def test_series_sums_campaigns_per_day(self):
        """Test days are summed across the seller's campaigns"""
        other = TestDataFactory.create_ad_campaign(self.seller)
        _day(self.campaign, date(2024, 5, 1), '10.00', 1000, 10)
        _day(other, date(2024, 5, 1), '5.00', 1000, 30)
        _day(self.campaign, date(2024, 5, 2), '8.00', 400, 4, conversions=2, revenue='40.00')

        report = analytics.ad_campaign_analytics(self.seller)
        self.assertEqual([day['date'] for day in report['daily']], [date(2024, 5, 1), date(2024, 5, 2)])
        self.assertEqual(report['daily'][0]['clicks'], 40)
        self.assertEqual(report['daily'][0]['ctr'], Decimal('2.00'))
        self.assertEqual(report['totals']['spend'], Decimal('23.00'))
        self.assertEqual(report['metrics']['ctr'], Decimal('1.83'))

    def test_series_filters(self):
        """Test campaign and date range filters"""
        other = TestDataFactory.create_ad_campaign(self.seller)
        _day(self.campaign, date(2024, 5, 1), '10.00', 1000, 10)
        _day(other, date(2024, 5, 2), '5.00', 500, 5)
        _day(self.campaign, date(2024, 5, 3), '7.00', 700, 7)

        report = analytics.ad_campaign_analytics(self.seller, campaign_id=self.campaign.id, start_date=date(2024, 5, 2))
        self.assertEqual(len(report['daily']), 1)
        self.assertEqual(report['totals']['impressions'], 700)

    def test_foreign_campaign_not_found(self):
        """Test sellers only see their own campaigns"""
        with self.assertRaises(NotFound):
            analytics.ad_campaign_analytics(TestDataFactory.create_seller(), campaign_id=self.campaign.id)

    def test_csv_export(self):
        """Test the CSV carries a header and one line per day"""
        _day(self.campaign, date(2024, 5, 1), '10.5', 1000, 25, conversions=3)
        report = analytics.ad_campaign_analytics(self.seller)
        lines = analytics.export_daily_metrics_csv(report['daily']).splitlines()
        self.assertEqual(lines[0], 'Date,Spend,Impressions,Clicks,Conversions,CTR')
        self.assertEqual(lines[1], '2024-05-01,10.50,1000,25,3,2.50')


class CampaignAPITests(TestCase):
    """Test newsletter and ad endpoints"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.seller)

    def test_buyers_forbidden(self):
        """Test campaign endpoints are seller-only"""
        self.client.authenticate_user(TestDataFactory.create_buyer())
        response = self.client.get('/api/v1/campaigns/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_newsletter_normalizes_recipients(self):
        """Test recipient emails are validated and lowercased"""
        response = self.client.post('/api/v1/campaigns/', {
            'subject': 'Spring launch', 'content': 'New arrivals', 'recipients': ['Ann@Test.com', 'bo@test.com'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['recipients'], ['ann@test.com', 'bo@test.com'])
        self.assertEqual(response.data['recipient_count'], 2)
        self.assertEqual(response.data['status'], 'draft')

    def test_create_newsletter_bad_email(self):
        """Test invalid recipient addresses are rejected"""
        response = self.client.post('/api/v1/campaigns/', {
            'subject': 'Oops', 'content': 'x', 'recipients': ['not-an-email'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_and_edit_lock(self):
        """Test sending starts analytics and locks the campaign"""
        campaign = TestDataFactory.create_newsletter(self.seller, recipients=['a@test.com'])
        response = self.client.post(f'/api/v1/campaigns/{campaign.id}/send/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'sent')
        self.assertTrue(NewsletterAnalytics.objects.filter(campaign=campaign, total_sent=1).exists())
        self.assertTrue(AuditLog.objects.filter(action='newsletter_send').exists())

        response = self.client.patch(f'/api/v1/campaigns/{campaign.id}/', {'subject': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/campaigns/{campaign.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(NewsletterCampaign.objects.filter(pk=campaign.id).exists())
        response = self.client.post(f'/api/v1/campaigns/{campaign.id}/send/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_without_recipients(self):
        """Test a campaign without recipients cannot be sent"""
        campaign = TestDataFactory.create_newsletter(self.seller, recipients=[])
        response = self.client.post(f'/api/v1/campaigns/{campaign.id}/send/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_event_endpoint(self):
        """Test events are recorded once and analytics follow"""
        campaign = TestDataFactory.create_newsletter(self.seller, recipients=['a@test.com', 'b@test.com'], status='sent')
        payload = {'recipient_email': 'a@test.com', 'event_type': 'open', 'webhook_event_id': 'evt-1'}
        response = self.client.post(f'/api/v1/campaigns/{campaign.id}/events/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(f'/api/v1/campaigns/{campaign.id}/events/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['recorded'])

        response = self.client.get(f'/api/v1/campaigns/{campaign.id}/analytics/')
        self.assertEqual(response.data['open_rate'], '50.00')

    def test_seller_rollup_endpoint(self):
        """Test the seller-wide newsletter summary"""
        campaign = TestDataFactory.create_newsletter(self.seller, recipients=['a@test.com'], status='sent')
        analytics.record_newsletter_event(campaign, 'a@test.com', 'click')
        response = self.client.get('/api/v1/campaigns/analytics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['campaign_count'], 1)
        self.assertEqual(response.data['avg_click_rate'], Decimal('100.00'))

    def test_ad_metrics_and_analytics(self):
        """Test recording a day and reading the analytics report"""
        response = self.client.post('/api/v1/meta-ads/', {'name': 'Summer sale', 'objective': 'sales'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        campaign_id = response.data['id']

        response = self.client.post(f'/api/v1/meta-ads/{campaign_id}/metrics/', {
            'date': '2024-06-01', 'spend': '20.00', 'impressions': 4000, 'reach': 3500,
            'clicks': 80, 'conversions': 4, 'revenue': '100.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/v1/meta-ads/analytics/?campaign_id={campaign_id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metrics']['ctr'], Decimal('2.00'))
        self.assertEqual(response.data['metrics']['roas'], Decimal('5.00'))

    def test_metrics_clicks_over_impressions(self):
        """Test clicks cannot exceed impressions"""
        campaign = TestDataFactory.create_ad_campaign(self.seller)
        response = self.client.post(f'/api/v1/meta-ads/{campaign.id}/metrics/', {
            'date': '2024-06-01', 'spend': '1.00', 'impressions': 10, 'clicks': 11,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_analytics_bad_range(self):
        """Test an end date before the start date is rejected"""
        response = self.client.get('/api/v1/meta-ads/analytics/?start_date=2024-06-10&end_date=2024-06-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_csv(self):
        """Test the export is served as a CSV attachment"""
        campaign = TestDataFactory.create_ad_campaign(self.seller)
        _day(campaign, date(2024, 6, 1), '3.00', 300, 3)
        response = self.client.get('/api/v1/meta-ads/analytics/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment;', response['Content-Disposition'])
        self.assertIn(b'2024-06-01,3.00,300,3,0,1.00', response.content)
