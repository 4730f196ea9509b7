from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from storefront.core.permissions import IsSeller
from storefront.core.utils import create_audit_log
from .models import NewsletterCampaign, NewsletterAnalytics, AdCampaign
from .serializers import (
    NewsletterCampaignSerializer, NewsletterAnalyticsSerializer, NewsletterEventSerializer,
    AdCampaignSerializer, AdDailyMetricSerializer, AdAnalyticsQuerySerializer
)
from . import analytics


# Newsletters
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_list_create(request):
    """List or create the seller's newsletter campaigns"""
    if request.method == 'GET':
        campaigns = NewsletterCampaign.objects.filter(seller=request.user)
        status_filter = request.query_params.get('status')
        if status_filter:
            campaigns = campaigns.filter(status=status_filter)
        return Response(NewsletterCampaignSerializer(campaigns, many=True).data)

    serializer = NewsletterCampaignSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(seller=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_detail(request, pk):
    campaign = get_object_or_404(NewsletterCampaign, pk=pk, seller=request.user)

    if request.method == 'GET':
        return Response(NewsletterCampaignSerializer(campaign).data)
    elif request.method in ('PUT', 'PATCH'):
        if campaign.status == 'sent':
            return Response({'error': 'Sent campaigns cannot be edited'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = NewsletterCampaignSerializer(campaign, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if campaign.status == 'sent':
            return Response({'error': 'Sent campaigns cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        campaign.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_send(request, pk):
    """Mark a campaign as sent and start its analytics"""
    campaign = get_object_or_404(NewsletterCampaign, pk=pk, seller=request.user)
    if campaign.status == 'sent':
        return Response({'error': 'Campaign has already been sent'}, status=status.HTTP_400_BAD_REQUEST)
    if not campaign.recipients:
        return Response({'error': 'Campaign has no recipients'}, status=status.HTTP_400_BAD_REQUEST)

    campaign.status = 'sent'
    campaign.sent_at = timezone.now()
    campaign.save(update_fields=['status', 'sent_at', 'updated_at'])
    analytics.update_newsletter_analytics(campaign)
    create_audit_log(
        request=request,
        action='newsletter_send',
        model_name='NewsletterCampaign',
        object_id=campaign.id,
        object_name=campaign.subject,
        changes={'recipients': len(campaign.recipients)},
    )
    return Response(NewsletterCampaignSerializer(campaign).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_event(request, pk):
    """Record an open/click/bounce/unsubscribe reported for a campaign"""
    campaign = get_object_or_404(NewsletterCampaign, pk=pk, seller=request.user)
    serializer = NewsletterEventSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    created = analytics.record_newsletter_event(campaign, **serializer.validated_data)
    return Response({'recorded': created}, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_campaign_analytics(request, pk):
    campaign = get_object_or_404(NewsletterCampaign, pk=pk, seller=request.user)
    row = NewsletterAnalytics.objects.filter(campaign=campaign).first()
    if row is None:
        row = analytics.update_newsletter_analytics(campaign)
    return Response(NewsletterAnalyticsSerializer(row).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def newsletter_analytics(request):
    """Averages and totals across all of the seller's campaigns"""
    return Response(analytics.newsletter_analytics_for_seller(request.user))


# Ads
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def ad_campaign_list_create(request):
    if request.method == 'GET':
        campaigns = AdCampaign.objects.filter(seller=request.user)
        return Response(AdCampaignSerializer(campaigns, many=True).data)

    serializer = AdCampaignSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(seller=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSeller])
def ad_campaign_detail(request, pk):
    campaign = get_object_or_404(AdCampaign, pk=pk, seller=request.user)

    if request.method == 'GET':
        return Response(AdCampaignSerializer(campaign).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AdCampaignSerializer(campaign, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        campaign.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def ad_campaign_metrics(request, pk):
    """
    GET: daily metrics of a campaign
    POST: record (or replace) one day's metrics
    """
    campaign = analytics.get_seller_campaign(request.user, pk)

    if request.method == 'GET':
        return Response(AdDailyMetricSerializer(campaign.daily_metrics.all(), many=True).data)

    serializer = AdDailyMetricSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    values = dict(serializer.validated_data)
    date = values.pop('date')
    metric = analytics.record_daily_metrics(campaign, date, **values)
    return Response(AdDailyMetricSerializer(metric).data, status=status.HTTP_201_CREATED)


def _analytics_from_query(request):
    query = AdAnalyticsQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return analytics.ad_campaign_analytics(
        request.user,
        campaign_id=query.validated_data.get('campaign_id'),
        start_date=query.validated_data.get('start_date'),
        end_date=query.validated_data.get('end_date'),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def ad_analytics(request):
    """Totals, KPIs and daily series, optionally for one campaign and a date range"""
    return Response(_analytics_from_query(request))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def ad_analytics_export(request):
    report = _analytics_from_query(request)
    response = HttpResponse(analytics.export_daily_metrics_csv(report['daily']), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="ad-metrics-{timezone.localdate().isoformat()}.csv"'
    return response
