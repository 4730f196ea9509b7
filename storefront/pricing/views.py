from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from .serializers import (
    CurrencyPairSerializer, ConvertPriceSerializer, QuotationPreviewSerializer,
    WholesaleCartPreviewSerializer, WholesaleCartLineSerializer
)
from . import services


@api_view(['GET'])
@permission_classes([AllowAny])
def exchange_rate(request):
    """Exchange rate between two currencies (?from=USD&to=EUR)"""
    serializer = CurrencyPairSerializer(data={
        'from_currency': request.query_params.get('from', ''),
        'to_currency': request.query_params.get('to', ''),
    })
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    details = services.get_exchange_rate_details(
        serializer.validated_data['from_currency'],
        serializer.validated_data['to_currency'],
    )
    return Response(details)


@api_view(['POST'])
@permission_classes([AllowAny])
def convert(request):
    """Convert an amount between currencies"""
    serializer = ConvertPriceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    converted = services.convert_price(data['amount'], data['from_currency'], data['to_currency'])
    return Response({
        'amount': data['amount'],
        'from': data['from_currency'].upper(),
        'to': data['to_currency'].upper(),
        'converted_amount': converted,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quotation_preview(request):
    """Quotation totals without saving anything"""
    serializer = QuotationPreviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    totals = services.calculate_quotation_totals(
        data['line_items'],
        deposit_percentage=data.get('deposit_percentage'),
        tax_rate=data['tax_rate'],
        shipping_amount=data['shipping_amount'],
    )
    return Response(totals)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wholesale_cart_preview(request):
    """Wholesale cart totals in cents with MOQ compliance per line"""
    serializer = WholesaleCartPreviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    return Response(services.calculate_wholesale_cart_totals(data['items'], data.get('deposit_percentage')))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def validate_moq(request):
    """MOQ violations for a list of {quantity, moq} items"""
    serializer = WholesaleCartLineSerializer(data=request.data.get('items', []), many=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.validate_wholesale_moq(serializer.validated_data))
