from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from storefront.core.permissions import IsSeller
from storefront.core.utils import create_audit_log
from .serializers import (
    TradeQuotationSerializer, PublicTradeQuotationSerializer, TradeQuotationItemSerializer,
    TradeQuotationEventSerializer, TradePaymentScheduleSerializer, CreateQuotationSerializer,
    UpdateQuotationSerializer, BuyerInfoSerializer, RejectQuotationSerializer
)
from . import services


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_list_create(request):
    """List the seller's quotations or draft a new one"""
    if request.method == 'GET':
        return Response(services.list_quotations(request.user))

    serializer = CreateQuotationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    quotation = services.create_quotation(request.user, serializer.validated_data)
    create_audit_log(
        request=request,
        action='quotation_create',
        model_name='TradeQuotation',
        object_id=quotation.id,
        object_name=quotation.buyer_email,
        object_reference=quotation.quotation_number,
        changes={'total': str(quotation.total), 'items': quotation.items.count()},
    )
    return Response(TradeQuotationSerializer(quotation).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_detail(request, pk):
    """Retrieve or update a quotation"""
    if request.method == 'GET':
        return Response(TradeQuotationSerializer(services.get_quotation(pk, request.user)).data)

    serializer = UpdateQuotationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    quotation = services.update_quotation(pk, request.user, serializer.validated_data)
    create_audit_log(
        request=request,
        action='quotation_update',
        model_name='TradeQuotation',
        object_id=quotation.id,
        object_reference=quotation.quotation_number,
        changes={key: str(value) for key, value in serializer.validated_data.items() if key != 'items'},
    )
    return Response(TradeQuotationSerializer(quotation).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_send(request, pk):
    quotation = services.send_quotation(pk, request.user)
    create_audit_log(
        request=request,
        action='quotation_send',
        model_name='TradeQuotation',
        object_id=quotation.id,
        object_reference=quotation.quotation_number,
        changes={'status': 'sent', 'buyer_email': quotation.buyer_email},
    )
    return Response(TradeQuotationSerializer(quotation).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_items(request, pk):
    quotation = services.get_quotation(pk, request.user)
    return Response(TradeQuotationItemSerializer(services.get_line_items(quotation), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_activities(request, pk):
    quotation = services.get_quotation(pk, request.user)
    return Response(TradeQuotationEventSerializer(services.get_activities(quotation), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def quotation_payments(request, pk):
    quotation = services.get_quotation(pk, request.user)
    return Response(TradePaymentScheduleSerializer(services.get_payments(quotation), many=True).data)


# Share link
@api_view(['GET'])
@permission_classes([AllowAny])
def public_quotation(request, token):
    """Quotation as shown to the buyer through its share link"""
    quotation = services.get_quotation_by_token(token)
    return Response(PublicTradeQuotationSerializer(quotation).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def public_quotation_accept(request, token):
    """
    Accept a quotation through its share link.

    A logged-in buyer is linked to the quotation; anonymous buyers only
    leave their contact details.
    """
    serializer = BuyerInfoSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    buyer = request.user if request.user.is_authenticated and request.user.is_buyer else None
    quotation = services.get_quotation_by_token(token, mark_viewed=False)
    quotation = services.accept_quotation(quotation, serializer.validated_data, buyer=buyer)
    create_audit_log(
        request=request,
        action='quotation_accept',
        model_name='TradeQuotation',
        object_id=quotation.id,
        object_name=serializer.validated_data['email'],
        object_reference=quotation.quotation_number,
        changes={'buyer_info': serializer.validated_data},
    )
    return Response({
        'quotation': PublicTradeQuotationSerializer(quotation).data,
        'payments': TradePaymentScheduleSerializer(services.get_payments(quotation), many=True).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def public_quotation_reject(request, token):
    serializer = RejectQuotationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    quotation = services.get_quotation_by_token(token, mark_viewed=False)
    quotation = services.reject_quotation(quotation, serializer.validated_data['reason'])
    create_audit_log(
        request=request,
        action='quotation_reject',
        model_name='TradeQuotation',
        object_id=quotation.id,
        object_reference=quotation.quotation_number,
        changes={'reason': serializer.validated_data['reason']},
    )
    return Response(PublicTradeQuotationSerializer(quotation).data)
