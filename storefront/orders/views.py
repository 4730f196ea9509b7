from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from storefront.core.permissions import IsSeller, IsBuyer
from storefront.core.utils import create_audit_log
from .serializers import (
    OrderSerializer, OrderEventSerializer, RefundSerializer, CreateOrderSerializer,
    OrderStatusSerializer, FulfillmentSerializer, IssueRefundSerializer
)
from .presentation import get_order_presentation
from . import services


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List the user's orders (?role=seller for sales) or check out a cart"""
    if request.method == 'GET':
        role = 'seller' if request.query_params.get('role') == 'seller' and request.user.is_seller else 'buyer'
        return Response(services.list_orders(request.user, role))

    if not IsBuyer().has_permission(request, None):
        return Response({'error': 'Only buyers can place orders'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CreateOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = services.create_order(
        buyer=request.user,
        cart_id=data['cart_id'],
        shipping_address=data['shipping_address'],
        billing_address=data.get('billing_address'),
        buyer_notes=data.get('buyer_notes', ''),
    )
    create_audit_log(
        request=request,
        action='order_create',
        model_name='Order',
        object_id=order.id,
        object_name=order.order_number,
        object_reference=order.order_number,
        changes={'cart_id': data['cart_id'], 'total': str(order.total)},
    )
    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Order detail for its buyer or seller"""
    order = services.get_order(pk, request.user)
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_presentation(request, pk):
    """Status labels, colors and allowed actions for an order"""
    order = services.get_order(pk, request.user)
    return Response(get_order_presentation(order))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_events(request, pk):
    """Order timeline, newest first"""
    order = services.get_order(pk, request.user)
    return Response(OrderEventSerializer(order.events.select_related('performed_by'), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def order_update_status(request, pk):
    """Move an order to one of its allowed next statuses"""
    order = services.get_seller_order(pk, request.user)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    previous = order.status
    order = services.update_order_status(order, serializer.validated_data['status'], request.user)
    create_audit_log(
        request=request,
        action='order_status',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': {'old': previous, 'new': order.status}},
    )
    return Response(OrderSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def order_update_fulfillment(request, pk):
    """Update fulfillment status and tracking details"""
    order = services.get_seller_order(pk, request.user)
    serializer = FulfillmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = services.update_order_fulfillment(
        order,
        data['status'],
        request.user,
        tracking_number=data.get('tracking_number'),
        carrier=data.get('carrier'),
    )
    create_audit_log(
        request=request,
        action='order_fulfillment',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes=dict(data),
    )
    return Response(OrderSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def order_refund(request, pk):
    """Issue a full or partial refund"""
    order = services.get_seller_order(pk, request.user)
    serializer = IssueRefundSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    line_items = [
        {**line, 'amount': str(line['amount'])}
        for line in data.get('line_items', [])
    ]
    refund = services.issue_refund(
        order,
        data['refund_type'],
        request.user,
        line_items=line_items,
        reason=data.get('reason', ''),
    )
    create_audit_log(
        request=request,
        action='order_refund',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'refund_type': refund.refund_type, 'amount': str(refund.amount)},
    )
    return Response(RefundSerializer(refund).data, status=status.HTTP_201_CREATED)
