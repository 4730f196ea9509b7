from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from storefront.core.permissions import IsSeller, IsBuyer
from storefront.core.utils import create_audit_log
from .models import WholesaleProduct
from .serializers import (
    WholesaleProductSerializer, WholesaleInvitationSerializer, CreateInvitationSerializer,
    WholesaleAccessGrantSerializer, WholesaleOrderSerializer, WholesaleOrderItemSerializer,
    WholesaleOrderEventSerializer, PlaceWholesaleOrderSerializer, RecordPaymentSerializer
)
from . import services


# Wholesale catalog
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def wholesale_product_list_create(request):
    """List or create the seller's wholesale catalog entries"""
    if request.method == 'GET':
        products = WholesaleProduct.objects.filter(seller=request.user).select_related('product')
        return Response(WholesaleProductSerializer(products, many=True).data)

    serializer = WholesaleProductSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        serializer.save(seller=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSeller])
def wholesale_product_detail(request, pk):
    """Retrieve, update or delete a wholesale catalog entry"""
    product = get_object_or_404(WholesaleProduct, pk=pk, seller=request.user)

    if request.method == 'GET':
        return Response(WholesaleProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WholesaleProductSerializer(
            product, data=request.data, partial=request.method == 'PATCH', context={'request': request}
        )
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wholesale_catalog(request, seller_id):
    """Wholesale catalog of a seller, for buyers with active access"""
    grants = services.get_access_grants(request.user, request.user.user_type)
    if request.user.id != seller_id and not grants.filter(seller_id=seller_id, status='active').exists():
        return Response({'error': 'No wholesale access to this seller'}, status=status.HTTP_403_FORBIDDEN)
    products = WholesaleProduct.objects.filter(seller_id=seller_id, is_active=True)
    return Response(WholesaleProductSerializer(products, many=True).data)


# Invitations
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def invitation_list_create(request):
    """List the seller's invitations or invite a buyer"""
    if request.method == 'GET':
        return Response(WholesaleInvitationSerializer(services.list_invitations(request.user), many=True).data)

    serializer = CreateInvitationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    invitation = services.create_invitation(
        seller=request.user,
        buyer_email=data['buyer_email'],
        buyer_name=data.get('buyer_name', ''),
        wholesale_terms=data.get('wholesale_terms'),
        message=data.get('message', ''),
    )
    create_audit_log(
        request=request,
        action='invitation_create',
        model_name='WholesaleInvitation',
        object_id=invitation.id,
        object_name=invitation.buyer_email,
        changes={'buyer_email': invitation.buyer_email, 'wholesale_terms': invitation.wholesale_terms},
    )
    return Response(WholesaleInvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def invitation_by_token(request, token):
    """Public view of a pending invitation"""
    invitation = services.get_invitation_by_token(token)
    return Response(WholesaleInvitationSerializer(invitation).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBuyer])
def invitation_accept(request, token):
    """Accept an invitation as the logged-in buyer"""
    invitation, grant = services.accept_invitation(token, request.user)
    create_audit_log(
        request=request,
        action='invitation_accept',
        model_name='WholesaleInvitation',
        object_id=invitation.id,
        object_name=invitation.buyer_email,
        changes={'grant_id': grant.id, 'seller_id': invitation.seller_id},
    )
    return Response({
        'invitation': WholesaleInvitationSerializer(invitation).data,
        'grant': WholesaleAccessGrantSerializer(grant).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def invitation_reject(request, token):
    """Decline an invitation"""
    invitation = services.reject_invitation(token)
    create_audit_log(
        request=request,
        action='invitation_reject',
        model_name='WholesaleInvitation',
        object_id=invitation.id,
        object_name=invitation.buyer_email,
        user=invitation.seller,
    )
    return Response(WholesaleInvitationSerializer(invitation).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def access_grant_list(request):
    """Wholesale access grants of the user, as buyer or as seller"""
    grants = services.get_access_grants(request.user, request.user.user_type)
    return Response(WholesaleAccessGrantSerializer(grants, many=True).data)


# Orders
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def wholesale_order_list_create(request):
    """List wholesale orders (?status=) or place one as a buyer"""
    if request.method == 'GET':
        role = 'seller' if request.user.is_seller else 'buyer'
        orders = services.list_wholesale_orders(request.user, role, request.query_params.get('status'))
        return Response(WholesaleOrderSerializer(orders.prefetch_related('items'), many=True).data)

    if not IsBuyer().has_permission(request, None):
        return Response({'error': 'Only buyers can place wholesale orders'}, status=status.HTTP_403_FORBIDDEN)

    serializer = PlaceWholesaleOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = services.place_wholesale_order(
        buyer=request.user,
        seller_id=data['seller_id'],
        items=data['items'],
        payment_terms=data.get('payment_terms') or None,
        po_number=data.get('po_number', ''),
        shipping_address=data.get('shipping_address'),
        billing_address=data.get('billing_address'),
    )
    create_audit_log(
        request=request,
        action='wholesale_order_create',
        model_name='WholesaleOrder',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'total_cents': order.total_cents, 'payment_terms': order.payment_terms},
    )
    return Response(WholesaleOrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wholesale_order_detail(request, pk):
    order = services.get_wholesale_order(pk, request.user)
    return Response(WholesaleOrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wholesale_order_items(request, pk):
    order = services.get_wholesale_order(pk, request.user)
    return Response(WholesaleOrderItemSerializer(order.items.all(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wholesale_order_events(request, pk):
    order = services.get_wholesale_order(pk, request.user)
    return Response(WholesaleOrderEventSerializer(order.events.all(), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSeller])
def wholesale_order_payment(request, pk):
    """Record a deposit or balance payment on a wholesale order"""
    order = services.get_wholesale_order(pk, request.user)
    if order.seller_id != request.user.id:
        return Response({'error': 'Unauthorized'}, status=status.HTTP_403_FORBIDDEN)

    serializer = RecordPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    payment_type = serializer.validated_data['payment_type']
    order = services.record_wholesale_payment(order, payment_type, performed_by=request.user)
    create_audit_log(
        request=request,
        action='wholesale_payment',
        model_name='WholesaleOrder',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'payment_type': payment_type, 'status': order.status},
    )
    return Response(WholesaleOrderSerializer(order).data)
