from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.exceptions import NotFound
from storefront.core.utils import create_audit_log
from storefront.pricing.services import calculate_cart_totals
from .serializers import CartSerializer, AddToCartSerializer, UpdateCartItemSerializer, ValidateCartItemSerializer
from . import services, validation

CART_SESSION_HEADER = 'HTTP_X_CART_SESSION'


def _session_id(request):
    return request.META.get(CART_SESSION_HEADER) or None


def _current_cart(request):
    cart = services.get_cart_for_session(_session_id(request)) or services.get_cart_for_buyer(request.user)
    return services.claim_cart(cart, request.user)


def _require_cart(request):
    cart = _current_cart(request)
    if cart is None:
        raise NotFound('Cart not found')
    return cart


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_detail(request):
    """Current cart of the session or buyer"""
    cart = _current_cart(request)
    if cart is None:
        return Response({'id': None, 'items': [], 'subtotal': '0.00', 'item_count': 0, 'status': 'active'})
    return Response(CartSerializer(cart).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_add_item(request):
    """Add a product (optionally a variant) to the cart"""
    serializer = AddToCartSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    buyer = request.user if request.user.is_authenticated else None
    cart = services.add_to_cart(
        product_id=data['product_id'],
        quantity=data['quantity'],
        variant_key=data.get('variant_key'),
        session_id=_session_id(request),
        buyer=buyer,
        seller_id=data.get('seller_id'),
    )
    if buyer:
        create_audit_log(request=request, action='cart_add', model_name='Cart', object_id=cart.id,
                         changes={'product_id': data['product_id'], 'quantity': data['quantity'],
                                  'variant_key': data.get('variant_key')})
    return Response(CartSerializer(cart).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([AllowAny])
def cart_item_detail(request, item_id):
    """Change the quantity of a cart item or remove it"""
    cart = _require_cart(request)

    if request.method == 'DELETE':
        cart = services.remove_from_cart(cart, item_id)
        return Response(CartSerializer(cart).data)

    serializer = UpdateCartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart = services.update_cart_item(cart, item_id, serializer.validated_data['quantity'])
    return Response(CartSerializer(cart).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_clear(request):
    """Remove every item from the cart"""
    cart = services.clear_cart(_require_cart(request))
    return Response(CartSerializer(cart).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_totals(request):
    """Subtotal, tax and total of the cart"""
    return Response(calculate_cart_totals(_require_cart(request)))


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_validate(request):
    """Validate stock and MOQ of every cart item"""
    return Response(validation.validate_cart(_require_cart(request)))


@api_view(['GET'])
@permission_classes([AllowAny])
def cart_validate_wholesale(request):
    """Cart validation plus wholesale minimum order value and deposit"""
    return Response(validation.validate_wholesale_cart(_require_cart(request)))


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_validate_item(request):
    """Validate a product/quantity before adding it to the cart"""
    serializer = ValidateCartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    return Response(validation.validate_cart_item(data['product_id'], data.get('variant_key') or None, data['quantity']))
