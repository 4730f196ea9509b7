from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from django.contrib.auth import get_user_model
from django.core.paginator import Paginator
from storefront.core.permissions import IsSeller
from storefront.core.cache_utils import cached_query, storefront_products_prefix, STOREFRONT_PRODUCTS_CACHE_TTL
from .models import Product, ProductVariant
from .filters import ProductFilter
from .presentation import get_product_presentation
from .serializers import ProductSerializer, ProductVariantSerializer, StorefrontProductSerializer
from .utils import generate_unique_sku

User = get_user_model()


def _seller_product(request, pk):
    return get_object_or_404(Product, pk=pk, seller=request.user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def product_list_create(request):
    """List the seller's products or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.filter(seller=request.user).prefetch_related('variants')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = ProductSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        sku = serializer.validated_data.get('sku') or generate_unique_sku(serializer.validated_data.get('name'))
        product = serializer.save(seller=request.user, sku=sku)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSeller])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = _seller_product(request, pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSeller])
def product_variants(request, pk):
    """List or add variants of a product"""
    product = _seller_product(request, pk)

    if request.method == 'GET':
        return Response(ProductVariantSerializer(product.variants.all(), many=True).data)

    serializer = ProductVariantSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(product=product)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsSeller])
def product_variant_detail(request, pk, variant_id):
    """Update or delete a single variant"""
    product = _seller_product(request, pk)
    variant = get_object_or_404(ProductVariant, pk=variant_id, product=product)

    if request.method == 'DELETE':
        variant.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
    serializer = ProductVariantSerializer(variant, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSeller])
def product_presentation(request, pk):
    """Presentation state for the dashboard product card"""
    product = _seller_product(request, pk)
    return Response(get_product_presentation(product))


# Public storefront
@cached_query(cache_ttl=STOREFRONT_PRODUCTS_CACHE_TTL, key_prefix=lambda seller, params: storefront_products_prefix(seller.id))
def _storefront_listing(seller, params):
    queryset = Product.objects.filter(seller=seller, status='active').prefetch_related('variants')
    filterset = ProductFilter(dict(params), queryset=queryset)
    products = filterset.qs if filterset.is_valid() else queryset

    page = int(params.get('page', 1))
    limit = int(params.get('limit', 24))
    page_obj = Paginator(products, limit).get_page(page)
    return {
        'seller': {
            'id': seller.id,
            'store_slug': seller.store_slug,
            'company_name': seller.company_name,
        },
        'results': StorefrontProductSerializer(page_obj, many=True).data,
        'count': page_obj.paginator.count,
        'page': page_obj.number,
        'total_pages': page_obj.paginator.num_pages,
    }


@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_products(request, store_slug):
    """Active products of a seller's storefront"""
    seller = get_object_or_404(User, store_slug=store_slug, user_type='seller', is_active=True)
    params = {key: request.query_params.get(key) for key in request.query_params}
    return Response(_storefront_listing(seller, params))


@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_product_detail(request, store_slug, pk):
    """Single active storefront product"""
    seller = get_object_or_404(User, store_slug=store_slug, user_type='seller', is_active=True)
    product = get_object_or_404(Product, pk=pk, seller=seller, status='active')
    return Response(StorefrontProductSerializer(product).data)
