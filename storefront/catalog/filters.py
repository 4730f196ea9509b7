import django_filters
from django.db.models import F, Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filters shared by the seller product list and public storefront listing"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    product_type = django_filters.CharFilter(field_name='product_type', lookup_expr='exact')
    is_wholesale = django_filters.BooleanFilter(field_name='is_wholesale')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')
    on_sale = django_filters.BooleanFilter(method='filter_on_sale', label='On Sale')

    class Meta:
        model = Product
        fields = ['search', 'status', 'product_type', 'is_wholesale', 'min_price', 'max_price',
                  'in_stock', 'on_sale']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(sku__icontains=value) | Q(description__icontains=value)
        )

    def filter_in_stock(self, queryset, name, value):
        available = Q(stock_quantity__gt=0) | Q(product_type__in=['made-to-order', 'pre-order'])
        if value:
            return queryset.filter(available)
        return queryset.exclude(available)

    def filter_on_sale(self, queryset, name, value):
        on_sale = Q(compare_at_price__isnull=False, price__lt=F('compare_at_price'))
        if value:
            return queryset.filter(on_sale)
        return queryset.exclude(on_sale)
