import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Product list filters shared by the admin and customer listings"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    brand = django_filters.NumberFilter(field_name='brand_id', lookup_expr='exact')
    category = django_filters.NumberFilter(method='filter_category', label='Category')
    catalog = django_filters.NumberFilter(field_name='catalogs__id', lookup_expr='exact', distinct=True)
    is_active = django_filters.BooleanFilter(field_name='is_active')
    gender = django_filters.CharFilter(field_name='gender', lookup_expr='iexact')

    class Meta:
        model = Product
        fields = ['search', 'brand', 'category', 'catalog', 'is_active', 'gender']

    def filter_search(self, queryset, name, value):
        """Match name or SKU (product or any of its variants)"""
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) | Q(sku__icontains=search) | Q(variants__sku__icontains=search)
        ).distinct()

    def filter_category(self, queryset, name, value):
        """A category matches its products and products tagged with it as a subcategory"""
        if not value:
            return queryset
        return queryset.filter(Q(category_id=value) | Q(subcategories__id=value)).distinct()
