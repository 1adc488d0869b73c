from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.db import transaction
from django.db.models import Q, Count, ProtectedError, Prefetch
from django.shortcuts import get_object_or_404
import logging
from jewelstore.core.cache_utils import cached_payload, PRODUCT_OPTIONS, PRODUCT_OPTIONS_CACHE_TTL
from jewelstore.core.exceptions import ConflictError
from jewelstore.core.utils import create_audit_log, paginate_queryset, parse_id_list, make_code
from jewelstore.kyc.permissions import IsKycApproved
from jewelstore.pricing.calculator import calculate_product_price
from .models import (
    Brand, Category, Style, Size, Metal, MetalPurity, MetalTone, Diamond,
    Product, ProductVariant, Catalog
)
from .serializers import (
    BrandSerializer, CategorySerializer, StyleSerializer, SizeSerializer, MetalSerializer,
    MetalPuritySerializer, MetalToneSerializer, DiamondSerializer,
    ProductListSerializer, ProductDetailSerializer, ProductWriteSerializer,
    CatalogSerializer, CatalogProductSerializer
)
from .filters import ProductFilter
from .dimensions import compute_dimensions
from .products import parse_product_payload, create_product, update_product

logger = logging.getLogger(__name__)

PRODUCT_PARSERS = [MultiPartParser, FormParser, JSONParser]


def product_queryset():
    return Product.objects.select_related('brand', 'category').prefetch_related(
        'subcategories', 'styles', 'catalogs', 'media',
        Prefetch('variants', queryset=ProductVariant.objects.select_related('size').prefetch_related(
            'metals__metal', 'metals__metal_purity', 'metals__metal_tone', 'diamonds__diamond'
        )),
    )


# Master data helpers
def ensure_unique_master(model, label, name=None, code=None, exclude_pk=None, scope=None):
    queryset = model.objects.filter(**(scope or {}))
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if name and queryset.filter(name__iexact=name).exists():
        raise ConflictError(f"{label} with this name already exists")
    if code and queryset.filter(code=code).exists():
        raise ConflictError(f"{label} with this code already exists")


def master_scope(model, data, instance=None):
    """Purities and tones are unique per metal"""
    if model in (MetalPurity, MetalTone):
        metal = data.get('metal') or (instance.metal if instance else None)
        return {'metal': metal}
    return None


def master_list_create(request, model, serializer_class, label):
    if request.method == 'GET':
        queryset = model.objects.all().order_by('display_order', 'name')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active in ('true', 'false'):
            queryset = queryset.filter(is_active=is_active == 'true')
        metal_id = request.query_params.get('metal_id')
        if metal_id and model in (MetalPurity, MetalTone):
            queryset = queryset.filter(metal_id=metal_id)
        return Response(paginate_queryset(request, queryset, serializer_class, default_page_size=20))

    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    name = serializer.validated_data.get('name')
    code = serializer.validated_data.get('code') or make_code(name)
    ensure_unique_master(model, label, name=name, code=code, scope=master_scope(model, serializer.validated_data))
    instance = serializer.save(code=code)
    logger.info(f"Created {model.__name__} {instance.id} '{instance.name}'")
    return Response(serializer_class(instance).data, status=status.HTTP_201_CREATED)


def master_detail(request, pk, model, serializer_class, label):
    instance = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        name = serializer.validated_data.get('name')
        code = serializer.validated_data.get('code')
        ensure_unique_master(
            model, label,
            name=name if name and name != instance.name else None,
            code=code if code and code != instance.code else None,
            exclude_pk=instance.pk,
            scope=master_scope(model, serializer.validated_data, instance),
        )
        serializer.save()
        return Response(serializer.data)
    else:  # DELETE
        try:
            instance.delete()
        except ProtectedError:
            return Response(
                {'detail': f"{label} is used by products and cannot be deleted"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


def master_bulk_delete(request, model, label):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        with transaction.atomic():
            deleted, _ = model.objects.filter(id__in=ids).delete()
    except ProtectedError:
        return Response(
            {'detail': f"Some {label.lower()} records are used by products and cannot be deleted"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response({'success': True, 'deleted': deleted})


MASTER_MODELS = {
    'brands': (Brand, BrandSerializer, 'Brand'),
    'categories': (Category, CategorySerializer, 'Category'),
    'styles': (Style, StyleSerializer, 'Style'),
    'sizes': (Size, SizeSerializer, 'Size'),
    'metals': (Metal, MetalSerializer, 'Metal'),
    'metal-purities': (MetalPurity, MetalPuritySerializer, 'Metal purity'),
    'metal-tones': (MetalTone, MetalToneSerializer, 'Metal tone'),
    'diamonds': (Diamond, DiamondSerializer, 'Diamond'),
}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def master_data_list_create(request, resource):
    """List or create brands, categories, styles, sizes, metals, purities, tones and diamonds"""
    model, serializer_class, label = MASTER_MODELS[resource]
    return master_list_create(request, model, serializer_class, label)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def master_data_detail(request, resource, pk):
    model, serializer_class, label = MASTER_MODELS[resource]
    return master_detail(request, pk, model, serializer_class, label)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def master_data_bulk_delete(request, resource):
    model, _, label = MASTER_MODELS[resource]
    return master_bulk_delete(request, model, label)


# Product options
@cached_payload(PRODUCT_OPTIONS, ttl=PRODUCT_OPTIONS_CACHE_TTL)
def build_product_options():
    def active(model):
        return model.objects.filter(is_active=True).order_by('display_order', 'name')

    return {
        'brands': [{'id': b.id, 'name': b.name} for b in active(Brand)],
        'categories': [{'id': c.id, 'name': c.name, 'parent_id': c.parent_id} for c in active(Category)],
        'styles': [{'id': s.id, 'name': s.name} for s in active(Style)],
        'sizes': [{'id': s.id, 'name': s.name, 'value': s.value} for s in active(Size)],
        'metals': [{'id': m.id, 'name': m.name} for m in active(Metal)],
        'metal_purities': [{'id': p.id, 'name': p.name, 'metal_id': p.metal_id} for p in active(MetalPurity)],
        'metal_tones': [{'id': t.id, 'name': t.name, 'metal_id': t.metal_id} for t in active(MetalTone)],
        'diamonds': [
            {'id': d.id, 'name': d.name, 'shape': d.shape, 'clarity': d.clarity, 'color': d.color, 'price': float(d.price)}
            for d in active(Diamond)
        ],
        'catalogs': [{'id': c.id, 'name': c.name, 'code': c.code} for c in Catalog.objects.filter(is_active=True)],
        'genders': [{'value': value, 'label': label} for value, label in Product.GENDER_CHOICES],
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def product_options(request):
    """Select options for the product form (cached)"""
    return Response(build_product_options())


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
@parser_classes(PRODUCT_PARSERS)
def product_list_create(request):
    """List products (django-filter) or create one with its variants and media"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('brand', 'category').prefetch_related('variants', 'media')
        queryset = ProductFilter(request.query_params, queryset=queryset).qs.order_by('-created_at')
        return Response(paginate_queryset(request, queryset, ProductListSerializer))

    serializer = ProductWriteSerializer(data=parse_product_payload(request.data))
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = create_product(serializer.validated_data, request.FILES.getlist('media_files'))
    create_audit_log(
        request=request,
        action='create',
        model_name='Product',
        object_id=str(product.id),
        object_name=product.name,
        object_reference=product.sku,
        changes={'variants': product.variants.count()},
    )
    product = product_queryset().get(pk=product.pk)
    return Response(ProductDetailSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
@parser_classes(PRODUCT_PARSERS)
def product_detail(request, pk):
    """Retrieve, update (partial) or delete a product"""
    product = get_object_or_404(product_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ProductDetailSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductWriteSerializer(data=parse_product_payload(request.data), partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        product, changes = update_product(product, serializer.validated_data, request.FILES.getlist('media_files'))
        if changes or 'variants' in serializer.validated_data:
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=str(product.id),
                object_name=product.name,
                object_reference=product.sku,
                changes=changes,
            )
        product = product_queryset().get(pk=product.pk)
        return Response(ProductDetailSerializer(product).data)
    else:  # DELETE
        product_id = str(product.id)
        product_name = product.name
        product_sku = product.sku
        product.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_name=product_name,
            object_reference=product_sku,
            changes={'name': product_name, 'sku': product_sku},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def product_bulk_delete(request):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        deleted, _ = Product.objects.filter(id__in=ids).delete()
    create_audit_log(
        request=request,
        action='bulk_delete',
        model_name='Product',
        object_id=','.join(str(i) for i in ids),
        changes={'ids': ids},
    )
    return Response({'success': True, 'deleted': deleted, 'message': 'Products deleted successfully'})


# Catalog views
def ensure_unique_catalog(code=None, name=None, exclude_pk=None):
    queryset = Catalog.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if code and queryset.filter(code=code).exists():
        raise ConflictError('Catalog with this code already exists')
    if name and queryset.filter(name=name).exists():
        raise ConflictError('Catalog with this name already exists')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def catalog_list_create(request):
    """List catalogs with product counts or create a catalog"""
    if request.method == 'GET':
        queryset = Catalog.objects.annotate(products_total=Count('products')).order_by('display_order', 'name')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))
        return Response(paginate_queryset(request, queryset, CatalogSerializer))

    serializer = CatalogSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    ensure_unique_catalog(code=serializer.validated_data.get('code'), name=serializer.validated_data.get('name'))
    catalog = serializer.save()
    return Response(CatalogSerializer(catalog).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def catalog_detail(request, pk):
    catalog = get_object_or_404(Catalog, pk=pk)

    if request.method == 'GET':
        return Response(CatalogSerializer(catalog).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CatalogSerializer(catalog, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        code = serializer.validated_data.get('code')
        name = serializer.validated_data.get('name')
        ensure_unique_catalog(
            code=code if code and code != catalog.code else None,
            name=name if name and name != catalog.name else None,
            exclude_pk=catalog.pk,
        )
        serializer.save()
        return Response(serializer.data)
    else:  # DELETE
        catalog.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def catalog_bulk_delete(request):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    deleted, _ = Catalog.objects.filter(id__in=ids).delete()
    return Response({'success': True, 'deleted': deleted})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def catalog_products(request, pk):
    """
    GET: every product with a ``selected`` flag for this catalog (``search`` filters).
    POST: ``product_ids`` becomes the exact product set of the catalog.
    """
    catalog = get_object_or_404(Catalog, pk=pk)

    if request.method == 'GET':
        queryset = Product.objects.all().order_by('name')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(sku__icontains=search))
        selected_ids = set(catalog.products.values_list('id', flat=True))
        serializer = CatalogProductSerializer(queryset, many=True, context={'selected_ids': selected_ids})
        return Response({
            'catalog': CatalogSerializer(catalog).data,
            'products': serializer.data,
            'selected_ids': sorted(selected_ids),
        })

    product_ids = parse_id_list(request.data.get('product_ids'))
    with transaction.atomic():
        catalog.products.set(Product.objects.filter(id__in=product_ids))
    logger.info(f"Catalog {catalog.id} now has {catalog.products.count()} products")
    return Response({'success': True, 'message': 'Catalog products updated successfully', 'products_count': catalog.products.count()})


# Customer browsing
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_product_list(request):
    """Active products with the default variant's price for the current user"""
    queryset = Product.objects.filter(is_active=True).select_related('brand', 'category').prefetch_related('variants', 'media')
    queryset = ProductFilter(request.query_params, queryset=queryset).qs.order_by('-created_at')
    data = paginate_queryset(request, queryset, ProductListSerializer, default_page_size=12)

    products = {p.id: p for p in Product.objects.filter(id__in=[row['id'] for row in data['results']])}
    for row in data['results']:
        product = products[row['id']]
        row['price'] = calculate_product_price(product, request.user, product.default_variant)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_product_detail(request, pk):
    """Product with variants, selector dimensions and per-variant prices"""
    product = get_object_or_404(product_queryset(), pk=pk, is_active=True)
    data = ProductDetailSerializer(product).data
    dimensions = compute_dimensions(product, request.user)
    data['configurations'] = dimensions['variants']
    data['variant_dimensions'] = dimensions['variant_dimensions']
    return Response(data)
