from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.shortcuts import get_object_or_404
from django.db.models import Q
import logging
from jewelstore.core.utils import create_audit_log, paginate_queryset, parse_id_list, parse_bool
from jewelstore.catalog.models import Metal, Product
from jewelstore.kyc.permissions import IsKycApproved
from .models import PriceRate, MakingChargeDiscount, TaxGroup, Tax
from .serializers import (
    PriceRateSerializer, MetalRatesSerializer, MakingChargeDiscountSerializer,
    TaxGroupSerializer, TaxSerializer
)
from .calculator import calculate_product_price
from .rates import metal_summaries, store_metal_rates, sync_rates

logger = logging.getLogger(__name__)


# Rate views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def rate_list(request):
    """Rate history plus the latest rates per metal and purity"""
    queryset = PriceRate.objects.all().order_by('-effective_at', '-id')
    metal = request.query_params.get('metal')
    if metal:
        queryset = queryset.filter(metal__iexact=metal)

    data = paginate_queryset(request, queryset, PriceRateSerializer)
    metals = Metal.objects.filter(is_active=True).prefetch_related('purities').order_by('display_order', 'name')
    data['default_currency'] = 'INR'
    data['available_metals'] = [
        {'id': m.id, 'name': m.name, 'value': m.name.lower()} for m in metals
    ]
    data['metal_purities'] = {
        m.name.lower(): [{'id': p.id, 'name': p.name} for p in m.purities.all() if p.is_active]
        for m in metals
    }
    data['metal_summaries'] = metal_summaries()
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def rate_store(request, metal):
    """Store a batch of rates for one metal"""
    serializer = MetalRatesSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    created = store_metal_rates(
        metal,
        data['rates'],
        currency=data.get('currency'),
        source=data.get('source'),
        effective_at=data.get('effective_at'),
    )
    create_audit_log(
        request=request,
        action='rate_update',
        model_name='PriceRate',
        object_id=','.join(str(rate.id) for rate in created),
        object_name=metal.lower(),
        changes={'rates': [{'purity': r.purity, 'price_per_gram': str(r.price_per_gram)} for r in created]},
    )
    return Response({
        'message': f"{metal.capitalize()} rates updated successfully",
        'rates': PriceRateSerializer(created, many=True).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def rate_sync(request, metal=None):
    """Pull rates from the external feed (all metals, or one)"""
    metal = metal or request.data.get('metal') or None
    return Response(sync_rates(metal))


# MakingChargeDiscount views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def discount_list_create(request):
    """List or create making-charge discounts"""
    if request.method == 'GET':
        queryset = MakingChargeDiscount.objects.select_related('brand', 'category', 'customer_group').order_by('-created_at')
        search = request.query_params.get('search')
        is_active = parse_bool(request.query_params.get('is_active'))
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return Response(paginate_queryset(request, queryset, MakingChargeDiscountSerializer))

    serializer = MakingChargeDiscountSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    discount = serializer.save()
    logger.info(f"Created making charge discount {discount.id} '{discount.name}'")
    return Response(MakingChargeDiscountSerializer(discount).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def discount_detail(request, pk):
    discount = get_object_or_404(MakingChargeDiscount, pk=pk)

    if request.method == 'GET':
        return Response(MakingChargeDiscountSerializer(discount).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MakingChargeDiscountSerializer(discount, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        discount.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def discount_bulk_delete(request):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    deleted, _ = MakingChargeDiscount.objects.filter(id__in=ids).delete()
    return Response({'success': True, 'deleted': deleted})


# Tax views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tax_group_list_create(request):
    """List all tax groups (with their taxes) or create one"""
    if request.method == 'GET':
        groups = TaxGroup.objects.prefetch_related('taxes').order_by('name')
        return Response(TaxGroupSerializer(groups, many=True).data)

    serializer = TaxGroupSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tax_group_detail(request, pk):
    group = get_object_or_404(TaxGroup, pk=pk)

    if request.method == 'GET':
        return Response(TaxGroupSerializer(group).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TaxGroupSerializer(group, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        group.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tax_list_create(request):
    if request.method == 'GET':
        taxes = Tax.objects.select_related('tax_group').all()
        tax_group_id = request.query_params.get('tax_group_id')
        if tax_group_id:
            taxes = taxes.filter(tax_group_id=tax_group_id)
        return Response(TaxSerializer(taxes, many=True).data)

    serializer = TaxSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def tax_detail(request, pk):
    tax = get_object_or_404(Tax, pk=pk)

    if request.method == 'GET':
        return Response(TaxSerializer(tax).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TaxSerializer(tax, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        tax.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Price quote
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsKycApproved])
def product_price(request, pk):
    """Unit price of a product variant for the current user"""
    product = get_object_or_404(Product, pk=pk, is_active=True)
    variant_id = request.query_params.get('variant_id')
    variant = get_object_or_404(product.variants, pk=variant_id) if variant_id else product.default_variant
    price = calculate_product_price(product, request.user, variant, request.query_params.get('quantity', 1))
    return Response({
        'product_id': product.id,
        'variant_id': variant.id if variant else None,
        'price': price,
    })
