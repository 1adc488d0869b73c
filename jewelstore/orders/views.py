from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.shortcuts import get_object_or_404
from django.db import transaction
from django.db.models import Q, Prefetch
import logging
from jewelstore.core.utils import create_audit_log, paginate_queryset, parse_id_list, format_status_label, to_int
from jewelstore.catalog.models import ProductMedia
from .models import Order, OrderItem, OrderStatus
from .serializers import (
    OrderListSerializer, OrderDetailSerializer, OrderStatusSerializer, OrderStatusUpdateSerializer
)
from .statistics import order_statistics
from .utils import record_status_change, status_options

logger = logging.getLogger(__name__)


def order_list_queryset():
    return Order.objects.select_related('user').prefetch_related('items').order_by('-created_at')


def order_detail_queryset():
    media = Prefetch('product__media', queryset=ProductMedia.objects.order_by('display_order', 'id'))
    return Order.objects.select_related('user').prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.select_related('product', 'order').prefetch_related(media)),
        'status_history',
        'payments',
        'quotations__product__media',
    )


def filter_orders(request, queryset):
    status_filter = request.query_params.get('status')
    search = request.query_params.get('search')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    if search:
        queryset = queryset.filter(
            Q(reference__icontains=search) |
            Q(user__name__icontains=search) |
            Q(user__email__icontains=search)
        )
    return queryset


# Admin order views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_list(request):
    """Paginated orders with status and search filters"""
    data = paginate_queryset(request, filter_orders(request, order_list_queryset()), OrderListSerializer)
    data['statuses'] = status_options()
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_detail(request, pk):
    order = get_object_or_404(order_detail_queryset(), pk=pk)
    return Response(OrderDetailSerializer(order, context={'request': request}).data)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_update_status(request, pk):
    """Move an order to a new status and record it in the history"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data['status']
    meta = serializer.validated_data.get('meta') or {}
    with transaction.atomic():
        previous = record_status_change(order, new_status, meta=meta, user=request.user)

    create_audit_log(
        request=request,
        action='order_status',
        model_name='Order',
        object_id=order.id,
        object_name=order.reference,
        object_reference=order.reference,
        changes={'status': {'old': previous, 'new': new_status}},
    )
    return Response({
        'message': f"Order status updated to {format_status_label(new_status)}.",
        'order': OrderDetailSerializer(get_object_or_404(order_detail_queryset(), pk=order.pk)).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_statistics_view(request):
    """Totals, per-status and per-day figures, optionally for one customer and date range"""
    return Response(order_statistics(
        user_id=to_int(request.query_params.get('user_id')),
        start_date=request.query_params.get('start_date'),
        end_date=request.query_params.get('end_date'),
    ))


# Order status views
def validate_unique_status(name, code, exclude_pk=None):
    queryset = OrderStatus.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if name and queryset.filter(name__iexact=name).exists():
        return 'Order status with this name already exists'
    if code and queryset.filter(code=code).exists():
        return 'Order status with this code already exists'
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_status_list_create(request):
    if request.method == 'GET':
        queryset = OrderStatus.objects.all().order_by('display_order', 'name')
        return Response(paginate_queryset(request, queryset, OrderStatusSerializer))

    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    error = validate_unique_status(serializer.validated_data.get('name'), serializer.validated_data.get('code'))
    if error:
        return Response({'detail': error}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        if serializer.validated_data.get('is_default'):
            OrderStatus.objects.filter(is_default=True).update(is_default=False)
        order_status = serializer.save()
    return Response(OrderStatusSerializer(order_status).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_status_detail(request, pk):
    order_status = get_object_or_404(OrderStatus, pk=pk)

    if request.method == 'GET':
        return Response(OrderStatusSerializer(order_status).data)

    elif request.method in ('PUT', 'PATCH'):
        serializer = OrderStatusSerializer(order_status, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        error = validate_unique_status(
            serializer.validated_data.get('name'), serializer.validated_data.get('code'), exclude_pk=order_status.pk
        )
        if error:
            return Response({'detail': error}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            if serializer.validated_data.get('is_default'):
                OrderStatus.objects.filter(is_default=True).exclude(pk=order_status.pk).update(is_default=False)
            serializer.save()
        return Response(serializer.data)

    else:  # DELETE
        if order_status.is_default and OrderStatus.objects.exclude(pk=order_status.pk).exists():
            return Response(
                {'detail': 'You must designate another default status before deleting this one.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        order_status.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def order_status_bulk_delete(request):
    ids = parse_id_list(request.data.get('ids'))
    if not ids:
        return Response({'detail': 'No ids provided'}, status=status.HTTP_400_BAD_REQUEST)
    if OrderStatus.objects.filter(id__in=ids, is_default=True).exists():
        return Response(
            {'detail': 'Cannot delete the default status. Please assign another default first.'},
            status=status.HTTP_400_BAD_REQUEST
        )
    deleted, _ = OrderStatus.objects.filter(id__in=ids).delete()
    return Response({'message': 'Selected order statuses deleted successfully', 'deleted': deleted})


# Customer order views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_order_list(request):
    queryset = order_list_queryset().filter(user=request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    return Response(paginate_queryset(request, queryset, OrderListSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_order_detail(request, pk):
    order = get_object_or_404(order_detail_queryset(), pk=pk, user=request.user)
    return Response(OrderDetailSerializer(order, context={'request': request}).data)
