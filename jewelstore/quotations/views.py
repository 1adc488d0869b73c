from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.shortcuts import get_object_or_404
from django.db.models import Q, Max, Count
import logging
from jewelstore.core.utils import create_audit_log, paginate_queryset, to_int
from jewelstore.kyc.permissions import IsKycApproved
from .models import Quotation, QuotationMessage
from .statistics import quotation_statistics
from .serializers import (
    QuotationSerializer, QuotationMessageSerializer, QuotationCreateSerializer,
    QuotationMessageCreateSerializer, QuotationDecisionSerializer, ConfirmationRequestSerializer,
    QuotationGroupItemSerializer
)
from .utils import (
    group_quotations, get_customer_quotation, submit_quotations, cancel_quotation, add_message,
    respond_to_confirmation, tax_summary, approve_quotation_group, reject_quotation_group,
    request_customer_confirmation, add_group_item, change_group_product, remove_quotation_group, remove_quotation
)

logger = logging.getLogger(__name__)


def quotation_queryset():
    return Quotation.objects.select_related('user', 'product', 'variant', 'order').prefetch_related('product__media')


def group_messages(quotation):
    messages = QuotationMessage.objects.filter(
        quotation__quotation_group_id=quotation.quotation_group_id
    ).select_related('user')
    return QuotationMessageSerializer(messages, many=True).data


def quotation_detail_payload(quotation):
    related = list(group_quotations(quotation).prefetch_related('product__media').select_related('order'))
    data = QuotationSerializer(quotation).data
    data['group_items'] = QuotationSerializer(related, many=True).data
    data['messages'] = group_messages(quotation)
    data['tax_summary'] = tax_summary(related)
    return data


# Customer quotation views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_quotation_list_create(request):
    """List the caller's quotations or submit new ones"""
    if request.method == 'GET':
        queryset = quotation_queryset().filter(user=request.user).order_by('-created_at')
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return Response(paginate_queryset(request, queryset, QuotationSerializer))

    serializer = QuotationCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    quotations = submit_quotations(request.user, serializer.validated_data['items'])
    return Response({
        'message': 'Quotation submitted successfully. Our team will get back to you shortly.',
        'quotation_group_id': str(quotations[0].quotation_group_id),
        'quotations': QuotationSerializer(quotations, many=True).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_quotation_detail(request, pk):
    if request.method == 'GET':
        quotation = get_customer_quotation(request.user, pk)
        return Response(quotation_detail_payload(quotation))

    cancel_quotation(request.user, pk)
    return Response({'message': 'Quotation cancelled successfully.'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_quotation_message(request, pk):
    quotation = get_customer_quotation(request.user, pk, action='send messages for')
    serializer = QuotationMessageCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    message = add_message(quotation, request.user, 'customer', serializer.validated_data['message'])
    return Response({
        'message': 'Message sent.',
        'data': QuotationMessageSerializer(message).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_quotation_confirm(request, pk):
    return Response({'message': respond_to_confirmation(request.user, pk, accept=True)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsKycApproved])
def customer_quotation_decline(request, pk):
    return Response({'message': respond_to_confirmation(request.user, pk, accept=False)})


# Admin quotation views
class QuotationGroupSerializer(drf_serializers.Serializer):
    """One row per quotation group of the admin list"""
    quotation_group_id = drf_serializers.UUIDField()
    latest = drf_serializers.DateTimeField()
    items_count = drf_serializers.IntegerField()
    quotations = drf_serializers.SerializerMethodField()

    def get_quotations(self, obj):
        queryset = quotation_queryset().filter(quotation_group_id=obj['quotation_group_id']).order_by('created_at', 'id')
        return QuotationSerializer(queryset, many=True).data


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_list(request):
    """Quotations grouped by submission, newest group first"""
    queryset = Quotation.objects.all()
    status_filter = request.query_params.get('status')
    search = request.query_params.get('search')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    if search:
        queryset = queryset.filter(
            Q(product__name__icontains=search) |
            Q(product__sku__icontains=search) |
            Q(user__name__icontains=search) |
            Q(user__email__icontains=search)
        )
    groups = queryset.values('quotation_group_id').annotate(
        latest=Max('created_at'), items_count=Count('id')
    ).order_by('-latest')
    return Response(paginate_queryset(request, groups, QuotationGroupSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_statistics(request):
    """Per-group counts and quantities, optionally for one customer and date range"""
    return Response(quotation_statistics(
        user_id=to_int(request.query_params.get('user_id')),
        start_date=request.query_params.get('start_date'),
        end_date=request.query_params.get('end_date'),
    ))


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_detail(request, pk):
    """Group detail, or delete this single line"""
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    if request.method == 'GET':
        return Response(quotation_detail_payload(quotation))

    quotation_id = quotation.id
    result = remove_quotation(quotation)
    create_audit_log(
        request=request,
        action='delete',
        model_name='Quotation',
        object_id=quotation_id,
        object_name=result['quotation_group_id'],
        changes={'is_last_quotation': result['is_last_quotation']},
    )
    return Response(result)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_group_delete(request, pk):
    quotation = get_object_or_404(Quotation, pk=pk)
    group_id = str(quotation.quotation_group_id)
    removed = remove_quotation_group(quotation)
    create_audit_log(
        request=request,
        action='bulk_delete',
        model_name='Quotation',
        object_id=pk,
        object_name=group_id,
        changes={'removed': removed},
    )
    return Response({'message': 'Quotation group removed successfully', 'removed': removed})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_add_item(request, pk):
    """Add a product line to the group; the customer has to confirm it"""
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = QuotationGroupItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    added = add_group_item(quotation, request.user, serializer.validated_data)
    create_audit_log(
        request=request,
        action='create',
        model_name='Quotation',
        object_id=added.id,
        object_name=str(added.quotation_group_id),
        changes={'product_id': added.product_id, 'variant_id': added.variant_id, 'quantity': added.quantity},
    )
    return Response(QuotationSerializer(added).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_change_product(request, pk):
    """Swap the product of the group's first line and ask the customer to confirm"""
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = QuotationGroupItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    related = change_group_product(quotation, request.user, serializer.validated_data)
    create_audit_log(
        request=request,
        action='update',
        model_name='Quotation',
        object_id=related[0].id,
        object_name=str(related[0].quotation_group_id),
        changes={'product_id': related[0].product_id, 'variant_id': related[0].variant_id, 'quantity': related[0].quantity},
    )
    return Response(QuotationSerializer(related, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_approve(request, pk):
    """Approve the quotation's group and create its order"""
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = QuotationDecisionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    admin_notes = serializer.validated_data.get('admin_notes')
    order = approve_quotation_group(quotation, admin_notes=admin_notes, admin=request.user)
    create_audit_log(
        request=request,
        action='quotation_approve',
        model_name='Quotation',
        object_id=quotation.id,
        object_name=str(quotation.quotation_group_id),
        object_reference=order.reference,
        changes={'order_id': order.id, 'total_amount': str(order.total_amount), 'admin_notes': admin_notes},
    )
    return Response({'message': 'Quotations approved', 'order_id': order.id, 'order_reference': order.reference})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_reject(request, pk):
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = QuotationDecisionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    admin_notes = serializer.validated_data.get('admin_notes')
    rejected = reject_quotation_group(quotation, admin_notes=admin_notes)
    create_audit_log(
        request=request,
        action='quotation_reject',
        model_name='Quotation',
        object_id=quotation.id,
        object_name=str(quotation.quotation_group_id),
        changes={'rejected': rejected, 'admin_notes': admin_notes},
    )
    return Response({'message': 'Quotations rejected', 'rejected': rejected})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_request_confirmation(request, pk):
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = ConfirmationRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    request_customer_confirmation(
        quotation,
        request.user,
        notes=data.get('notes'),
        quantity=data.get('quantity'),
        variant_id=data.get('variant_id'),
    )
    return Response({'message': 'Confirmation requested'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_quotation_message(request, pk):
    quotation = get_object_or_404(quotation_queryset(), pk=pk)
    serializer = QuotationMessageCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    message = add_message(quotation, request.user, 'admin', serializer.validated_data['message'])
    return Response(QuotationMessageSerializer(message).data, status=status.HTTP_201_CREATED)
