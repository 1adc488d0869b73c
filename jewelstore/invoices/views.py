from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.db.models import Q
import logging
from jewelstore.core.notifications import send_invoice_email
from jewelstore.core.utils import create_audit_log, paginate_queryset, to_int
from .models import Invoice
from .serializers import InvoiceSerializer, InvoiceCreateSerializer, InvoiceUpdateSerializer
from .pdf_generator import generate_invoice_pdf
from .utils import create_invoice

logger = logging.getLogger(__name__)


def invoice_queryset():
    return Invoice.objects.select_related('order', 'order__user').prefetch_related('order__items').order_by('-created_at')


def pdf_response(invoice):
    response = HttpResponse(generate_invoice_pdf(invoice), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="invoice-{invoice.invoice_number}.pdf"'
    return response


# Admin invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def invoice_list_create(request):
    """List invoices (status, order_id, search filters) or create one from an order"""
    if request.method == 'GET':
        queryset = invoice_queryset()
        status_filter = request.query_params.get('status')
        order_id = to_int(request.query_params.get('order_id'))
        search = request.query_params.get('search')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if order_id:
            queryset = queryset.filter(order_id=order_id)
        if search:
            queryset = queryset.filter(
                Q(invoice_number__icontains=search) |
                Q(order__reference__icontains=search) |
                Q(order__user__name__icontains=search)
            )
        return Response(paginate_queryset(request, queryset, InvoiceSerializer))

    serializer = InvoiceCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    invoice = create_invoice(data['order_id'], data)
    create_audit_log(
        request=request,
        action='invoice_create',
        model_name='Invoice',
        object_id=invoice.id,
        object_name=invoice.invoice_number,
        object_reference=invoice.order.reference,
        changes={'order_id': invoice.order_id, 'total_amount': str(invoice.total_amount)},
    )
    invoice = invoice_queryset().get(pk=invoice.pk)
    return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def invoice_detail(request, pk):
    invoice = get_object_or_404(invoice_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)

    elif request.method in ('PUT', 'PATCH'):
        old_values = {field: getattr(invoice, field) for field in ['status', 'issue_date', 'due_date', 'notes', 'terms']}
        serializer = InvoiceUpdateSerializer(invoice, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        invoice = serializer.save()

        changes = {}
        for field, old in old_values.items():
            new = getattr(invoice, field)
            if old != new:
                changes[field] = {'old': str(old) if old is not None else None, 'new': str(new) if new is not None else None}

        became_sent = old_values['status'] != 'sent' and invoice.status == 'sent'
        if became_sent:
            try:
                sent = send_invoice_email(invoice, generate_invoice_pdf(invoice))
            except (OSError, ValueError) as e:
                logger.error(f"Could not render invoice {invoice.invoice_number} for email: {str(e)}")
                sent = False
            if not sent:
                logger.error(f"Invoice {invoice.invoice_number} marked sent but the email was not delivered")

        create_audit_log(
            request=request,
            action='invoice_send' if became_sent else 'invoice_update',
            model_name='Invoice',
            object_id=invoice.id,
            object_name=invoice.invoice_number,
            object_reference=invoice.order.reference,
            changes=changes,
        )
        return Response(InvoiceSerializer(invoice).data)

    else:  # DELETE
        if invoice.status != 'draft':
            return Response({'detail': 'Only draft invoices can be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        invoice_id, number, reference = invoice.id, invoice.invoice_number, invoice.order.reference
        invoice.delete()
        create_audit_log(
            request=request,
            action='invoice_delete',
            model_name='Invoice',
            object_id=invoice_id,
            object_name=number,
            object_reference=reference,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def invoice_by_order(request, order_id):
    """Invoice summary for an order, or null"""
    invoice = Invoice.objects.filter(order_id=order_id).first()
    if invoice is None:
        return Response(None)
    return Response({'id': invoice.id, 'invoice_number': invoice.invoice_number, 'status': invoice.status})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def invoice_pdf(request, pk):
    return pdf_response(get_object_or_404(invoice_queryset(), pk=pk))


# Customer invoice views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_invoice_list(request):
    queryset = invoice_queryset().filter(order__user=request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    return Response(paginate_queryset(request, queryset, InvoiceSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_invoice_detail(request, pk):
    invoice = get_object_or_404(invoice_queryset(), pk=pk, order__user=request.user)
    return Response(InvoiceSerializer(invoice).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_invoice_pdf(request, pk):
    return pdf_response(get_object_or_404(invoice_queryset(), pk=pk, order__user=request.user))
