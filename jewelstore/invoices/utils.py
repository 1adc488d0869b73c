"""
Utility functions for invoice operations
"""
from datetime import timedelta
from django.db import transaction, IntegrityError
from django.db.models.functions import Length
from django.utils import timezone
import logging
from jewelstore.core.exceptions import ConflictError, NotFoundError
from jewelstore.core.models import Setting
from jewelstore.core.utils import format_status_label
from jewelstore.orders.models import Order
from .models import Invoice

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30
MAX_NUMBER_ATTEMPTS = 5
DEFAULT_TERMS_SETTING = 'invoice_default_terms'


def status_label(status):
    return format_status_label(status)


def generate_invoice_number(day=None):
    """
    Next invoice number for ``day`` (default today): INV-YYYYMMDD-####,
    one more than the highest number already issued that day.
    """
    day = day or timezone.localdate()
    prefix = f"INV-{day.strftime('%Y%m%d')}-"
    # longer numbers are later ones once the sequence passes 9999
    last = Invoice.objects.filter(invoice_number__startswith=prefix).order_by(
        Length('invoice_number').desc(), '-invoice_number'
    ).first()

    sequence = 1
    if last:
        try:
            sequence = int(last.invoice_number[len(prefix):]) + 1
        except ValueError:
            logger.warning(f"Unexpected invoice number format: {last.invoice_number}")
    return f"{prefix}{sequence:04d}"


def create_invoice(order_id, data=None):
    """Create a draft invoice from an order's amounts"""
    data = data or {}
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        raise NotFoundError('Order not found')
    if Invoice.objects.filter(order=order).exists():
        raise ConflictError('Invoice already exists for this order')

    issue_date = data.get('issue_date') or timezone.localdate()
    due_date = data.get('due_date') or issue_date + timedelta(days=DEFAULT_DUE_DAYS)
    terms = data.get('terms')
    if terms is None:
        terms = Setting.get_value(DEFAULT_TERMS_SETTING)

    for attempt in range(MAX_NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                invoice = Invoice.objects.create(
                    order=order,
                    invoice_number=generate_invoice_number(),
                    status='draft',
                    issue_date=issue_date,
                    due_date=due_date,
                    subtotal_amount=order.subtotal_amount,
                    tax_amount=order.tax_amount,
                    discount_amount=order.discount_amount,
                    total_amount=order.total_amount,
                    currency=order.currency,
                    notes=data.get('notes'),
                    terms=terms,
                    metadata=data.get('metadata') or {},
                )
            logger.info(f"Created invoice {invoice.invoice_number} for order {order.reference}")
            return invoice
        except IntegrityError:
            if Invoice.objects.filter(order=order).exists():
                raise ConflictError('Invoice already exists for this order')
            logger.warning(f"Invoice number collision for order {order.reference}, attempt {attempt + 1}")

    raise ConflictError('Could not allocate a unique invoice number, please retry')
