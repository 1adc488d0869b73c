"""
Order statistics for the admin reports screen
"""
from collections import OrderedDict
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from django.utils import timezone
from jewelstore.core.utils import format_status_label
from .models import Order, OrderStatus

DEFAULT_STATUS_COLOR = '#6B7280'
DATE_WINDOW = 30


def day_bound(value, end=False):
    """Parse ``YYYY-MM-DD`` into an aware start/end-of-day datetime"""
    if not value or not str(value).strip():
        return None
    try:
        day = datetime.strptime(str(value).strip(), '%Y-%m-%d').date()
    except ValueError:
        return None
    bound = datetime.combine(day, time.max if end else time.min)
    return timezone.make_aware(bound) if timezone.is_naive(bound) else bound


def order_statistics(user_id=None, start_date=None, end_date=None):
    queryset = Order.objects.all()
    if user_id:
        queryset = queryset.filter(user_id=user_id)
    start = day_bound(start_date)
    end = day_bound(end_date, end=True)
    if start:
        queryset = queryset.filter(created_at__gte=start)
    if end:
        queryset = queryset.filter(created_at__lte=end)

    orders = list(queryset.values(
        'status', 'total_amount', 'subtotal_amount', 'tax_amount', 'discount_amount', 'created_at'
    ).order_by('-created_at'))

    total_orders = len(orders)
    total_revenue = sum((o['total_amount'] for o in orders), Decimal('0'))
    total_subtotal = sum((o['subtotal_amount'] for o in orders), Decimal('0'))
    total_tax = sum((o['tax_amount'] for o in orders), Decimal('0'))
    total_discount = sum((o['discount_amount'] for o in orders), Decimal('0'))
    average = (total_revenue / total_orders) if total_orders else Decimal('0')

    colors = dict(OrderStatus.objects.filter(is_active=True).values_list('code', 'color'))

    by_status = {}
    by_date = OrderedDict()
    for order in orders:
        code = order['status']
        entry = by_status.setdefault(code, {
            'status': code,
            'status_label': format_status_label(code),
            'color': colors.get(code) or DEFAULT_STATUS_COLOR,
            'count': 0,
            'revenue': 0.0,
        })
        entry['count'] += 1
        entry['revenue'] += float(order['total_amount'])

        if order['created_at']:
            day = timezone.localtime(order['created_at']).date().isoformat()
            day_entry = by_date.setdefault(day, {'date': day, 'count': 0, 'revenue': 0.0})
            day_entry['count'] += 1
            day_entry['revenue'] += float(order['total_amount'])

    return {
        'summary': {
            'total_orders': total_orders,
            'total_revenue': str(total_revenue),
            'total_subtotal': str(total_subtotal),
            'total_tax': str(total_tax),
            'total_discount': str(total_discount),
            'average_order_value': str(average.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)),
        },
        'by_status': sorted(by_status.values(), key=lambda e: e['status']),
        'by_date': sorted(by_date.values(), key=lambda e: e['date'])[-DATE_WINDOW:],
    }
