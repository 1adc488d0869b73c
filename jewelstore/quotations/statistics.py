"""
Quotation statistics for the admin reports screen

A group counts once, under the status and quantity of its newest line.
"""
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP
from django.utils import timezone
from jewelstore.core.utils import format_status_label
from jewelstore.orders.statistics import day_bound, DATE_WINDOW
from .models import Quotation


def quotation_statistics(user_id=None, start_date=None, end_date=None):
    queryset = Quotation.objects.all()
    if user_id:
        queryset = queryset.filter(user_id=user_id)
    start = day_bound(start_date)
    end = day_bound(end_date, end=True)
    if start:
        queryset = queryset.filter(created_at__gte=start)
    if end:
        queryset = queryset.filter(created_at__lte=end)

    groups = OrderedDict()
    for row in queryset.values('quotation_group_id', 'status', 'quantity', 'created_at').order_by('-created_at', '-id'):
        groups.setdefault(row['quotation_group_id'], row)
    rows = list(groups.values())

    total = len(rows)
    total_quantity = sum(row['quantity'] for row in rows)
    average = (Decimal(total_quantity) / total) if total else Decimal('0')

    by_status = {}
    by_date = OrderedDict()
    for row in rows:
        code = row['status']
        entry = by_status.setdefault(code, {
            'status': code,
            'status_label': format_status_label(code),
            'count': 0,
            'quantity': 0,
        })
        entry['count'] += 1
        entry['quantity'] += row['quantity']

        if row['created_at']:
            day = timezone.localtime(row['created_at']).date().isoformat()
            day_entry = by_date.setdefault(day, {'date': day, 'count': 0, 'quantity': 0})
            day_entry['count'] += 1
            day_entry['quantity'] += row['quantity']

    return {
        'summary': {
            'total_quotations': total,
            'total_quantity': str(total_quantity),
            'average_quantity': str(average.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)),
        },
        'by_status': sorted(by_status.values(), key=lambda e: e['status']),
        'by_date': sorted(by_date.values(), key=lambda e: e['date'])[-DATE_WINDOW:],
    }
