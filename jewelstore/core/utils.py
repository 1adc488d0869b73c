"""Utility functions for audit logging, pagination and request parsing"""
import logging
from decimal import Decimal, InvalidOperation

from django.core.paginator import Paginator
from django.db import DatabaseError
from django.utils.text import slugify

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """First X-Forwarded-For hop, else REMOTE_ADDR"""
    meta = getattr(request, 'META', None)
    if not meta:
        return None
    forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
    hops = [hop.strip() for hop in forwarded.split(',') if hop.strip()]
    return hops[0] if hops else meta.get('REMOTE_ADDR') or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Record who did what to which object. ``user`` defaults to the request's
    user; anonymous users are stored as null. Entries missing ``action``,
    ``model_name`` or ``object_id`` are skipped. Returns the entry or None;
    a failed write is logged and never breaks the calling request.
    """
    if not action or not model_name or object_id in (None, ''):
        logger.warning(f"Audit log skipped: action={action}, model_name={model_name}, object_id={object_id}")
        return None

    actor = user or getattr(request, 'user', None)
    if actor is not None and not actor.is_authenticated:
        actor = None

    try:
        return AuditLog.objects.create(
            user=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request),
        )
    except DatabaseError as e:
        logger.error(f"Failed to write audit log for {model_name} {object_id}: {str(e)}")
        return None


def paginate_queryset(request, queryset, serializer_class, default_page_size=10, context=None):
    """Paginate a queryset the way every list endpoint returns it"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(request.query_params.get('per_page') or request.query_params.get('page_size') or default_page_size)
    except (TypeError, ValueError):
        page_size = default_page_size
    page_size = min(max(page_size, 1), 200)

    paginator = Paginator(queryset, page_size)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': page_size,
        'total_pages': paginator.num_pages,
    }


def parse_bool(value, default=None):
    """Interpret query-string and form booleans ('1', 'true', 'on', ...)"""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def parse_id_list(value):
    """Accept ``[1, 2]``, ``['1', '2']`` or ``'1,2'`` and return ints"""
    if value is None:
        return []
    if isinstance(value, str):
        value = [part for part in value.split(',') if part.strip()]
    ids = []
    for item in value:
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            continue
    return ids


def make_code(name):
    """Derive a stable code from a display name"""
    return slugify(name or '').replace('-', '_')


def format_status_label(status):
    """'pending_payment' -> 'Pending Payment'"""
    if not status:
        return ''
    return ' '.join(word.capitalize() for word in str(status).split('_'))


def to_decimal(value, default=None):
    """Parse request numbers; blank values give ``default``"""
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def to_int(value, default=None):
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
