"""Utility functions for audit logging, request parsing and CSV exports"""
import csv
import logging
from decimal import Decimal, InvalidOperation

from django.http import HttpResponse
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, order_status, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., product name, coupon code)
        object_reference: Reference identifier (e.g., order number)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or object_id is None:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def parse_bool(value):
    """Interpret query-string style booleans ('true', '1', 'yes')"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def to_decimal(value, default=None):
    """Convert request input to Decimal, returning default on garbage"""
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def csv_response(filename_prefix, headers, rows):
    """
    Build a CSV attachment response.

    The file is named `<prefix>-<YYYY-MM-DD>.csv`; `rows` is any iterable of
    sequences, values are written with csv quoting rules (commas, quotes and
    newlines are escaped).
    """
    response = HttpResponse(content_type='text/csv')
    filename = f"{filename_prefix}-{timezone.localdate().isoformat()}.csv"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    writer = csv.writer(response, lineterminator='\n')
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if value is None else value for value in row])
    return response


def paginate(request, queryset, serializer_class, default_limit=50, context=None):
    """
    Page a queryset with Django's Paginator using `page` and `limit` query params.

    Returns the payload dict used by every paged list endpoint.
    """
    from django.core.paginator import Paginator

    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 200)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': list(serializer.data),
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
