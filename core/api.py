"""
Helpers shared by the JSON endpoints.

Views stay thin: they parse the body, call a service function and let
``service_view`` turn ServiceError subclasses into structured responses.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from functools import wraps
from uuid import UUID

from django.http import JsonResponse

from core.exceptions import ServiceError, ValidationError
from core.utils import is_school_admin, is_instructor_or_admin

logger = logging.getLogger(__name__)


HTTP_STATUS_BY_KIND = {
    'validation': 400,
    'not_found': 404,
    'conflict': 409,
    'state': 409,
    'internal': 500,
}


def to_json(value):
    """Make Decimals, dates and UUIDs JSON friendly (recursively)."""
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def error_response(error):
    status = HTTP_STATUS_BY_KIND.get(error.kind, 500)
    payload = {'status': 'error'}
    payload.update(to_json(error.as_dict()))
    return JsonResponse(payload, status=status)


def success_response(data=None, status=200):
    return JsonResponse({'status': 'success', 'data': to_json(data)}, status=status)


def parse_json_body(request):
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Request body is not valid JSON.', code='invalid_json')
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object.', code='invalid_json')
    return payload


def _role_required(check, message):
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({'status': 'error', 'message': 'Authentication required.'}, status=401)
            if not check(request.user):
                return JsonResponse({'status': 'error', 'message': message}, status=403)
            return view_func(request, *args, **kwargs)
        return _wrapped_view
    return decorator


admin_required = _role_required(is_school_admin, "You don't have permission to perform this action.")
staff_required = _role_required(is_instructor_or_admin, 'Only instructors and administrators can do this.')


def service_view(view_func):
    """Translate ServiceError raised by a view into a JSON error response."""
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ServiceError as e:
            if e.kind == 'internal':
                logger.error(f"{view_func.__name__} failed: {e.message}")
            return error_response(e)
    return _wrapped_view
