import logging
from decimal import Decimal, InvalidOperation

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def to_decimal(value, field_name, minimum=None, maximum=None, error_class=ValidationError):
    """
    Coerce user input to Decimal and check its bounds.

    Floats go through str() so 83.3 stays 83.3 instead of its binary expansion.
    Raises ``error_class`` (a core.exceptions.ValidationError by default).
    """
    if isinstance(value, bool) or value is None or value == '':
        raise error_class(f"{field_name} is required.", details={'field': field_name})
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise error_class(f"{field_name} must be a number.", details={'field': field_name, 'value': str(value)})
    if not result.is_finite():
        raise error_class(f"{field_name} must be a number.", details={'field': field_name, 'value': str(value)})
    if minimum is not None and result < minimum:
        raise error_class(
            f"{field_name} must be at least {minimum}.",
            details={'field': field_name, 'value': str(result)}
        )
    if maximum is not None and result > maximum:
        raise error_class(
            f"{field_name} must be at most {maximum}.",
            details={'field': field_name, 'value': str(result)}
        )
    return result


def to_record_id(value, field_name):
    """
    Coerce an integer primary key from user input.

    Accepts ints and digit-only strings; anything else (lists, floats,
    booleans, free text) is a ValidationError rather than a lookup error.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(
        f"{field_name} must be a whole number.",
        code='invalid_id',
        details={'field': field_name, 'value': str(value)}
    )


def is_school_admin(user):
    """Check if user is a school admin or superuser."""
    return user.is_authenticated and (user.is_superuser or getattr(user, 'is_school_admin', False))


def is_instructor_or_admin(user):
    """Instructors and admins may run exams and record grades."""
    return is_school_admin(user) or (user.is_authenticated and getattr(user, 'is_instructor', False))

