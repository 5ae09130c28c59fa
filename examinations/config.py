"""
Configuration settings for the examinations app.

Override in Django settings with the EXAMINATIONS_ prefix, e.g.:
    EXAMINATIONS_DEFAULT_MIN_ATTENDANCE_PERCENT = Decimal('80')
"""
from decimal import Decimal

from core.config import AppSettings


_DEFAULTS = {
    # Requirement defaults applied when an exam is created without them
    'DEFAULT_MIN_ATTENDANCE_PERCENT': Decimal('75'),
    'DEFAULT_MIN_DAYS_SINCE_BELT': 90,
    'DEFAULT_PAYMENT_MUST_BE_CURRENT': True,
    'DEFAULT_EXAM_FEE': Decimal('500.00'),

    # Allowed drift when checking that category weights add up to 100
    'WEIGHT_SUM_TOLERANCE': Decimal('0.01'),

    # When True, enrollment refuses candidates that fail eligibility
    'REQUIRE_ELIGIBILITY': False,

    'WAIVER_REASON_MAX_LENGTH': 200,
}

_config = AppSettings('EXAMINATIONS', _DEFAULTS)


def __getattr__(name):
    return getattr(_config, name)
