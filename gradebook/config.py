"""
Configuration settings for the gradebook app.

These values can be overridden in Django settings by prefixing with GRADEBOOK_.
For example, to change the default pass mark:
    GRADEBOOK_DEFAULT_MIN_PASSING_SCORE = Decimal('60.00')
"""
from decimal import Decimal

from core.config import AppSettings


_DEFAULTS = {
    # Score used when an exam does not set its own threshold
    'DEFAULT_MIN_PASSING_SCORE': Decimal('70.00'),

    # Final scores are quantized to this many decimals (half-up)
    'SCORE_DECIMAL_PLACES': 2,

    # Weight total considered "exactly 100"; anything else gets normalized
    'FULL_WEIGHT': Decimal('100'),
}

_config = AppSettings('GRADEBOOK', _DEFAULTS)


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
