"""
Configuration settings for the graduations app (GRADUATIONS_ prefix).
"""
from core.config import AppSettings


_DEFAULTS = {
    # Certificate numbers look like CERT-2025-06-K3ZQ8A
    'CERTIFICATE_PREFIX': 'CERT',
    'CERTIFICATE_SUFFIX_LENGTH': 6,
    'CERTIFICATE_NUMBER_ATTEMPTS': 5,
    'CERTIFICATE_FILE_TYPES': ('pdf', 'jpg', 'jpeg', 'png'),
}

_config = AppSettings('GRADUATIONS', _DEFAULTS)


def __getattr__(name):
    return getattr(_config, name)
