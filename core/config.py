"""
Lazy settings proxy shared by the app-level config modules.

Each app declares its defaults and a prefix; values can then be overridden in
Django settings. For example, with the ``EXAMINATIONS`` prefix:
    EXAMINATIONS_DEFAULT_EXAM_FEE = Decimal('650.00')

Values are read on attribute access so importing a config module never
touches django.conf before settings are configured.
"""


class AppSettings:
    """
    Lazy configuration proxy that loads settings only when accessed.
    """

    def __init__(self, prefix, defaults):
        self._prefix = prefix
        self._defaults = dict(defaults)

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        if name in self._defaults:
            from django.conf import settings
            return getattr(settings, f'{self._prefix}_{name}', self._defaults[name])
        raise AttributeError(f"Unknown {self._prefix.lower()} setting: {name}")

    def defaults(self):
        return dict(self._defaults)
