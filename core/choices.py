from django.db import models
from django.utils.translation import gettext_lazy as _


class Gender(models.TextChoices):
    MALE = 'M', _('Male')
    FEMALE = 'F', _('Female')


class BeltRank(models.TextChoices):
    """Taekwondo belt ranks, in promotion order."""
    WHITE = 'blanco', _('White')
    WHITE_YELLOW = 'blanco-amarillo', _('White / Yellow')
    YELLOW = 'amarillo', _('Yellow')
    YELLOW_ORANGE = 'amarillo-naranja', _('Yellow / Orange')
    ORANGE = 'naranja', _('Orange')
    ORANGE_GREEN = 'naranja-verde', _('Orange / Green')
    GREEN = 'verde', _('Green')
    GREEN_BLUE = 'verde-azul', _('Green / Blue')
    BLUE = 'azul', _('Blue')
    BLUE_BROWN = 'azul-marron', _('Blue / Brown')
    BROWN = 'marron', _('Brown')
    BROWN_BLACK = 'marron-negro', _('Brown / Black')
    BLACK_1 = 'negro-1', _('Black 1st Dan')
    BLACK_2 = 'negro-2', _('Black 2nd Dan')
    BLACK_3 = 'negro-3', _('Black 3rd Dan')
    BLACK_4 = 'negro-4', _('Black 4th Dan')
    BLACK_5 = 'negro-5', _('Black 5th Dan')
    BLACK_6 = 'negro-6', _('Black 6th Dan')
    BLACK_7 = 'negro-7', _('Black 7th Dan')
    BLACK_8 = 'negro-8', _('Black 8th Dan')
    BLACK_9 = 'negro-9', _('Black 9th Dan')

    @classmethod
    def rank_index(cls, value):
        """Position of a belt in promotion order (0 = white)."""
        return cls.values.index(value)

    @classmethod
    def is_black(cls, value):
        return bool(value) and value.startswith('negro')


# White can never be the outcome of an exam, 9th Dan can never be a prerequisite.
TARGET_BELT_CHOICES = [c for c in BeltRank.choices if c[0] != BeltRank.WHITE]
REQUIRED_BELT_CHOICES = [c for c in BeltRank.choices if c[0] != BeltRank.BLACK_9]
