from django.db import models
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.choices import BeltRank, Gender


class Student(models.Model):
    """
    Represents a student training at the school.

    The belt fields are only written by the graduation workflow; everything
    else belongs to the student CRUD screens, which live outside this project.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')
        SUSPENDED = 'suspended', _('Suspended')
        GRADUATED = 'graduated', _('Graduated')

    # Personal Information
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=1, choices=Gender.choices, blank=True)
    email = models.EmailField(blank=True)

    student_code = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique student ID"
    )

    # Belt
    belt_level = models.CharField(
        max_length=20,
        choices=BeltRank.choices,
        default=BeltRank.WHITE
    )
    belt_date_obtained = models.DateField(
        null=True,
        blank=True,
        help_text="Date the current belt was obtained (tenure is counted from here)"
    )
    belt_certified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='certified_students'
    )

    # Cumulative graduation test counters
    graduation_tests_passed = models.PositiveIntegerField(default=0)
    graduation_tests_failed = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE
    )

    # Metadata
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['last_name', 'first_name']
        verbose_name = "Student"
        verbose_name_plural = "Students"
        indexes = [
            models.Index(fields=['belt_level'], name='student_belt_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.student_code})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def belt_since(self):
        """Date tenure is counted from: belt date, else the day the record was created."""
        if self.belt_date_obtained:
            return self.belt_date_obtained
        return timezone.localdate(self.created_at)

    def days_with_belt(self, today=None):
        today = today or timezone.localdate()
        return (today - self.belt_since).days
