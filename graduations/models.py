import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.choices import BeltRank
from examinations.models import Exam
from gradebook.models import Grade
from students.models import Student


class GraduationQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def pending_cascade(self):
        """Graduations whose belt change has not reached the student record yet."""
        return self.active().filter(
            state__in=[Graduation.State.PENDING, Graduation.State.APPROVED],
            student_updated=False,
        )

    def for_student(self, student):
        return self.active().filter(student=student)

    def for_exam(self, exam):
        return self.active().filter(exam=exam)

    def awaiting_approval(self):
        return self.active().filter(state=Graduation.State.PENDING)

    def without_certificate(self):
        """Pending or approved graduations with no certificate file on record."""
        return self.active().filter(
            state__in=[Graduation.State.PENDING, Graduation.State.APPROVED],
            certificate_file='',
        )


class Graduation(models.Model):
    """
    A student's promotion to the exam's target belt.

    Created from a passing, finalized grade. Approval copies the new belt onto
    the student record exactly once (``student_updated``).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class State(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        CERTIFIED = 'certified', 'Certified'
        CANCELLED = 'cancelled', 'Cancelled'

    class FileType(models.TextChoices):
        PDF = 'pdf', 'PDF'
        JPG = 'jpg', 'JPG'
        JPEG = 'jpeg', 'JPEG'
        PNG = 'png', 'PNG'

    exam = models.ForeignKey(Exam, on_delete=models.PROTECT, related_name='graduations')
    grade = models.ForeignKey(Grade, on_delete=models.PROTECT, related_name='graduations')
    student = models.ForeignKey(Student, on_delete=models.PROTECT, related_name='graduations')

    previous_belt = models.CharField(max_length=20, choices=BeltRank.choices)
    new_belt = models.CharField(max_length=20, choices=BeltRank.choices)
    graduation_date = models.DateField(default=timezone.localdate)

    certifiers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through='GraduationCertifier',
        related_name='graduations_certified',
        blank=True
    )

    # Certificate
    certificate_number = models.CharField(
        max_length=40,
        unique=True,
        null=True,
        blank=True,
        help_text='e.g. CERT-2024-06-K3X9QZ'
    )
    certificate_file = models.CharField(max_length=500, blank=True, help_text='Stored file reference')
    certificate_file_type = models.CharField(max_length=4, choices=FileType.choices, blank=True)
    certificate_file_size = models.PositiveIntegerField(null=True, blank=True)
    certificate_issued_at = models.DateField(null=True, blank=True)
    certificate_issued_by = models.CharField(max_length=200, blank=True, help_text='Issuing institution')
    certificate_notes = models.TextField(blank=True)

    state = models.CharField(max_length=10, choices=State.choices, default=State.PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='graduations_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    # Belt cascade bookkeeping
    student_updated = models.BooleanField(default=False)
    student_updated_at = models.DateTimeField(null=True, blank=True)

    # Ceremony
    ceremony_held = models.BooleanField(default=False)
    ceremony_date = models.DateField(null=True, blank=True)
    ceremony_location = models.CharField(max_length=200, blank=True)
    ceremony_attendees = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='graduations_created'
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='graduations_modified'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = GraduationQuerySet.as_manager()

    def __str__(self):
        return f"{self.student}: {self.get_previous_belt_display()} -> {self.get_new_belt_display()}"

    @property
    def first_certifier_id(self):
        link = self.certifier_links.order_by('position', 'id').first()
        return link.instructor_id if link else None

    @property
    def is_terminal(self):
        return self.state in (self.State.CERTIFIED, self.State.CANCELLED)

    class Meta:
        db_table = 'graduation'
        ordering = ['-graduation_date', '-created_at']
        verbose_name = 'Graduation'
        verbose_name_plural = 'Graduations'
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'student'],
                condition=Q(is_active=True),
                name='unique_active_graduation_per_exam_student'
            ),
        ]
        indexes = [
            models.Index(fields=['state'], name='graduation_state_idx'),
            models.Index(fields=['student', 'graduation_date'], name='graduation_student_date_idx'),
            models.Index(fields=['student_updated', 'state'], name='graduation_pending_idx'),
        ]


class GraduationCertifier(models.Model):
    """Ordered instructor list of a graduation; position 0 signs the belt."""
    graduation = models.ForeignKey(Graduation, on_delete=models.CASCADE, related_name='certifier_links')
    instructor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='graduation_certifications')
    position = models.PositiveSmallIntegerField(default=0)

    def __str__(self):
        return f"{self.instructor} (#{self.position + 1})"

    class Meta:
        db_table = 'graduation_certifier'
        ordering = ['position', 'id']
        unique_together = ['graduation', 'instructor']
