import uuid
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.choices import BeltRank, TARGET_BELT_CHOICES, REQUIRED_BELT_CHOICES


CENTS = Decimal('0.01')


class Exam(models.Model):
    """
    A graduation or evaluation event.

    The exam is the aggregate root for its categories and candidates: every
    change to the candidate list goes through examinations.services, which
    locks the exam row and bumps ``version``.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class ExamType(models.TextChoices):
        GRADUATION = 'graduation', _('Graduation')
        TECHNICAL = 'technical_evaluation', _('Technical evaluation')
        SEMESTER = 'semester_evaluation', _('Semester evaluation')
        OTHER = 'other', _('Other')

    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', _('Scheduled')
        IN_PROGRESS = 'in_progress', _('In progress')
        COMPLETED = 'completed', _('Completed')
        CANCELLED = 'cancelled', _('Cancelled')

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)
    exam_type = models.CharField(
        max_length=30,
        choices=ExamType.choices,
        default=ExamType.GRADUATION
    )
    date = models.DateField()
    time = models.TimeField(null=True, blank=True)

    # Belts (graduation exams only)
    target_belt = models.CharField(
        max_length=20,
        choices=TARGET_BELT_CHOICES,
        blank=True,
        help_text='Belt awarded to candidates who graduate'
    )
    required_belt = models.CharField(
        max_length=20,
        choices=REQUIRED_BELT_CHOICES,
        blank=True,
        help_text='Belt a student must currently hold to enroll'
    )

    instructors = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='exams_instructed',
        blank=True
    )

    # Requirements
    min_attendance_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('75.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text='Minimum share of attended classes (inclusive)'
    )
    min_days_since_belt = models.PositiveIntegerField(
        default=90,
        help_text='Minimum days holding the current belt'
    )
    payment_must_be_current = models.BooleanField(default=True)
    fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(0)]
    )
    min_passing_score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('70.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED
    )
    notes = models.TextField(blank=True)

    # Optimistic concurrency counter for the aggregate
    version = models.PositiveIntegerField(default=1)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='exams_created'
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exams_modified'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date']
        verbose_name = 'Exam'
        verbose_name_plural = 'Exams'
        indexes = [
            models.Index(fields=['status'], name='exam_status_idx'),
            models.Index(fields=['target_belt'], name='exam_target_belt_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.date})"

    def clean(self):
        if self.exam_type == self.ExamType.GRADUATION:
            if not self.target_belt or not self.required_belt:
                raise ValidationError('Graduation exams need both a target belt and a required belt.')
            if BeltRank.rank_index(self.target_belt) <= BeltRank.rank_index(self.required_belt):
                raise ValidationError('The target belt must rank above the required belt.')

    @property
    def is_graduation(self):
        return self.exam_type == self.ExamType.GRADUATION

    @property
    def accepts_enrollment(self):
        return self.is_active and self.status in (self.Status.SCHEDULED, self.Status.IN_PROGRESS)

    def weight_total(self):
        return sum((c.weight for c in self.categories.all()), Decimal('0'))

    def discounted_fee(self, discount_percent):
        discount = Decimal(str(discount_percent or 0))
        fee = self.fee * (Decimal('1') - discount / Decimal('100'))
        return fee.quantize(CENTS, rounding=ROUND_HALF_UP)

    def bump_version(self, user=None):
        """Record a mutation of the aggregate. Call inside the locking transaction."""
        updates = {'version': F('version') + 1, 'updated_at': timezone.now()}
        if user is not None:
            updates['modified_by'] = user
        Exam.objects.filter(pk=self.pk).update(**updates)
        self.refresh_from_db(fields=['version', 'updated_at', 'modified_by'])

    # Aggregate read-outs

    @property
    def total_enrolled(self):
        return self.candidates.count()

    @property
    def candidates_meeting_requirements(self):
        return sum(1 for c in self.candidates.all() if c.meets_requirements)

    @property
    def total_collected(self):
        return sum((c.amount_paid for c in self.candidates.all()), Decimal('0.00'))

    @property
    def total_outstanding(self):
        return sum(
            (c.balance for c in self.candidates.all() if not c.paid),
            Decimal('0.00')
        )


class ExamCategory(models.Model):
    """A weighted evaluation area of an exam (e.g. Poomsae 30%)."""
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=50)
    description = models.CharField(max_length=200, blank=True)
    weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text='Weight percentage (all categories of an exam add up to 100)'
    )
    order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']
        unique_together = ['exam', 'name']
        verbose_name = 'Exam Category'
        verbose_name_plural = 'Exam Categories'

    def __str__(self):
        return f"{self.name} ({self.weight}%)"


class ExamCandidate(models.Model):
    """A student's enrollment in an exam, with fee and eligibility snapshot."""
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='candidates')
    student = models.ForeignKey('students.Student', on_delete=models.PROTECT, related_name='exam_enrollments')
    enrolled_at = models.DateTimeField(default=timezone.now)

    # Exam fee
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_reference = models.CharField(max_length=200, blank=True)

    # Waiver: sit the exam without the fee being settled
    payment_waived = models.BooleanField(default=False)
    waived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exam_waivers'
    )
    waiver_reason = models.CharField(max_length=200, blank=True)

    # Eligibility snapshot
    attendance_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    meets_attendance = models.BooleanField(default=False)
    days_with_belt = models.IntegerField(default=0)
    meets_belt_tenure = models.BooleanField(default=False)
    meets_payment = models.BooleanField(default=False)
    eligibility_checked_at = models.DateTimeField(null=True, blank=True)

    # Outcome
    graded = models.BooleanField(default=False)
    passed = models.BooleanField(default=False)

    class Meta:
        ordering = ['enrolled_at', 'id']
        verbose_name = 'Exam Candidate'
        verbose_name_plural = 'Exam Candidates'
        constraints = [
            models.UniqueConstraint(fields=['exam', 'student'], name='unique_exam_candidate'),
        ]

    def __str__(self):
        return f"{self.student} @ {self.exam.name}"

    @property
    def fee_due(self):
        return self.exam.discounted_fee(self.discount_percent)

    @property
    def balance(self):
        return max(Decimal('0.00'), self.fee_due - self.amount_paid)

    @property
    def meets_requirements(self):
        return (
            self.meets_attendance
            and self.meets_belt_tenure
            and (self.meets_payment or self.payment_waived)
        )

    def apply_eligibility(self, result):
        """Copy an EligibilityResult onto the snapshot fields (not saved)."""
        self.attendance_percentage = result.attendance.percentage
        self.meets_attendance = result.attendance.meets_minimum
        self.days_with_belt = result.tenure.days
        self.meets_belt_tenure = result.tenure.meets_minimum
        self.meets_payment = result.payment.meets_requirement
        self.eligibility_checked_at = result.evaluated_at

    def eligibility_snapshot(self):
        return {
            'attendance': {
                'percentage': self.attendance_percentage,
                'meets_minimum': self.meets_attendance,
            },
            'tenure': {
                'days': self.days_with_belt,
                'meets_minimum': self.meets_belt_tenure,
            },
            'payment': {
                'meets_requirement': self.meets_payment,
                'waived': self.payment_waived,
            },
            'checked_at': self.eligibility_checked_at,
        }
