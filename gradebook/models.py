import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q

from examinations.models import Exam
from students.models import Student

from .utils import compute_weighted_score


class Grade(models.Model):
    """
    A candidate's evaluation for one exam.

    Category scores are recorded while the grade is a draft; finalizing
    computes the weighted final score and the pass/fail result.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class State(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        FINALIZED = 'finalized', 'Finalized'
        REVIEWED = 'reviewed', 'Reviewed'

    class Result(models.TextChoices):
        PASS = 'pass', 'Pass'
        FAIL = 'fail', 'Fail'
        PENDING = 'pending', 'Pending'

    exam = models.ForeignKey(
        Exam,
        on_delete=models.PROTECT,
        related_name='grades',
        db_index=True
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name='exam_grades',
        db_index=True
    )

    final_score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text='Weighted score over all categories'
    )
    result = models.CharField(
        max_length=10,
        choices=Result.choices,
        default=Result.PENDING
    )
    min_passing_score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('70.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Snapshot of the exam's passing score when the grade was finalized"
    )
    state = models.CharField(
        max_length=10,
        choices=State.choices,
        default=State.DRAFT
    )

    # Evaluation
    evaluated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='grades_evaluated'
    )
    evaluated_at = models.DateTimeField(null=True, blank=True)
    general_remarks = models.TextField(blank=True)
    strengths = models.JSONField(default=list, blank=True)
    areas_for_improvement = models.JSONField(default=list, blank=True)
    distinction = models.CharField(max_length=200, blank=True)

    # Review
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='grades_reviewed'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_comments = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.student} - {self.exam.name}: {self.final_score} ({self.get_result_display()})"

    @property
    def is_final(self):
        return self.state in (self.State.FINALIZED, self.State.REVIEWED)

    @property
    def passed(self):
        return self.is_final and self.result == self.Result.PASS

    def calculate_final_score(self):
        """Weighted score from the stored category scores (not saved)."""
        return compute_weighted_score(
            (s.score, s.weight) for s in self.category_scores.all()
        )

    class Meta:
        db_table = 'exam_grade'
        ordering = ['-created_at']
        verbose_name = 'Grade'
        verbose_name_plural = 'Grades'
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'student'],
                condition=Q(is_active=True),
                name='unique_active_grade_per_exam_student'
            ),
        ]
        indexes = [
            models.Index(fields=['exam', 'state'], name='grade_exam_state_idx'),
            models.Index(fields=['student', 'result'], name='grade_student_result_idx'),
        ]


class CategoryScore(models.Model):
    """Score for one exam category. Name and weight are copied from the exam."""
    grade = models.ForeignKey(
        Grade,
        on_delete=models.CASCADE,
        related_name='category_scores'
    )
    category = models.CharField(max_length=50)
    score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    notes = models.CharField(max_length=300, blank=True)
    position = models.PositiveSmallIntegerField(default=0)

    def __str__(self):
        return f"{self.category}: {self.score} (x{self.weight}%)"

    class Meta:
        db_table = 'exam_category_score'
        ordering = ['position', 'id']
        unique_together = ['grade', 'category']
