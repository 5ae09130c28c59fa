from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
from django.conf import settings
from django.utils import timezone
import uuid


class Payment(models.Model):
    """Student payment ledger entry (tuition, uniforms, exam fees...)"""
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('PAID', 'Paid'),
        ('OVERDUE', 'Overdue'),
        ('CANCELLED', 'Cancelled'),
    ]

    # Statuses that mean the student owes money
    OUTSTANDING_STATUSES = ('PENDING', 'OVERDUE')

    METHOD_CHOICES = [
        ('CASH', 'Cash'),
        ('CARD', 'Card Payment'),
        ('BANK_TRANSFER', 'Bank Transfer'),
        ('CHEQUE', 'Cheque'),
        ('DEPOSIT', 'Deposit'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey('students.Student', on_delete=models.PROTECT, related_name='payments')

    concept = models.CharField(max_length=200, help_text="What the payment is for (e.g. March tuition)")
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, blank=True)
    reference = models.CharField(max_length=200, blank=True, help_text="Bank/receipt reference")
    paid_at = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='received_payments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['student', 'status'], name='payment_student_status_idx'),
        ]

    def __str__(self):
        return f"{self.concept} - {self.amount} ({self.get_status_display()})"

    @property
    def is_outstanding(self):
        return self.is_active and self.status in self.OUTSTANDING_STATUSES

    def mark_paid(self, method='CASH', reference=''):
        self.status = 'PAID'
        self.method = method
        self.reference = reference or self.reference
        self.paid_at = timezone.now()
        self.save(update_fields=['status', 'method', 'reference', 'paid_at', 'updated_at'])
