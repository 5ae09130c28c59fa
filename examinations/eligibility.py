"""
Eligibility checks for exam candidates.

Three independent signals are computed for a (student, exam) pair: attendance
ratio, days holding the current belt, and payment standing. Nothing here
writes to the database.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from django.db import DatabaseError, transaction
from django.utils import timezone

from academics.models import AttendanceRecord
from core.exceptions import NotFoundError
from finance.models import Payment
from students.models import Student

logger = logging.getLogger(__name__)


@dataclass
class AttendanceCheck:
    percentage: Decimal = Decimal('0.00')
    meets_minimum: bool = False
    present: int = 0
    total: int = 0


@dataclass
class TenureCheck:
    days: int = 0
    meets_minimum: bool = False


@dataclass
class PaymentCheck:
    meets_requirement: bool = False
    outstanding: int = 0


@dataclass
class EligibilityResult:
    student_id: int
    attendance: AttendanceCheck
    tenure: TenureCheck
    payment: PaymentCheck
    evaluated_at: datetime
    reasons: List[str] = field(default_factory=list)

    @property
    def is_eligible(self) -> bool:
        return (
            self.attendance.meets_minimum
            and self.tenure.meets_minimum
            and self.payment.meets_requirement
        )

    def as_dict(self):
        return {
            'student_id': self.student_id,
            'is_eligible': self.is_eligible,
            'attendance': {
                'percentage': str(self.attendance.percentage),
                'meets_minimum': self.attendance.meets_minimum,
                'present': self.attendance.present,
                'total': self.attendance.total,
            },
            'tenure': {
                'days': self.tenure.days,
                'meets_minimum': self.tenure.meets_minimum,
            },
            'payment': {
                'meets_requirement': self.payment.meets_requirement,
                'outstanding': self.payment.outstanding,
            },
            'reasons': list(self.reasons),
            'evaluated_at': self.evaluated_at.isoformat(),
        }


class EligibilityEvaluator:
    """
    Evaluates a student against an exam's requirements.

    ``today`` fixes the date tenure is measured against; ``since`` and
    ``until`` optionally restrict the attendance window.
    """

    def __init__(self, today=None, since=None, until=None):
        self.today = today
        self.since = since
        self.until = until

    def evaluate(self, student_id, exam) -> EligibilityResult:
        try:
            student = Student.objects.get(pk=student_id)
        except Student.DoesNotExist:
            raise NotFoundError(f"Student {student_id} not found.", code='student_not_found')

        reasons = []
        attendance = self._check_attendance(student, exam, reasons)
        tenure = self._check_tenure(student, exam, reasons)
        payment = self._check_payment(student, exam, reasons)

        return EligibilityResult(
            student_id=student.pk,
            attendance=attendance,
            tenure=tenure,
            payment=payment,
            evaluated_at=timezone.now(),
            reasons=reasons,
        )

    def _attendance_queryset(self, student):
        records = AttendanceRecord.objects.filter(student=student, is_active=True)
        if self.since:
            records = records.filter(date__gte=self.since)
        if self.until:
            records = records.filter(date__lte=self.until)
        return records

    def _check_attendance(self, student, exam, reasons) -> AttendanceCheck:
        minimum = Decimal(str(exam.min_attendance_percent))
        try:
            # Savepoint so a failed read does not poison an outer transaction
            with transaction.atomic():
                records = self._attendance_queryset(student)
                total = records.count()
                present = records.filter(status=AttendanceRecord.Status.PRESENT).count()
        except DatabaseError:
            logger.exception(f"Attendance lookup failed for student {student.pk}")
            reasons.append('Attendance records could not be read.')
            return AttendanceCheck()

        if total == 0:
            meets = minimum <= 0
            if not meets:
                reasons.append('No attendance records.')
            return AttendanceCheck(Decimal('0.00'), meets, 0, 0)

        percentage = (Decimal(present) * 100 / Decimal(total)).quantize(
            Decimal('0.01'), rounding=ROUND_HALF_UP
        )
        # Compare on integers and the exact minimum, not the rounded percentage
        meets = Decimal(present) * 100 >= minimum * total
        if not meets:
            reasons.append(f'Attendance {percentage}% is below the required {minimum}%.')
        return AttendanceCheck(percentage, meets, present, total)

    def _check_tenure(self, student, exam, reasons) -> TenureCheck:
        days = student.days_with_belt(self.today)
        meets = days >= exam.min_days_since_belt
        if not meets:
            reasons.append(
                f'{days} days with the current belt; {exam.min_days_since_belt} required.'
            )
        return TenureCheck(days, meets)

    def _check_payment(self, student, exam, reasons) -> PaymentCheck:
        if not exam.payment_must_be_current:
            return PaymentCheck(True, 0)
        try:
            with transaction.atomic():
                outstanding = Payment.objects.filter(
                    student=student,
                    is_active=True,
                    status__in=Payment.OUTSTANDING_STATUSES,
                ).count()
        except DatabaseError:
            logger.exception(f"Payment lookup failed for student {student.pk}")
            reasons.append('Payment records could not be read.')
            return PaymentCheck(False, 0)

        if outstanding:
            reasons.append(f'{outstanding} outstanding payment(s).')
        return PaymentCheck(outstanding == 0, outstanding)
