"""
Exam aggregate services: exam setup, candidate enrollment and exam fees.

Every mutation of an exam (its categories, status or candidate list) runs in
one transaction holding the exam row lock and bumps ``Exam.version``. Callers
that read an exam and act on it later can pass ``expected_version`` to detect
a concurrent change.
"""
import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.choices import BeltRank, TARGET_BELT_CHOICES, REQUIRED_BELT_CHOICES
from core.exceptions import (
    ValidationError, NotFoundError, ConflictError, StateError,
    CategoryWeightInvalid, NotEnrolled, AlreadyEnrolled, BeltMismatch,
    NotEligible, GradeAlreadyExists,
)
from core.utils import to_decimal
from gradebook import config as gradebook_config
from students.models import Student

from . import config
from .eligibility import EligibilityEvaluator
from .models import Exam, ExamCategory, ExamCandidate

logger = logging.getLogger(__name__)

User = get_user_model()

# Allowed exam status changes
STATUS_TRANSITIONS = {
    Exam.Status.SCHEDULED: {Exam.Status.IN_PROGRESS, Exam.Status.COMPLETED, Exam.Status.CANCELLED},
    Exam.Status.IN_PROGRESS: {Exam.Status.COMPLETED, Exam.Status.CANCELLED},
    Exam.Status.COMPLETED: set(),
    Exam.Status.CANCELLED: set(),
}


# =============================================================================
# LOOKUPS
# =============================================================================

def get_exam(exam_id, for_update=False):
    queryset = Exam.objects.select_for_update() if for_update else Exam.objects.all()
    try:
        return queryset.get(pk=exam_id)
    except (Exam.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Exam {exam_id} not found.", code='exam_not_found')


def _parse_version(expected_version):
    if expected_version is None:
        return None
    if isinstance(expected_version, bool):
        raise ValidationError('expected_version must be a whole number.', code='invalid_version')
    try:
        return int(expected_version)
    except (TypeError, ValueError):
        raise ValidationError(
            'expected_version must be a whole number.',
            code='invalid_version',
            details={'expected_version': str(expected_version)}
        )


def lock_exam(exam_id, expected_version=None):
    """Lock the exam row. Must be called inside transaction.atomic()."""
    expected_version = _parse_version(expected_version)
    exam = get_exam(exam_id, for_update=True)
    if expected_version is not None and exam.version != expected_version:
        raise ConflictError(
            'The exam was modified by someone else. Reload and try again.',
            code='stale_exam',
            details={'expected_version': expected_version, 'current_version': exam.version}
        )
    return exam


def get_student(student_id):
    try:
        return Student.objects.get(pk=student_id)
    except (Student.DoesNotExist, TypeError, ValueError):
        raise NotFoundError(f"Student {student_id} not found.", code='student_not_found')


def get_candidate(exam, student_id, for_update=False):
    queryset = ExamCandidate.objects.select_related('student', 'exam')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(exam=exam, student_id=student_id)
    except (ExamCandidate.DoesNotExist, TypeError, ValueError):
        raise NotEnrolled(details={'exam_id': str(exam.pk), 'student_id': student_id})


# =============================================================================
# EXAM SETUP
# =============================================================================

def validate_categories(categories):
    """
    Validate and normalize category definitions.

    Accepts an iterable of dicts with ``name``, ``weight`` and optional
    ``description``/``order``. Weights must each be within 0-100 and add up to
    100 (within the configured tolerance) when any category is given.
    """
    if categories is None:
        categories = []
    if not isinstance(categories, (list, tuple)):
        raise ValidationError('Categories must be a list.', code='invalid_categories')

    cleaned = []
    seen = set()
    for index, category in enumerate(categories):
        if not isinstance(category, dict):
            raise ValidationError(
                'Each category must be an object with a name and a weight.',
                code='invalid_categories',
                details={'index': index}
            )
        name = str(category.get('name') or '').strip()
        if not name:
            raise ValidationError('Category name is required.', details={'index': index})
        if name.lower() in seen:
            raise ValidationError(f"Duplicate category '{name}'.", details={'name': name})
        seen.add(name.lower())
        weight = to_decimal(
            category.get('weight'), f"Weight of '{name}'",
            minimum=Decimal('0'), maximum=Decimal('100'),
            error_class=CategoryWeightInvalid,
        )
        cleaned.append({
            'name': name,
            'weight': weight,
            'description': str(category.get('description') or '').strip(),
            'order': category.get('order', index),
        })

    if cleaned:
        total = sum(c['weight'] for c in cleaned)
        if abs(total - Decimal('100')) > config.WEIGHT_SUM_TOLERANCE:
            raise CategoryWeightInvalid(
                f'Category weights must add up to 100% (got {total}%).',
                code='weight_sum_invalid',
                details={'total': str(total)}
            )
    return cleaned


def _validate_belts(exam_type, target_belt, required_belt):
    if exam_type != Exam.ExamType.GRADUATION:
        return
    if not target_belt or not required_belt:
        raise ValidationError('Graduation exams need both a target belt and a required belt.')
    if target_belt not in dict(TARGET_BELT_CHOICES):
        raise ValidationError(f"Invalid target belt '{target_belt}'.", details={'target_belt': target_belt})
    if required_belt not in dict(REQUIRED_BELT_CHOICES):
        raise ValidationError(f"Invalid required belt '{required_belt}'.", details={'required_belt': required_belt})
    if BeltRank.rank_index(target_belt) <= BeltRank.rank_index(required_belt):
        raise ValidationError(
            'The target belt must rank above the required belt.',
            details={'target_belt': target_belt, 'required_belt': required_belt}
        )


def _resolve_instructors(instructors):
    """Accept users or user ids; every one must be an active instructor."""
    resolved = []
    for item in instructors or []:
        if isinstance(item, User):
            user = item
        else:
            try:
                user = User.objects.get(pk=item)
            except (User.DoesNotExist, TypeError, ValueError):
                raise NotFoundError(f"User {item} not found.", code='user_not_found')
        if not user.is_active or not user.is_instructor:
            raise ValidationError(
                f'{user.email} is not an active instructor.',
                code='invalid_instructor',
                details={'user_id': user.pk}
            )
        if user not in resolved:
            resolved.append(user)
    return resolved


def create_exam(*, name, date, created_by=None, exam_type=Exam.ExamType.GRADUATION,
                description='', time=None, target_belt='', required_belt='',
                instructors=None, categories=None, min_attendance_percent=None,
                min_days_since_belt=None, payment_must_be_current=None, fee=None,
                min_passing_score=None, notes=''):
    """Create an exam with its categories. Unset requirements take the configured defaults."""
    name = str(name or '').strip()
    if not name:
        raise ValidationError('Exam name is required.')
    if not date:
        raise ValidationError('Exam date is required.')
    if exam_type not in Exam.ExamType.values:
        raise ValidationError(f"Invalid exam type '{exam_type}'.")

    _validate_belts(exam_type, target_belt, required_belt)
    cleaned_categories = validate_categories(categories)
    instructor_users = _resolve_instructors(instructors)

    if min_attendance_percent is None:
        min_attendance_percent = config.DEFAULT_MIN_ATTENDANCE_PERCENT
    if min_days_since_belt is None:
        min_days_since_belt = config.DEFAULT_MIN_DAYS_SINCE_BELT
    if payment_must_be_current is None:
        payment_must_be_current = config.DEFAULT_PAYMENT_MUST_BE_CURRENT
    if fee is None:
        fee = config.DEFAULT_EXAM_FEE
    if min_passing_score is None:
        min_passing_score = gradebook_config.DEFAULT_MIN_PASSING_SCORE

    min_attendance_percent = to_decimal(min_attendance_percent, 'Minimum attendance', Decimal('0'), Decimal('100'))
    fee = to_decimal(fee, 'Exam fee', minimum=Decimal('0'))
    min_passing_score = to_decimal(min_passing_score, 'Minimum passing score', Decimal('0'), Decimal('100'))
    try:
        min_days_since_belt = int(min_days_since_belt)
    except (TypeError, ValueError):
        raise ValidationError('Minimum days with belt must be a whole number.')
    if min_days_since_belt < 0:
        raise ValidationError('Minimum days with belt cannot be negative.')

    with transaction.atomic():
        exam = Exam.objects.create(
            name=name,
            description=description or '',
            exam_type=exam_type,
            date=date,
            time=time,
            target_belt=target_belt or '',
            required_belt=required_belt or '',
            min_attendance_percent=min_attendance_percent,
            min_days_since_belt=min_days_since_belt,
            payment_must_be_current=bool(payment_must_be_current),
            fee=fee,
            min_passing_score=min_passing_score,
            notes=notes or '',
            created_by=created_by,
            modified_by=created_by,
        )
        ExamCategory.objects.bulk_create([
            ExamCategory(exam=exam, **category) for category in cleaned_categories
        ])
        # One add() per instructor keeps the through rows in the given order
        for instructor in instructor_users:
            exam.instructors.add(instructor)

    logger.info(f"Exam '{exam.name}' ({exam.pk}) created with {len(cleaned_categories)} categories")
    return exam


def replace_categories(exam_id, categories, *, user=None, expected_version=None):
    """Replace all categories of an exam. Refused once grading has started."""
    from gradebook.models import Grade

    cleaned = validate_categories(categories)

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if Grade.objects.filter(exam=exam, is_active=True).exists():
            raise StateError(
                'Categories cannot change once grades have been recorded.',
                code='exam_has_grades'
            )
        exam.categories.all().delete()
        ExamCategory.objects.bulk_create([
            ExamCategory(exam=exam, **category) for category in cleaned
        ])
        exam.bump_version(user)

    logger.info(f"Exam {exam.pk}: categories replaced ({len(cleaned)})")
    return exam


def change_exam_status(exam_id, status, *, user=None, expected_version=None):
    if status not in Exam.Status.values:
        raise ValidationError(f"Invalid exam status '{status}'.")

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if status == exam.status:
            return exam
        if status not in STATUS_TRANSITIONS[exam.status]:
            raise StateError(
                f"Cannot move an exam from {exam.status} to {status}.",
                details={'from': exam.status, 'to': status}
            )
        previous = exam.status
        exam.status = status
        exam.save(update_fields=['status', 'updated_at'])
        exam.bump_version(user)

    logger.info(f"Exam {exam.pk}: status {previous} -> {status}")
    return exam


def deactivate_exam(exam_id, *, user=None, expected_version=None):
    """Soft delete. Exams are never removed from the database."""
    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if not exam.is_active:
            return exam
        exam.is_active = False
        exam.save(update_fields=['is_active', 'updated_at'])
        exam.bump_version(user)

    logger.info(f"Exam {exam.pk} deactivated")
    return exam


# =============================================================================
# ELIGIBILITY
# =============================================================================

def get_eligibility(student_id, exam_id, *, today=None, since=None, until=None):
    exam = get_exam(exam_id)
    return EligibilityEvaluator(today=today, since=since, until=until).evaluate(student_id, exam)


def list_eligible_students(exam_id, *, today=None):
    """
    Students who could enroll: active, holding the required belt (graduation
    exams) and not yet enrolled. Returns (student, EligibilityResult) pairs.
    """
    exam = get_exam(exam_id)
    students = Student.objects.filter(
        is_active=True,
        status=Student.Status.ACTIVE,
    ).exclude(
        exam_enrollments__exam=exam
    )
    if exam.is_graduation:
        students = students.filter(belt_level=exam.required_belt)

    evaluator = EligibilityEvaluator(today=today)
    return [(student, evaluator.evaluate(student.pk, exam)) for student in students]


# =============================================================================
# ENROLLMENT
# =============================================================================

def _check_waiver(waive_payment, waived_by, waiver_reason):
    if not waive_payment:
        return None, ''
    if waived_by is None or not getattr(waived_by, 'can_authorize_waivers', False):
        raise ValidationError(
            'Only a school administrator can waive the exam fee.',
            code='waiver_not_authorized'
        )
    reason = str(waiver_reason or '').strip()
    if len(reason) > config.WAIVER_REASON_MAX_LENGTH:
        raise ValidationError(
            f'Waiver reason cannot exceed {config.WAIVER_REASON_MAX_LENGTH} characters.',
            details={'length': len(reason)}
        )
    return waived_by, reason


def enroll_candidate(exam_id, student_id, *, discount_percent=0, waive_payment=False,
                     waived_by=None, waiver_reason='', require_eligibility=False,
                     expected_version=None, user=None, today=None):
    """
    Add a student to an exam's candidate list with an eligibility snapshot.

    Eligibility failures only block enrollment when ``require_eligibility``
    is passed (or EXAMINATIONS_REQUIRE_ELIGIBILITY is on); otherwise the
    snapshot records them for staff to review.
    """
    discount = to_decimal(discount_percent or 0, 'Discount', Decimal('0'), Decimal('100'))
    waived_by, waiver_reason = _check_waiver(waive_payment, waived_by, waiver_reason)
    enforce = require_eligibility or config.REQUIRE_ELIGIBILITY

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if not exam.accepts_enrollment:
            raise StateError(
                f'Enrollment is closed for this exam ({exam.get_status_display()}).',
                code='enrollment_closed',
                details={'status': exam.status}
            )

        student = get_student(student_id)
        if ExamCandidate.objects.filter(exam=exam, student=student).exists():
            raise AlreadyEnrolled(details={'exam_id': str(exam.pk), 'student_id': student.pk})

        if exam.is_graduation and student.belt_level != exam.required_belt:
            raise BeltMismatch(
                f'{student.full_name} holds {student.get_belt_level_display()}; '
                f'the exam requires {BeltRank(exam.required_belt).label}.',
                details={'current_belt': student.belt_level, 'required_belt': exam.required_belt}
            )

        result = EligibilityEvaluator(today=today).evaluate(student.pk, exam)
        payment_ok = result.payment.meets_requirement or bool(waive_payment)
        eligible = result.attendance.meets_minimum and result.tenure.meets_minimum and payment_ok
        if enforce and not eligible:
            raise NotEligible(details={'reasons': result.reasons})

        candidate = ExamCandidate(
            exam=exam,
            student=student,
            discount_percent=discount,
            payment_waived=bool(waive_payment),
            waived_by=waived_by,
            waiver_reason=waiver_reason,
        )
        candidate.apply_eligibility(result)
        try:
            with transaction.atomic():
                candidate.save()
        except IntegrityError:
            raise AlreadyEnrolled(details={'exam_id': str(exam.pk), 'student_id': student.pk})

        exam.bump_version(user or waived_by)

    logger.info(
        f"Student {student.pk} enrolled in exam {exam.pk} "
        f"(eligible={eligible}, waived={candidate.payment_waived})"
    )
    return candidate


def unenroll_candidate(exam_id, student_id, *, user=None, expected_version=None):
    from gradebook.models import Grade

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if exam.status == Exam.Status.COMPLETED:
            raise StateError('Candidates cannot be removed from a completed exam.', code='exam_completed')

        candidate = get_candidate(exam, student_id, for_update=True)
        if candidate.graded or Grade.objects.filter(
            exam=exam, student_id=candidate.student_id, is_active=True
        ).exists():
            raise GradeAlreadyExists('The candidate has already been graded and cannot be removed.')

        candidate.delete()
        exam.bump_version(user)

    logger.info(f"Student {student_id} removed from exam {exam.pk}")


def record_exam_payment(exam_id, student_id, amount, reference='', *, user=None, expected_version=None):
    """
    Add a payment towards a candidate's discounted exam fee.

    Payments accumulate; the candidate is marked paid once the total covers
    ``fee * (1 - discount / 100)``. Later payments still add to the
    total; the balance never goes below zero.
    """
    amount = to_decimal(amount, 'Amount', minimum=Decimal('0'))
    if amount <= 0:
        raise ValidationError('Amount must be greater than zero.', details={'amount': str(amount)})

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        candidate = get_candidate(exam, student_id, for_update=True)
        candidate.amount_paid += amount
        candidate.paid_at = timezone.now()
        if reference:
            candidate.payment_reference = str(reference).strip()[:200]
        candidate.paid = candidate.amount_paid >= candidate.fee_due
        candidate.save(update_fields=['amount_paid', 'paid_at', 'payment_reference', 'paid'])
        exam.bump_version(user)

    logger.info(
        f"Exam {exam.pk}: payment of {amount} for student {student_id} "
        f"(total {candidate.amount_paid}/{candidate.fee_due}, paid={candidate.paid})"
    )
    return candidate


def refresh_eligibility(exam_id, student_id, *, user=None, today=None):
    """Re-run the eligibility checks and overwrite the candidate's snapshot."""
    with transaction.atomic():
        exam = lock_exam(exam_id)
        candidate = get_candidate(exam, student_id, for_update=True)
        result = EligibilityEvaluator(today=today).evaluate(candidate.student_id, exam)
        candidate.apply_eligibility(result)
        candidate.save(update_fields=[
            'attendance_percentage', 'meets_attendance', 'days_with_belt',
            'meets_belt_tenure', 'meets_payment', 'eligibility_checked_at',
        ])
        exam.bump_version(user)

    return candidate
