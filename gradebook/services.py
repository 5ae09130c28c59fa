"""
Grading engine: category scores, weighted final score and pass/fail.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import (
    ValidationError, NotFoundError, StateError,
    CategoryWeightInvalid, GradeAlreadyExists,
)
from core.utils import to_decimal, to_record_id
from examinations.models import Exam
from examinations.services import get_exam, lock_exam, get_candidate, get_student
from students.models import Student

from .models import Grade, CategoryScore
from .utils import compute_weighted_score, determine_result, summarize_scores, quantize_score

logger = logging.getLogger(__name__)


def validate_category_scores(exam, category_scores):
    """
    Check score input before anything is written.

    Each item is a dict with ``category``, ``score`` and optionally ``weight``
    and ``notes``. A missing weight is taken from the exam category of the
    same name.
    """
    if not category_scores:
        raise ValidationError('At least one category score is required.', code='no_scores')
    if not isinstance(category_scores, (list, tuple)):
        raise ValidationError('Category scores must be a list.', code='invalid_scores')

    exam_weights = {c.name.lower(): c.weight for c in exam.categories.all()}
    cleaned = []
    seen = set()
    for position, item in enumerate(category_scores):
        if not isinstance(item, dict):
            raise ValidationError(
                'Each category score must be an object with a category and a score.',
                code='invalid_scores',
                details={'index': position}
            )
        name = str(item.get('category') or item.get('name') or '').strip()
        if not name:
            raise ValidationError('Category name is required.', details={'index': position})
        if name.lower() in seen:
            raise ValidationError(f"Category '{name}' is scored twice.", details={'category': name})
        seen.add(name.lower())

        # Stored scores keep two decimals; compute from the same values
        score = quantize_score(
            to_decimal(item.get('score'), f"Score for '{name}'", Decimal('0'), Decimal('100'))
        )

        weight = item.get('weight')
        if weight is None:
            if name.lower() not in exam_weights:
                raise ValidationError(
                    f"No weight given for '{name}' and the exam has no such category.",
                    details={'category': name}
                )
            weight = exam_weights[name.lower()]
        weight = quantize_score(to_decimal(
            weight, f"Weight for '{name}'", Decimal('0'), Decimal('100'),
            error_class=CategoryWeightInvalid,
        ))

        cleaned.append({
            'category': name,
            'score': score,
            'weight': weight,
            'notes': str(item.get('notes') or '').strip()[:300],
            'position': position,
        })
    return cleaned


def _active_grade(exam, student_id, for_update=False):
    queryset = Grade.objects.filter(exam=exam, student_id=student_id, is_active=True)
    if for_update:
        queryset = queryset.select_for_update()
    return queryset.first()


def _create_draft(exam, candidate, evaluated_by):
    try:
        with transaction.atomic():
            return Grade.objects.create(
                exam=exam,
                student_id=candidate.student_id,
                min_passing_score=exam.min_passing_score,
                evaluated_by=evaluated_by,
            )
    except IntegrityError:
        raise GradeAlreadyExists(details={'exam_id': str(exam.pk), 'student_id': candidate.student_id})


def _replace_scores(grade, cleaned):
    grade.category_scores.all().delete()
    CategoryScore.objects.bulk_create([
        CategoryScore(grade=grade, **item) for item in cleaned
    ])


def _count_failed_attempt(student_id, previous_result, result):
    """Keep the student's failed graduation test counter at one per failed grade."""
    if result == Grade.Result.FAIL and previous_result != Grade.Result.FAIL:
        Student.objects.filter(pk=student_id).update(
            graduation_tests_failed=F('graduation_tests_failed') + 1
        )
    elif previous_result == Grade.Result.FAIL and result != Grade.Result.FAIL:
        Student.objects.filter(pk=student_id, graduation_tests_failed__gt=0).update(
            graduation_tests_failed=F('graduation_tests_failed') - 1
        )


def create_grade(exam_id, student_id, evaluated_by=None):
    """Open a draft grade for an enrolled candidate."""
    exam = get_exam(exam_id)
    candidate = get_candidate(exam, student_id)
    if _active_grade(exam, student_id) is not None:
        raise GradeAlreadyExists(details={'exam_id': str(exam.pk), 'student_id': candidate.student_id})
    grade = _create_draft(exam, candidate, evaluated_by)
    logger.info(f"Draft grade {grade.pk} opened for student {candidate.student_id} in exam {exam.pk}")
    return grade


def record_scores(exam_id, student_id, category_scores, *, evaluated_by=None):
    """Save category scores on a draft with a provisional final score."""
    exam = get_exam(exam_id)
    cleaned = validate_category_scores(exam, category_scores)

    with transaction.atomic():
        candidate = get_candidate(exam, student_id)
        grade = _active_grade(exam, student_id, for_update=True)
        if grade is None:
            grade = _create_draft(exam, candidate, evaluated_by)
        elif grade.state != Grade.State.DRAFT:
            raise StateError('Scores can only be edited on a draft grade.', code='grade_not_draft')

        _replace_scores(grade, cleaned)
        grade.final_score = compute_weighted_score((c['score'], c['weight']) for c in cleaned)
        if evaluated_by is not None:
            grade.evaluated_by = evaluated_by
        grade.save(update_fields=['final_score', 'evaluated_by', 'updated_at'])

    return grade


def finalize_grade(exam_id, student_id, category_scores=None, *, evaluated_by=None,
                   general_remarks=None, strengths=None, areas_for_improvement=None,
                   distinction=None, expected_version=None):
    """
    Compute the final score and result for a candidate.

    ``category_scores`` replaces whatever was recorded; when omitted the draft's
    stored scores are used. Finalizing again recomputes from the new input and
    is allowed until the grade has been reviewed.
    """
    from graduations.models import Graduation

    exam = get_exam(exam_id)
    cleaned = validate_category_scores(exam, category_scores) if category_scores is not None else None

    with transaction.atomic():
        exam = lock_exam(exam_id, expected_version)
        if exam.status == Exam.Status.CANCELLED:
            raise StateError('The exam was cancelled.', code='exam_cancelled')
        candidate = get_candidate(exam, student_id, for_update=True)

        grade = _active_grade(exam, student_id, for_update=True)
        if grade is None:
            grade = _create_draft(exam, candidate, evaluated_by)
        elif grade.state == Grade.State.REVIEWED:
            raise StateError('A reviewed grade cannot be changed.', code='grade_reviewed')
        elif Graduation.objects.active().filter(grade=grade).exists():
            raise StateError('The candidate has already graduated with this grade.', code='grade_graduated')

        if cleaned is not None:
            _replace_scores(grade, cleaned)
            pairs = [(c['score'], c['weight']) for c in cleaned]
        else:
            pairs = [(s.score, s.weight) for s in grade.category_scores.all()]
            if not pairs:
                raise ValidationError('At least one category score is required.', code='no_scores')

        previous_result = grade.result
        grade.final_score = compute_weighted_score(pairs)
        grade.min_passing_score = exam.min_passing_score
        grade.result = determine_result(grade.final_score, exam.min_passing_score)
        grade.state = Grade.State.FINALIZED
        grade.evaluated_at = timezone.now()
        if evaluated_by is not None:
            grade.evaluated_by = evaluated_by
        if general_remarks is not None:
            grade.general_remarks = general_remarks
        if strengths is not None:
            grade.strengths = list(strengths)
        if areas_for_improvement is not None:
            grade.areas_for_improvement = list(areas_for_improvement)
        if distinction is not None:
            grade.distinction = str(distinction)[:200]
        grade.save()

        if exam.is_graduation:
            _count_failed_attempt(candidate.student_id, previous_result, grade.result)

        candidate.graded = True
        candidate.passed = grade.result == Grade.Result.PASS
        candidate.save(update_fields=['graded', 'passed'])
        exam.bump_version(evaluated_by)

    logger.info(
        f"Grade {grade.pk} finalized for student {student_id} in exam {exam.pk}: "
        f"{grade.final_score} ({grade.result})"
    )
    return grade


def review_grade(grade_id, reviewed_by, comments=''):
    with transaction.atomic():
        try:
            grade = Grade.objects.select_for_update().get(pk=grade_id, is_active=True)
        except (Grade.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Grade {grade_id} not found.", code='grade_not_found')

        if grade.state != Grade.State.FINALIZED:
            raise StateError(
                f'Only finalized grades can be reviewed (grade is {grade.state}).',
                code='grade_not_finalized'
            )
        grade.state = Grade.State.REVIEWED
        grade.reviewed_by = reviewed_by
        grade.reviewed_at = timezone.now()
        grade.review_comments = comments or ''
        grade.save(update_fields=['state', 'reviewed_by', 'reviewed_at', 'review_comments', 'updated_at'])

    logger.info(f"Grade {grade.pk} reviewed")
    return grade


def get_grade(exam_id, student_id):
    exam = get_exam(exam_id)
    grade = Grade.objects.filter(
        exam=exam, student_id=student_id, is_active=True
    ).select_related('student', 'evaluated_by').prefetch_related('category_scores').first()
    if grade is None:
        raise NotFoundError(
            'No grade recorded for this student in this exam.',
            code='grade_not_found',
            details={'exam_id': str(exam.pk), 'student_id': student_id}
        )
    return grade


def exam_grade_statistics(exam_id):
    """Pass/fail counts and score spread for an exam's active grades."""
    exam = get_exam(exam_id)
    grades = list(Grade.objects.filter(exam=exam, is_active=True))
    final = [g for g in grades if g.is_final]
    passed = sum(1 for g in final if g.result == Grade.Result.PASS)
    failed = sum(1 for g in final if g.result == Grade.Result.FAIL)

    stats = {
        'total': len(grades),
        'passed': passed,
        'failed': failed,
        'pending': len(grades) - len(final),
        'pass_rate': quantize_score(Decimal(passed) * 100 / len(final)) if final else Decimal('0.00'),
    }
    stats.update(summarize_scores(g.final_score for g in final))
    return stats


def _check_choice(value, choices, field_name):
    if value and value not in choices.values:
        raise ValidationError(f"Invalid {field_name} '{value}'.", details={field_name: value})
    return value or None


def list_exam_grades(exam_id, *, result=None, state=None):
    """Active grades of an exam, best score first."""
    exam = get_exam(exam_id)
    grades = Grade.objects.filter(exam=exam, is_active=True)
    if _check_choice(result, Grade.Result, 'result'):
        grades = grades.filter(result=result)
    if _check_choice(state, Grade.State, 'state'):
        grades = grades.filter(state=state)
    return grades.select_related('student', 'evaluated_by').prefetch_related(
        'category_scores'
    ).order_by('-final_score', 'student__last_name')


def list_student_grades(student_id, *, exam_id=None, result=None):
    """A student's active grades across exams, most recently evaluated first."""
    student = get_student(to_record_id(student_id, 'student_id'))
    grades = Grade.objects.filter(student=student, is_active=True)
    if exam_id is not None:
        grades = grades.filter(exam=get_exam(exam_id))
    if _check_choice(result, Grade.Result, 'result'):
        grades = grades.filter(result=result)
    return grades.select_related('exam', 'evaluated_by').prefetch_related(
        'category_scores'
    ).order_by(F('evaluated_at').desc(nulls_last=True), '-created_at')
