"""
Graduation processing.

``process_graduation_batch`` graduates several candidates of one exam; each
candidate runs in its own transaction so one failure does not undo the
others. The state transitions themselves live in state_machine.py.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, F
from django.utils import timezone

from core.exceptions import (
    ServiceError, ValidationError, NotFoundError, StateError,
    GradeNotApproved, AlreadyGraduated,
)
from core.utils import to_record_id
from examinations.services import get_exam, lock_exam, get_student, get_candidate
from gradebook.models import Grade
from students.models import Student

from .models import Graduation, GraduationCertifier
from .state_machine import GraduationStateMachine

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    succeeded: List[dict] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    def as_dict(self):
        return {
            'succeeded': self.succeeded,
            'failed': self.failed,
            'total': len(self.succeeded) + len(self.failed),
        }


def _load_passing_grade(exam, student_id, grade_id):
    try:
        grade = Grade.objects.select_for_update().filter(
            pk=grade_id, exam=exam, student_id=student_id, is_active=True
        ).first()
    except (DjangoValidationError, TypeError, ValueError):
        grade = None
    if grade is None or not grade.passed:
        raise GradeNotApproved(details={'grade_id': str(grade_id), 'student_id': student_id})
    return grade


def _certifiers_for(exam, processed_by):
    """Exam instructors in the order they were assigned, else the processing user."""
    links = exam.instructors.through.objects.filter(exam=exam).order_by('pk')
    instructor_ids = [link.user_id for link in links]
    if not instructor_ids and processed_by is not None:
        instructor_ids = [processed_by.pk]
    return instructor_ids


def graduate_candidate(exam_id, student_id, grade_id, *, processed_by=None, graduation_date=None):
    """
    Graduate one candidate: create the graduation, approve it (belt change)
    and update the counters, all in one transaction.
    """
    with transaction.atomic():
        exam = lock_exam(exam_id)
        if not exam.is_graduation or not exam.target_belt:
            raise ValidationError('This exam does not award a belt.', code='not_graduation_exam')

        grade = _load_passing_grade(exam, student_id, grade_id)
        student = get_student(student_id)
        candidate = get_candidate(exam, student.pk, for_update=True)

        if Graduation.objects.active().filter(exam=exam, student=student).exists():
            raise AlreadyGraduated(details={'exam_id': str(exam.pk), 'student_id': student.pk})

        try:
            with transaction.atomic():
                graduation = Graduation.objects.create(
                    exam=exam,
                    grade=grade,
                    student=student,
                    previous_belt=student.belt_level,
                    new_belt=exam.target_belt,
                    graduation_date=graduation_date or timezone.localdate(),
                    created_by=processed_by,
                    modified_by=processed_by,
                )
        except IntegrityError:
            raise AlreadyGraduated(details={'exam_id': str(exam.pk), 'student_id': student.pk})

        GraduationCertifier.objects.bulk_create([
            GraduationCertifier(graduation=graduation, instructor_id=instructor_id, position=position)
            for position, instructor_id in enumerate(_certifiers_for(exam, processed_by))
        ])

        GraduationStateMachine(graduation).approve(user=processed_by)

        Student.objects.filter(pk=student.pk).update(
            graduation_tests_passed=F('graduation_tests_passed') + 1
        )
        candidate.graded = True
        candidate.passed = True
        candidate.save(update_fields=['graded', 'passed'])
        exam.bump_version(processed_by)

    logger.info(
        f"Student {student.pk} graduated from exam {exam.pk}: "
        f"{graduation.previous_belt} -> {graduation.new_belt}"
    )
    return graduation


def process_graduation_batch(exam_id, requests, processed_by=None):
    """
    Graduate each ``{'student_id', 'grade_id'}`` request of an exam.

    A missing exam fails the whole call; any other error is recorded against
    its request and the batch moves on.
    """
    exam = get_exam(exam_id)
    result = BatchResult()

    for request in requests or []:
        student_id = request.get('student_id') if isinstance(request, dict) else None
        grade_id = request.get('grade_id') if isinstance(request, dict) else None
        entry = {'student_id': student_id, 'grade_id': str(grade_id) if grade_id else None}
        try:
            if student_id is None or grade_id is None:
                raise ValidationError('Each request needs a student_id and a grade_id.')
            student_id = to_record_id(student_id, 'student_id')
            graduation = graduate_candidate(exam.pk, student_id, grade_id, processed_by=processed_by)
        except ServiceError as e:
            logger.warning(f"Graduation of student {student_id} in exam {exam.pk} failed: {e.code} {e.message}")
            result.failed.append({**entry, 'code': e.code, 'reason': e.message})
        except DatabaseError as e:
            logger.exception(f"Database error graduating student {student_id} in exam {exam.pk}")
            result.failed.append({**entry, 'code': 'internal', 'reason': str(e)})
        else:
            result.succeeded.append({
                **entry,
                'graduation_id': str(graduation.pk),
                'new_belt': graduation.new_belt,
            })

    logger.info(
        f"Graduation batch for exam {exam.pk}: "
        f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
    )
    return result


def get_graduation(graduation_id):
    try:
        return Graduation.objects.select_related('student', 'exam', 'grade').get(pk=graduation_id)
    except (Graduation.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Graduation {graduation_id} not found.", code='graduation_not_found')


def approve_graduation(graduation_id, user=None):
    with transaction.atomic():
        return GraduationStateMachine.for_update(graduation_id).approve(user=user)


def certify_graduation(graduation_id, *, file_reference, file_type, file_size=None,
                       certificate_number=None, issued_by='', issued_at=None, notes='', user=None):
    with transaction.atomic():
        return GraduationStateMachine.for_update(graduation_id).certify(
            file_reference=file_reference,
            file_type=file_type,
            file_size=file_size,
            certificate_number=certificate_number,
            issued_by=issued_by,
            issued_at=issued_at,
            notes=notes,
            user=user,
        )


def cancel_graduation(graduation_id, reason, user=None):
    with transaction.atomic():
        return GraduationStateMachine.for_update(graduation_id).cancel(reason, user=user)


def record_ceremony(graduation_id, *, date, location='', attendees=0, user=None):
    try:
        attendees = int(attendees or 0)
    except (TypeError, ValueError):
        raise ValidationError('Attendees must be a whole number.')
    if attendees < 0:
        raise ValidationError('Attendees cannot be negative.')
    if not date:
        raise ValidationError('Ceremony date is required.')

    with transaction.atomic():
        graduation = GraduationStateMachine.for_update(graduation_id).graduation
        if graduation.state not in (Graduation.State.APPROVED, Graduation.State.CERTIFIED):
            raise StateError('Ceremonies are recorded for approved or certified graduations only.')
        graduation.ceremony_held = True
        graduation.ceremony_date = date
        graduation.ceremony_location = str(location or '').strip()[:200]
        graduation.ceremony_attendees = attendees
        graduation.modified_by = user or graduation.modified_by
        graduation.save(update_fields=[
            'ceremony_held', 'ceremony_date', 'ceremony_location',
            'ceremony_attendees', 'modified_by', 'updated_at',
        ])
    return graduation


def reconcile_pending_graduations():
    """
    Push every graduation whose belt change never reached the student through
    the approval transition again. Safe to run repeatedly.
    """
    ids = list(Graduation.objects.pending_cascade().values_list('pk', flat=True))
    repaired = 0
    failed = 0
    for graduation_id in ids:
        try:
            with transaction.atomic():
                machine = GraduationStateMachine.for_update(graduation_id)
                # Another worker may have finished it since the id was read
                if machine.graduation.student_updated:
                    continue
                machine.approve()
            repaired += 1
        except ServiceError as e:
            failed += 1
            logger.warning(f"Reconciliation of graduation {graduation_id} failed: {e.message}")
        except DatabaseError:
            failed += 1
            logger.exception(f"Database error reconciling graduation {graduation_id}")

    if ids:
        logger.info(f"Reconciled {repaired} of {len(ids)} graduations ({failed} failed)")
    return {'checked': len(ids), 'repaired': repaired, 'failed': failed}


# =============================================================================
# LISTINGS
# =============================================================================

def _with_relations(graduations):
    return graduations.select_related('student', 'exam', 'grade').prefetch_related('certifier_links')


def list_graduations(*, exam_id=None, student_id=None, date_from=None, date_to=None):
    """Active graduations, newest first, optionally narrowed by exam, student and date range."""
    graduations = Graduation.objects.active()
    if exam_id is not None:
        graduations = graduations.for_exam(get_exam(exam_id))
    if student_id is not None:
        graduations = graduations.for_student(get_student(to_record_id(student_id, 'student_id')))
    if date_from and date_to and date_from > date_to:
        raise ValidationError('date_from cannot be after date_to.')
    if date_from:
        graduations = graduations.filter(graduation_date__gte=date_from)
    if date_to:
        graduations = graduations.filter(graduation_date__lte=date_to)
    return _with_relations(graduations)


def exam_graduations(exam_id):
    return _with_relations(Graduation.objects.for_exam(get_exam(exam_id)))


def student_graduation_history(student_id):
    """Every active graduation of a student, the latest belt first."""
    student = get_student(to_record_id(student_id, 'student_id'))
    return _with_relations(Graduation.objects.for_student(student))


def graduations_awaiting_approval():
    return _with_relations(Graduation.objects.awaiting_approval())


def graduations_without_certificate():
    return _with_relations(Graduation.objects.without_certificate())


def graduation_statistics(exam_id=None):
    """Counts by state and by new belt, optionally for one exam."""
    graduations = Graduation.objects.active()
    if exam_id is not None:
        graduations = graduations.filter(exam=get_exam(exam_id))

    by_state = {state: 0 for state in Graduation.State.values}
    for row in graduations.values('state').annotate(total=Count('id')).order_by('state'):
        by_state[row['state']] = row['total']

    by_belt = {
        row['new_belt']: row['total']
        for row in graduations.values('new_belt').annotate(total=Count('id')).order_by('new_belt')
    }
    return {
        'total': sum(by_state.values()),
        'by_state': by_state,
        'by_belt': by_belt,
        'awaiting_belt_update': graduations.filter(
            state__in=[Graduation.State.PENDING, Graduation.State.APPROVED],
            student_updated=False,
        ).count(),
        'ceremonies_held': graduations.filter(ceremony_held=True).count(),
    }
