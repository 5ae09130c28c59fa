from django.utils.dateparse import parse_date, parse_time
from django.views.decorators.http import require_GET, require_POST

from core.api import (
    admin_required, staff_required, service_view,
    parse_json_body, success_response,
)
from core.exceptions import ValidationError

from . import services


def exam_as_dict(exam, include_candidates=False):
    data = {
        'id': exam.pk,
        'name': exam.name,
        'description': exam.description,
        'exam_type': exam.exam_type,
        'date': exam.date,
        'time': exam.time.isoformat() if exam.time else None,
        'target_belt': exam.target_belt,
        'required_belt': exam.required_belt,
        'status': exam.status,
        'version': exam.version,
        'is_active': exam.is_active,
        'requirements': {
            'min_attendance_percent': exam.min_attendance_percent,
            'min_days_since_belt': exam.min_days_since_belt,
            'payment_must_be_current': exam.payment_must_be_current,
            'fee': exam.fee,
        },
        'min_passing_score': exam.min_passing_score,
        'categories': [
            {'name': c.name, 'description': c.description, 'weight': c.weight, 'order': c.order}
            for c in exam.categories.all()
        ],
        'instructors': [u.pk for u in exam.instructors.all()],
        'totals': {
            'enrolled': exam.total_enrolled,
            'meeting_requirements': exam.candidates_meeting_requirements,
            'collected': exam.total_collected,
            'outstanding': exam.total_outstanding,
        },
    }
    if include_candidates:
        data['candidates'] = [
            candidate_as_dict(c) for c in exam.candidates.select_related('student')
        ]
    return data


def candidate_as_dict(candidate):
    return {
        'student_id': candidate.student_id,
        'student_name': candidate.student.full_name,
        'enrolled_at': candidate.enrolled_at,
        'payment': {
            'discount_percent': candidate.discount_percent,
            'fee_due': candidate.fee_due,
            'amount_paid': candidate.amount_paid,
            'paid': candidate.paid,
            'paid_at': candidate.paid_at,
            'reference': candidate.payment_reference,
            'waived': candidate.payment_waived,
            'waived_by': candidate.waived_by_id,
            'waiver_reason': candidate.waiver_reason,
        },
        'eligibility': candidate.eligibility_snapshot(),
        'meets_requirements': candidate.meets_requirements,
        'graded': candidate.graded,
        'passed': candidate.passed,
    }


def _parse_date(value, field_name, required=True):
    if not value:
        if required:
            raise ValidationError(f'{field_name} is required.')
        return None
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f'{field_name} must be a date (YYYY-MM-DD).')
    return parsed


def _parse_time(value, field_name):
    if not value:
        return None
    try:
        parsed = parse_time(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f'{field_name} must be a time (HH:MM).')
    return parsed


@require_POST
@admin_required
@service_view
def exam_create(request):
    data = parse_json_body(request)
    exam = services.create_exam(
        name=data.get('name'),
        date=_parse_date(data.get('date'), 'Exam date'),
        time=_parse_time(data.get('time'), 'Exam time'),
        exam_type=data.get('exam_type', 'graduation'),
        description=data.get('description', ''),
        target_belt=data.get('target_belt', ''),
        required_belt=data.get('required_belt', ''),
        instructors=data.get('instructors'),
        categories=data.get('categories'),
        min_attendance_percent=data.get('min_attendance_percent'),
        min_days_since_belt=data.get('min_days_since_belt'),
        payment_must_be_current=data.get('payment_must_be_current'),
        fee=data.get('fee'),
        min_passing_score=data.get('min_passing_score'),
        notes=data.get('notes', ''),
        created_by=request.user,
    )
    return success_response(exam_as_dict(exam), status=201)


@require_GET
@staff_required
@service_view
def exam_detail(request, exam_id):
    exam = services.get_exam(exam_id)
    return success_response(exam_as_dict(exam, include_candidates=True))


@require_POST
@admin_required
@service_view
def exam_status(request, exam_id):
    data = parse_json_body(request)
    exam = services.change_exam_status(
        exam_id, data.get('status'),
        user=request.user,
        expected_version=data.get('expected_version'),
    )
    return success_response(exam_as_dict(exam))


@require_POST
@admin_required
@service_view
def exam_categories(request, exam_id):
    data = parse_json_body(request)
    exam = services.replace_categories(
        exam_id, data.get('categories') or [],
        user=request.user,
        expected_version=data.get('expected_version'),
    )
    return success_response(exam_as_dict(exam))


@require_GET
@staff_required
@service_view
def student_eligibility(request, exam_id, student_id):
    result = services.get_eligibility(
        student_id, exam_id,
        since=_parse_date(request.GET.get('since'), 'since', required=False),
        until=_parse_date(request.GET.get('until'), 'until', required=False),
    )
    return success_response(result.as_dict())


@require_GET
@staff_required
@service_view
def eligible_students(request, exam_id):
    rows = services.list_eligible_students(exam_id)
    return success_response([
        {'student_id': student.pk, 'student_name': student.full_name, **result.as_dict()}
        for student, result in rows
    ])


@require_POST
@staff_required
@service_view
def enroll(request, exam_id):
    data = parse_json_body(request)
    waive_payment = bool(data.get('waive_payment'))
    candidate = services.enroll_candidate(
        exam_id,
        data.get('student_id'),
        discount_percent=data.get('discount_percent', 0),
        waive_payment=waive_payment,
        waived_by=request.user if waive_payment else None,
        waiver_reason=data.get('waiver_reason', ''),
        require_eligibility=bool(data.get('require_eligibility')),
        expected_version=data.get('expected_version'),
        user=request.user,
    )
    return success_response(candidate_as_dict(candidate), status=201)


@require_POST
@staff_required
@service_view
def unenroll(request, exam_id, student_id):
    data = parse_json_body(request)
    services.unenroll_candidate(
        exam_id, student_id,
        user=request.user,
        expected_version=data.get('expected_version'),
    )
    return success_response({'student_id': student_id})


@require_POST
@staff_required
@service_view
def record_payment(request, exam_id, student_id):
    data = parse_json_body(request)
    candidate = services.record_exam_payment(
        exam_id, student_id, data.get('amount'), data.get('reference', ''),
        user=request.user,
        expected_version=data.get('expected_version'),
    )
    return success_response(candidate_as_dict(candidate))


@require_POST
@staff_required
@service_view
def refresh_eligibility(request, exam_id, student_id):
    candidate = services.refresh_eligibility(exam_id, student_id, user=request.user)
    return success_response(candidate_as_dict(candidate))
