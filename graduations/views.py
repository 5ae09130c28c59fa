from django.core.paginator import Paginator
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from core.api import (
    admin_required, staff_required, service_view,
    parse_json_body, success_response,
)
from core.exceptions import ValidationError

from . import services


def graduation_as_dict(graduation):
    return {
        'id': graduation.pk,
        'exam_id': graduation.exam_id,
        'grade_id': graduation.grade_id,
        'student_id': graduation.student_id,
        'previous_belt': graduation.previous_belt,
        'new_belt': graduation.new_belt,
        'graduation_date': graduation.graduation_date,
        'state': graduation.state,
        'certifiers': [link.instructor_id for link in graduation.certifier_links.all()],
        'approved_by': graduation.approved_by_id,
        'approved_at': graduation.approved_at,
        'student_updated': graduation.student_updated,
        'student_updated_at': graduation.student_updated_at,
        'certificate': {
            'number': graduation.certificate_number,
            'file': graduation.certificate_file,
            'file_type': graduation.certificate_file_type,
            'file_size': graduation.certificate_file_size,
            'issued_at': graduation.certificate_issued_at,
            'issued_by': graduation.certificate_issued_by,
        },
        'ceremony': {
            'held': graduation.ceremony_held,
            'date': graduation.ceremony_date,
            'location': graduation.ceremony_location,
            'attendees': graduation.ceremony_attendees,
        },
        'notes': graduation.notes,
    }


@require_POST
@admin_required
@service_view
def process_batch(request, exam_id):
    data = parse_json_body(request)
    requests = data.get('candidates')
    if not isinstance(requests, list) or not requests:
        raise ValidationError('candidates must be a non-empty list of {student_id, grade_id}.')
    result = services.process_graduation_batch(exam_id, requests, processed_by=request.user)
    return success_response(result.as_dict())


@require_GET
@staff_required
@service_view
def graduation_detail(request, graduation_id):
    return success_response(graduation_as_dict(services.get_graduation(graduation_id)))


@require_POST
@admin_required
@service_view
def approve(request, graduation_id):
    graduation = services.approve_graduation(graduation_id, user=request.user)
    return success_response(graduation_as_dict(graduation))


@require_POST
@admin_required
@service_view
def certify(request, graduation_id):
    data = parse_json_body(request)
    graduation = services.certify_graduation(
        graduation_id,
        file_reference=data.get('file_reference'),
        file_type=data.get('file_type'),
        file_size=data.get('file_size'),
        certificate_number=data.get('certificate_number'),
        issued_by=data.get('issued_by', ''),
        notes=data.get('notes', ''),
        user=request.user,
    )
    return success_response(graduation_as_dict(graduation))


@require_POST
@admin_required
@service_view
def cancel(request, graduation_id):
    data = parse_json_body(request)
    graduation = services.cancel_graduation(graduation_id, data.get('reason'), user=request.user)
    return success_response(graduation_as_dict(graduation))


@require_POST
@admin_required
@service_view
def ceremony(request, graduation_id):
    data = parse_json_body(request)
    try:
        ceremony_date = parse_date(str(data.get('date') or ''))
    except ValueError:
        ceremony_date = None
    if ceremony_date is None:
        raise ValidationError('Ceremony date must be a date (YYYY-MM-DD).')
    graduation = services.record_ceremony(
        graduation_id,
        date=ceremony_date,
        location=data.get('location', ''),
        attendees=data.get('attendees', 0),
        user=request.user,
    )
    return success_response(graduation_as_dict(graduation))


@require_GET
@staff_required
@service_view
def statistics(request):
    return success_response(services.graduation_statistics(request.GET.get('exam_id')))


def _paginated(request, graduations):
    """Page through a graduation queryset the way the list screens do (25/50/100 per page)."""
    per_page = request.GET.get('per_page', '25')
    try:
        per_page = int(per_page)
        if per_page not in [25, 50, 100]:
            per_page = 25
    except ValueError:
        per_page = 25

    paginator = Paginator(graduations, per_page)
    page_obj = paginator.get_page(request.GET.get('page', 1))
    return {
        'results': [graduation_as_dict(g) for g in page_obj],
        'total': paginator.count,
        'page': page_obj.number,
        'pages': paginator.num_pages,
    }


def _query_date(request, name):
    value = request.GET.get(name)
    if not value:
        return None
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f'{name} must be a date (YYYY-MM-DD).')
    return parsed


@require_GET
@staff_required
@service_view
def graduation_list(request):
    graduations = services.list_graduations(
        exam_id=request.GET.get('exam_id') or None,
        student_id=request.GET.get('student_id') or None,
        date_from=_query_date(request, 'date_from'),
        date_to=_query_date(request, 'date_to'),
    )
    return success_response(_paginated(request, graduations))


@require_GET
@staff_required
@service_view
def exam_graduations(request, exam_id):
    graduations = [graduation_as_dict(g) for g in services.exam_graduations(exam_id)]
    return success_response({'results': graduations, 'total': len(graduations)})


@require_GET
@staff_required
@service_view
def student_history(request, student_id):
    graduations = [graduation_as_dict(g) for g in services.student_graduation_history(student_id)]
    return success_response({'results': graduations, 'total': len(graduations)})


@require_GET
@staff_required
@service_view
def awaiting_approval(request):
    return success_response(_paginated(request, services.graduations_awaiting_approval()))


@require_GET
@staff_required
@service_view
def without_certificate(request):
    return success_response(_paginated(request, services.graduations_without_certificate()))
