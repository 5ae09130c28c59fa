from django.views.decorators.http import require_GET, require_POST

from core.api import (
    staff_required, service_view,
    parse_json_body, success_response,
)

from . import services


def grade_as_dict(grade):
    return {
        'id': grade.pk,
        'exam_id': grade.exam_id,
        'student_id': grade.student_id,
        'category_scores': [
            {
                'category': s.category,
                'score': s.score,
                'weight': s.weight,
                'notes': s.notes,
            }
            for s in grade.category_scores.all()
        ],
        'final_score': grade.final_score,
        'result': grade.result,
        'min_passing_score': grade.min_passing_score,
        'state': grade.state,
        'evaluated_by': grade.evaluated_by_id,
        'evaluated_at': grade.evaluated_at,
        'general_remarks': grade.general_remarks,
        'strengths': grade.strengths,
        'areas_for_improvement': grade.areas_for_improvement,
        'distinction': grade.distinction,
        'reviewed_by': grade.reviewed_by_id,
        'reviewed_at': grade.reviewed_at,
        'review_comments': grade.review_comments,
    }


@require_GET
@staff_required
@service_view
def grade_detail(request, exam_id, student_id):
    grade = services.get_grade(exam_id, student_id)
    return success_response(grade_as_dict(grade))


@require_POST
@staff_required
@service_view
def save_scores(request, exam_id, student_id):
    """Store draft scores without finalizing."""
    data = parse_json_body(request)
    grade = services.record_scores(
        exam_id, student_id, data.get('category_scores'),
        evaluated_by=request.user,
    )
    return success_response(grade_as_dict(grade))


@require_POST
@staff_required
@service_view
def finalize(request, exam_id, student_id):
    data = parse_json_body(request)
    grade = services.finalize_grade(
        exam_id, student_id, data.get('category_scores'),
        evaluated_by=request.user,
        general_remarks=data.get('general_remarks'),
        strengths=data.get('strengths'),
        areas_for_improvement=data.get('areas_for_improvement'),
        distinction=data.get('distinction'),
        expected_version=data.get('expected_version'),
    )
    return success_response(grade_as_dict(grade))


@require_POST
@staff_required
@service_view
def review(request, grade_id):
    data = parse_json_body(request)
    grade = services.review_grade(grade_id, request.user, data.get('comments', ''))
    return success_response(grade_as_dict(grade))


@require_GET
@staff_required
@service_view
def exam_statistics(request, exam_id):
    return success_response(services.exam_grade_statistics(exam_id))


@require_GET
@staff_required
@service_view
def exam_grades(request, exam_id):
    """Grades of an exam with its pass/fail statistics."""
    grades = services.list_exam_grades(
        exam_id,
        result=request.GET.get('result'),
        state=request.GET.get('state'),
    )
    return success_response({
        'grades': [grade_as_dict(g) for g in grades],
        'statistics': services.exam_grade_statistics(exam_id),
    })


@require_GET
@staff_required
@service_view
def student_grades(request, student_id):
    grades = services.list_student_grades(
        student_id,
        exam_id=request.GET.get('exam_id') or None,
        result=request.GET.get('result'),
    )
    return success_response({'grades': [grade_as_dict(g) for g in grades], 'total': len(grades)})
