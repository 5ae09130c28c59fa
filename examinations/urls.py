from django.urls import path
from . import views

app_name = 'examinations'

urlpatterns = [
    # Exams
    path('', views.exam_create, name='exam_create'),
    path('<uuid:exam_id>/', views.exam_detail, name='exam_detail'),
    path('<uuid:exam_id>/status/', views.exam_status, name='exam_status'),
    path('<uuid:exam_id>/categories/', views.exam_categories, name='exam_categories'),

    # Eligibility
    path('<uuid:exam_id>/eligible-students/', views.eligible_students, name='eligible_students'),
    path('<uuid:exam_id>/eligibility/<int:student_id>/', views.student_eligibility, name='student_eligibility'),

    # Candidates
    path('<uuid:exam_id>/candidates/', views.enroll, name='enroll'),
    path('<uuid:exam_id>/candidates/<int:student_id>/unenroll/', views.unenroll, name='unenroll'),
    path('<uuid:exam_id>/candidates/<int:student_id>/payments/', views.record_payment, name='record_payment'),
    path('<uuid:exam_id>/candidates/<int:student_id>/eligibility/', views.refresh_eligibility, name='refresh_eligibility'),
]
