from django.urls import path
from . import views

app_name = 'gradebook'

urlpatterns = [
    path('exams/<uuid:exam_id>/grades/', views.exam_grades, name='exam_grades'),
    path('exams/<uuid:exam_id>/statistics/', views.exam_statistics, name='exam_statistics'),
    path('exams/<uuid:exam_id>/students/<int:student_id>/', views.grade_detail, name='grade_detail'),
    path('exams/<uuid:exam_id>/students/<int:student_id>/scores/', views.save_scores, name='save_scores'),
    path('exams/<uuid:exam_id>/students/<int:student_id>/finalize/', views.finalize, name='finalize'),
    path('students/<int:student_id>/grades/', views.student_grades, name='student_grades'),
    path('grades/<uuid:grade_id>/review/', views.review, name='review'),
]
