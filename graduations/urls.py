from django.urls import path
from . import views

app_name = 'graduations'

urlpatterns = [
    path('', views.graduation_list, name='graduation_list'),
    path('statistics/', views.statistics, name='statistics'),
    path('pending/', views.awaiting_approval, name='awaiting_approval'),
    path('uncertified/', views.without_certificate, name='without_certificate'),
    path('exams/<uuid:exam_id>/', views.exam_graduations, name='exam_graduations'),
    path('exams/<uuid:exam_id>/batch/', views.process_batch, name='process_batch'),
    path('students/<int:student_id>/', views.student_history, name='student_history'),
    path('<uuid:graduation_id>/', views.graduation_detail, name='graduation_detail'),
    path('<uuid:graduation_id>/approve/', views.approve, name='approve'),
    path('<uuid:graduation_id>/certify/', views.certify, name='certify'),
    path('<uuid:graduation_id>/cancel/', views.cancel, name='cancel'),
    path('<uuid:graduation_id>/ceremony/', views.ceremony, name='ceremony'),
]
