from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import Exam, ExamCategory, ExamCandidate


class ExamCategoryInline(TabularInline):
    model = ExamCategory
    extra = 0


class ExamCandidateInline(TabularInline):
    model = ExamCandidate
    extra = 0
    fields = ('student', 'discount_percent', 'amount_paid', 'paid', 'payment_waived',
              'meets_attendance', 'meets_belt_tenure', 'meets_payment', 'graded', 'passed')
    readonly_fields = ('meets_attendance', 'meets_belt_tenure', 'meets_payment', 'graded', 'passed')
    raw_id_fields = ('student',)


@admin.register(Exam)
class ExamAdmin(ModelAdmin):
    """Exams are edited through the services; the admin is mostly for inspection."""
    list_display = ('name', 'date', 'exam_type', 'required_belt', 'target_belt', 'status', 'total_enrolled', 'is_active')
    list_filter = ('status', 'exam_type', 'target_belt', 'is_active')
    search_fields = ('name',)
    date_hierarchy = 'date'
    filter_horizontal = ('instructors',)
    readonly_fields = ('version', 'created_by', 'modified_by', 'created_at', 'updated_at')
    inlines = [ExamCategoryInline, ExamCandidateInline]
