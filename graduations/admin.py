from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import Graduation, GraduationCertifier


class GraduationCertifierInline(TabularInline):
    model = GraduationCertifier
    extra = 0


@admin.register(Graduation)
class GraduationAdmin(ModelAdmin):
    list_display = ('student', 'previous_belt', 'new_belt', 'graduation_date', 'state',
                    'student_updated', 'certificate_number')
    list_filter = ('state', 'new_belt', 'student_updated', 'ceremony_held')
    search_fields = ('student__first_name', 'student__last_name', 'certificate_number')
    date_hierarchy = 'graduation_date'
    # State changes go through GraduationStateMachine
    readonly_fields = ('state', 'previous_belt', 'new_belt', 'student_updated', 'student_updated_at',
                       'approved_by', 'approved_at', 'certificate_number', 'created_at', 'updated_at')
    inlines = [GraduationCertifierInline]
