from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import Student


@admin.register(Student)
class StudentAdmin(ModelAdmin):
    list_display = ('student_code', 'full_name', 'belt_level', 'belt_date_obtained', 'status', 'graduation_tests_passed')
    list_filter = ('belt_level', 'status', 'is_active')
    search_fields = ('student_code', 'first_name', 'last_name', 'email')
    # Belt fields change only through graduations
    readonly_fields = ('belt_level', 'belt_date_obtained', 'belt_certified_by',
                       'graduation_tests_passed', 'graduation_tests_failed', 'created_at', 'updated_at')
