from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import AttendanceRecord


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(ModelAdmin):
    list_display = ('student', 'date', 'status', 'is_active')
    list_filter = ('status', 'is_active', 'date')
    search_fields = ('student__first_name', 'student__last_name', 'student__student_code')
    date_hierarchy = 'date'
