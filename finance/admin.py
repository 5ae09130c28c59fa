from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(ModelAdmin):
    list_display = ('concept', 'student', 'amount', 'due_date', 'status', 'paid_at')
    list_filter = ('status', 'method', 'is_active')
    search_fields = ('concept', 'reference', 'student__student_code', 'student__last_name')
