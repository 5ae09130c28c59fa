from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import Grade, CategoryScore


class CategoryScoreInline(TabularInline):
    model = CategoryScore
    extra = 0
    readonly_fields = ('category', 'score', 'weight', 'notes', 'position')
    can_delete = False


@admin.register(Grade)
class GradeAdmin(ModelAdmin):
    list_display = ('student', 'exam', 'final_score', 'result', 'state', 'evaluated_at')
    list_filter = ('state', 'result', 'is_active')
    search_fields = ('student__first_name', 'student__last_name', 'exam__name')
    readonly_fields = ('final_score', 'result', 'min_passing_score', 'state',
                       'evaluated_at', 'reviewed_at', 'created_at', 'updated_at')
    inlines = [CategoryScoreInline]
