from django.contrib import admin

from .models import AssessmentAttempt, ChapterProgress


@admin.register(AssessmentAttempt)
class AssessmentAttemptAdmin(admin.ModelAdmin):
    list_display = ('student_id', 'assessment', 'attempt_number', 'score', 'max_score', 'submitted_at')
    search_fields = ('student_id',)

    # Attempts are immutable once submitted
    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False


@admin.register(ChapterProgress)
class ChapterProgressAdmin(admin.ModelAdmin):
    list_display = ('student_id', 'chapter', 'is_completed', 'completed_at', 'time_spent')
    list_filter = ('is_completed',)
    search_fields = ('student_id',)
