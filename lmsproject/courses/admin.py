from django.contrib import admin

from .models import Assessment, Chapter, Course, Question


class ChapterInline(admin.TabularInline):
    model = Chapter
    extra = 0
    fields = ('order', 'title', 'slug', 'is_preview', 'is_published')


class QuestionInline(admin.StackedInline):
    model = Question
    extra = 0


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'created_by', 'created_at')
    list_filter = ('status',)
    search_fields = ('title', 'created_by')
    inlines = [ChapterInline]


@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ('title', 'course', 'order', 'is_published')
    list_filter = ('is_published',)
    search_fields = ('title', 'slug')


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ('title', 'type', 'course', 'chapter', 'max_attempts', 'is_published')
    list_filter = ('type', 'is_published')
    search_fields = ('title',)
    inlines = [QuestionInline]
