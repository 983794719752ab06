from django.urls import path

from .views import (
    AttemptStatusView, AttemptSubmitView, ChapterCompleteView, ChapterTimeView,
    CompletedChaptersView, CourseProgressSummaryView,
)

urlpatterns = [
    path('assessments/<str:assessment_id>/attempts/', AttemptSubmitView.as_view(), name='attempt-submit'),
    path('assessments/<str:assessment_id>/attempts/status/', AttemptStatusView.as_view(), name='attempt-status'),
    path('progress/chapters/<str:chapter_id>/complete/', ChapterCompleteView.as_view(), name='chapter-complete'),
    path('progress/chapters/<str:chapter_id>/time/', ChapterTimeView.as_view(), name='chapter-time'),
    path('progress/courses/<str:course_id>/completed/', CompletedChaptersView.as_view(), name='course-completed-chapters'),
    path('progress/courses/<str:course_id>/summary/', CourseProgressSummaryView.as_view(), name='course-progress-summary'),
]
