"""
Courses app URL configuration - content tree and question bank routes
"""
from django.urls import path

from .views import (
    AssessmentDetailView, AssessmentListCreateView, AssessmentQuestionUploadView,
    AssessmentQuestionsView, ChapterDetailView, CourseBuildView, CourseChapterListView,
    CourseDetailView, CourseListCreateView,
)

# Ids are matched as plain strings so malformed ids get the JSON not-found body
urlpatterns = [
    path('assessments/', AssessmentListCreateView.as_view(), name='assessment-list'),
    path('assessments/<str:assessment_id>/', AssessmentDetailView.as_view(), name='assessment-detail'),
    path('assessments/<str:assessment_id>/questions/', AssessmentQuestionsView.as_view(), name='assessment-questions'),
    path(
        'assessments/<str:assessment_id>/questions/upload/',
        AssessmentQuestionUploadView.as_view(),
        name='assessment-questions-upload',
    ),
    path('courses/', CourseListCreateView.as_view(), name='course-list'),
    path('courses/full/', CourseBuildView.as_view(), name='course-build'),
    path('courses/<str:course_id>/', CourseDetailView.as_view(), name='course-detail'),
    path('courses/<str:course_id>/chapters/', CourseChapterListView.as_view(), name='course-chapters'),
    path('chapters/<str:chapter_id>/', ChapterDetailView.as_view(), name='chapter-detail'),
]
