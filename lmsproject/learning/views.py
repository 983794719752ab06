"""
Learning app views - attempt submission and status, chapter progress and
the course progress summary.

Student operations run for the authenticated principal. An admin may pass
``student_id`` to act on a student's behalf.
"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from courses.exceptions import ValidationFailed
from learning.serializers import AttemptSerializer, ChapterProgressSerializer
from learning.services.attempts import attempt_status, record_attempt
from learning.services.progress import CourseProgressService


def student_id_for(request):
    """Explicit ``student_id`` from the body or query string, else the caller"""
    student_id = None
    if isinstance(request.data, dict):
        student_id = request.data.get('student_id')
    student_id = student_id or request.query_params.get('student_id')
    return str(student_id) if student_id else str(request.user.id)


class AttemptSubmitView(APIView):
    """
    POST /api/assessments/<id>/attempts/

    Body: ``{"answers": {"<question id>": <value>, ...}, "student_id"?}``
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, assessment_id):
        if not isinstance(request.data, dict):
            raise ValidationFailed('Request body must be a JSON object')
        result = record_attempt(
            assessment_id,
            student_id_for(request),
            request.data.get('answers'),
            principal=request.user,
        )
        attempt = result['attempt']
        return Response({
            'attempt_id': str(attempt.id),
            'attempt_number': attempt.attempt_number,
            'score': attempt.score,
            'max_score': attempt.max_score,
            'attempts_remaining': result['attempts_remaining'],
            'submitted_at': attempt.submitted_at,
        }, status=status.HTTP_201_CREATED)


class AttemptStatusView(APIView):
    """GET /api/assessments/<id>/attempts/status/?student_id=<id>"""
    permission_classes = [IsAuthenticated]

    def get(self, request, assessment_id):
        result = attempt_status(assessment_id, student_id_for(request), principal=request.user)
        latest = result['latest_attempt']
        return Response({
            'assessment_id': str(result['assessment'].id),
            'attempts_used': result['attempts_used'],
            'attempts_allowed': result['attempts_allowed'],
            'attempts_remaining': result['attempts_remaining'],
            'can_attempt': result['can_attempt'],
            'latest_attempt': AttemptSerializer(latest).data if latest else None,
        })


class ChapterCompleteView(APIView):
    """POST /api/progress/chapters/<id>/complete/"""
    permission_classes = [IsAuthenticated]

    def post(self, request, chapter_id):
        progress = CourseProgressService.mark_chapter_complete(
            chapter_id, student_id_for(request), principal=request.user
        )
        return Response(ChapterProgressSerializer(progress).data)


class ChapterTimeView(APIView):
    """POST /api/progress/chapters/<id>/time/ with ``{"seconds": int}``"""
    permission_classes = [IsAuthenticated]

    def post(self, request, chapter_id):
        if not isinstance(request.data, dict):
            raise ValidationFailed('Request body must be a JSON object')
        progress = CourseProgressService.record_time_spent(
            chapter_id, student_id_for(request), request.data.get('seconds'), principal=request.user
        )
        return Response(ChapterProgressSerializer(progress).data)


class CompletedChaptersView(APIView):
    """GET /api/progress/courses/<id>/completed/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, course_id):
        chapter_ids = CourseProgressService.completed_chapter_ids(
            course_id, student_id_for(request), principal=request.user
        )
        return Response({'completed_chapter_ids': chapter_ids})


class CourseProgressSummaryView(APIView):
    """GET /api/progress/courses/<id>/summary/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, course_id):
        summary = CourseProgressService.summarize_course_progress(
            course_id, student_id_for(request), principal=request.user
        )
        return Response(summary)
