"""
Courses app views - REST endpoints for courses, chapters, assessments and
their question banks. Views translate HTTP to service calls; domain errors
raised by the services are rendered by lmsproject.exceptions.
"""

from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanAuthorAssessments, CanAuthorCourses, can_author
from courses.exceptions import ValidationFailed
from courses.serializers import AssessmentSerializer, ChapterSerializer, CourseSerializer
from courses.services import question_bank
from courses.services.course_builder import CourseBuilderService
from courses.services.question_import import import_questions


def _body(request):
    if not isinstance(request.data, dict):
        raise ValidationFailed('Request body must be a JSON object')
    return request.data


def _assessment_data(request, assessment):
    serializer = AssessmentSerializer(
        assessment, context={'include_answers': can_author(request.user)}
    )
    return serializer.data


# ============ Assessments ============

class AssessmentListCreateView(APIView):
    """
    GET  /api/assessments/?chapter_id=<id> or ?course_id=<id>
    POST /api/assessments/
    """
    permission_classes = [CanAuthorAssessments]

    def get(self, request):
        assessments = question_bank.list_assessments(
            chapter_id=request.query_params.get('chapter_id'),
            course_id=request.query_params.get('course_id'),
            principal=request.user,
        )
        include_answers = can_author(request.user)
        serializer = AssessmentSerializer(
            assessments, many=True, context={'include_answers': include_answers}
        )
        return Response(serializer.data)

    def post(self, request):
        assessment = question_bank.create_assessment(_body(request))
        assessment = question_bank.get_assessment(assessment.id)
        return Response(_assessment_data(request, assessment), status=status.HTTP_201_CREATED)


class AssessmentDetailView(APIView):
    """GET, PATCH and DELETE /api/assessments/<id>/"""
    permission_classes = [CanAuthorAssessments]

    def get(self, request, assessment_id):
        assessment = question_bank.get_assessment(assessment_id, principal=request.user)
        return Response(_assessment_data(request, assessment))

    def patch(self, request, assessment_id):
        question_bank.update_assessment(assessment_id, _body(request))
        assessment = question_bank.get_assessment(assessment_id)
        return Response(_assessment_data(request, assessment))

    def delete(self, request, assessment_id):
        question_bank.delete_assessment(assessment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AssessmentQuestionsView(APIView):
    """PUT /api/assessments/<id>/questions/ - full replace of the question list"""
    permission_classes = [CanAuthorAssessments]

    def put(self, request, assessment_id):
        data = request.data
        questions = data.get('questions') if isinstance(data, dict) else data
        question_bank.replace_questions(assessment_id, questions)
        assessment = question_bank.get_assessment(assessment_id)
        return Response(_assessment_data(request, assessment))


class AssessmentQuestionUploadView(APIView):
    """
    POST /api/assessments/<id>/questions/upload/

    Multipart upload with a ``file`` field holding a CSV, JSON or XLSX
    question file. Replaces the current questions.
    """
    permission_classes = [CanAuthorAssessments]
    parser_classes = (MultiPartParser, FormParser)

    def post(self, request, assessment_id):
        assessment, imported = import_questions(assessment_id, request.FILES.get('file'))
        assessment = question_bank.get_assessment(assessment.id)
        return Response({
            'imported': imported,
            'assessment': _assessment_data(request, assessment),
        })


# ============ Courses ============

class CourseListCreateView(APIView):
    """GET, POST /api/courses/"""
    permission_classes = [CanAuthorCourses]

    def get(self, request):
        courses = CourseBuilderService.list_courses(principal=request.user)
        return Response(CourseSerializer(courses, many=True).data)

    def post(self, request):
        course = CourseBuilderService.create_course(request.user.id, _body(request))
        return Response(CourseSerializer(course).data, status=status.HTTP_201_CREATED)


class CourseBuildView(APIView):
    """
    POST /api/courses/full/

    Body: ``{"course": {"title", "status"}, "lessons": [...]}``; creates the
    course, its chapters and the chapter quizzes in one go.
    """
    permission_classes = [CanAuthorCourses]

    def post(self, request):
        data = _body(request)
        course = CourseBuilderService.build_course(
            request.user.id, data.get('course'), data.get('lessons')
        )
        chapters = CourseBuilderService.list_chapters(course.id)
        return Response({
            'course': CourseSerializer(course).data,
            'chapters': ChapterSerializer(chapters, many=True).data,
        }, status=status.HTTP_201_CREATED)


class CourseDetailView(APIView):
    """GET, PATCH /api/courses/<id>/ - publish by patching ``status``"""
    permission_classes = [CanAuthorCourses]

    def get(self, request, course_id):
        course = CourseBuilderService.get_course(course_id, principal=request.user)
        return Response(CourseSerializer(course).data)

    def patch(self, request, course_id):
        course = CourseBuilderService.update_course(course_id, _body(request))
        return Response(CourseSerializer(course).data)


# ============ Chapters ============

class CourseChapterListView(APIView):
    """GET, POST /api/courses/<id>/chapters/"""
    permission_classes = [CanAuthorCourses]

    def get(self, request, course_id):
        chapters = CourseBuilderService.list_chapters(course_id, principal=request.user)
        return Response(ChapterSerializer(chapters, many=True).data)

    def post(self, request, course_id):
        chapter = CourseBuilderService.create_chapter(course_id, _body(request))
        return Response(ChapterSerializer(chapter).data, status=status.HTTP_201_CREATED)


class ChapterDetailView(APIView):
    """GET, PATCH, DELETE /api/chapters/<id>/"""
    permission_classes = [CanAuthorCourses]

    def get(self, request, chapter_id):
        chapter = CourseBuilderService.get_chapter(chapter_id, principal=request.user)
        return Response(ChapterSerializer(chapter).data)

    def patch(self, request, chapter_id):
        chapter = CourseBuilderService.update_chapter(chapter_id, _body(request))
        return Response(ChapterSerializer(chapter).data)

    def delete(self, request, chapter_id):
        CourseBuilderService.delete_chapter(chapter_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
