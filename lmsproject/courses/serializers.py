"""
Courses app serializers - read representations of the content tree and the
question bank. Input validation lives in the services.
"""
from rest_framework import serializers

from .models import Assessment, Chapter, Course, Question


class CourseSerializer(serializers.ModelSerializer):
    chapter_count = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = ['id', 'title', 'status', 'created_by', 'chapter_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_chapter_count(self, obj):
        return obj.chapters.count()


class ChapterSerializer(serializers.ModelSerializer):
    course_id = serializers.UUIDField(read_only=True)
    assessment_id = serializers.SerializerMethodField()

    class Meta:
        model = Chapter
        fields = [
            'id', 'course_id', 'title', 'slug', 'description', 'content', 'order',
            'is_preview', 'is_published', 'assessment_id', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_assessment_id(self, obj):
        try:
            return str(obj.assessment.id)
        except Assessment.DoesNotExist:
            return None


class QuestionSerializer(serializers.ModelSerializer):
    """Full question including its answer key, for authors"""

    class Meta:
        model = Question
        fields = [
            'id', 'prompt', 'type', 'order', 'points', 'options',
            'correct_option_index', 'correct_option_indexes', 'correct_text',
            'pairs', 'sample_answer',
        ]
        read_only_fields = fields


class PublicQuestionSerializer(serializers.ModelSerializer):
    """Question as a student sees it; answer keys are left out"""
    left_items = serializers.SerializerMethodField()
    right_items = serializers.SerializerMethodField()

    class Meta:
        model = Question
        fields = ['id', 'prompt', 'type', 'order', 'points', 'options', 'left_items', 'right_items']
        read_only_fields = fields

    def get_left_items(self, obj):
        if obj.type != Question.Type.MATCH:
            return []
        return [pair['left'] for pair in obj.pairs]

    def get_right_items(self, obj):
        # Sorted so the list order does not give the pairing away
        if obj.type != Question.Type.MATCH:
            return []
        return sorted(pair['right'] for pair in obj.pairs)


class AssessmentSerializer(serializers.ModelSerializer):
    """
    Assessment with its ordered questions. Pass ``include_answers=True`` in
    the serializer context to expose answer keys.
    """
    course_id = serializers.UUIDField(read_only=True)
    chapter_id = serializers.UUIDField(read_only=True, allow_null=True)
    question_count = serializers.SerializerMethodField()
    max_score = serializers.SerializerMethodField()
    questions = serializers.SerializerMethodField()

    class Meta:
        model = Assessment
        fields = [
            'id', 'title', 'type', 'scope', 'course_id', 'chapter_id',
            'time_limit_seconds', 'max_attempts', 'is_published', 'order',
            'question_count', 'max_score', 'questions', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_question_count(self, obj):
        return len(obj.questions.all())

    def get_max_score(self, obj):
        return sum(question.points for question in obj.questions.all())

    def get_questions(self, obj):
        serializer_class = (
            QuestionSerializer if self.context.get('include_answers') else PublicQuestionSerializer
        )
        return serializer_class(obj.questions.all(), many=True).data
