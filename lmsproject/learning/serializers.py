from rest_framework import serializers

from .models import AssessmentAttempt, ChapterProgress


class AttemptSerializer(serializers.ModelSerializer):
    assessment_id = serializers.UUIDField(read_only=True)
    percent = serializers.SerializerMethodField()

    class Meta:
        model = AssessmentAttempt
        fields = [
            'id', 'assessment_id', 'student_id', 'attempt_number', 'status',
            'score', 'max_score', 'percent', 'submitted_at',
        ]
        read_only_fields = fields

    def get_percent(self, obj):
        return round(obj.percent, 2)


class ChapterProgressSerializer(serializers.ModelSerializer):
    chapter_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ChapterProgress
        fields = [
            'id', 'chapter_id', 'student_id', 'is_completed', 'completed_at',
            'time_spent', 'created_at', 'updated_at',
        ]
        read_only_fields = fields
