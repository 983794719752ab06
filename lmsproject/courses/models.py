"""
Content tree and question bank models - courses, chapters, assessments and
their typed questions
"""
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
import uuid


class Course(models.Model):
    """A course owns an ordered list of chapters"""

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=500)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    # Opaque principal id from the identity service
    created_by = models.CharField(max_length=64, db_index=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courses'
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def is_published(self):
        return self.status == self.Status.PUBLISHED


class Chapter(models.Model):
    """Ordered content unit of a course; may carry one assessment"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='chapters')
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=250)
    description = models.TextField(blank=True, null=True)
    content = models.TextField(blank=True, null=True)
    order = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_preview = models.BooleanField(default=False)
    is_published = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'chapters'
        ordering = ['order']
        constraints = [
            # Slugs only need to be unique inside their course
            models.UniqueConstraint(fields=['course', 'slug'], name='chapters_course_slug_key'),
        ]

    def __str__(self):
        return self.title


class Assessment(models.Model):
    """
    A gradable question set. A quiz belongs to exactly one chapter of its
    course; a final belongs to the course and has no chapter.
    """

    class Type(models.TextChoices):
        QUIZ = 'quiz', 'Quiz'
        FINAL = 'final', 'Final'

    class Scope(models.TextChoices):
        CHAPTER = 'chapter', 'Chapter'
        COURSE = 'course', 'Course'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=500)
    type = models.CharField(max_length=10, choices=Type.choices, default=Type.QUIZ)
    scope = models.CharField(max_length=10, choices=Scope.choices, default=Scope.CHAPTER)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='assessments')
    chapter = models.OneToOneField(
        Chapter,
        on_delete=models.CASCADE,
        related_name='assessment',
        blank=True,
        null=True,
    )
    time_limit_seconds = models.PositiveIntegerField(blank=True, null=True)
    max_attempts = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    is_published = models.BooleanField(default=True)
    order = models.IntegerField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'assessments'
        ordering = ['order', 'created_at']
        indexes = [
            models.Index(fields=['type'], name='assessments_type_idx'),
        ]

    def __str__(self):
        return self.title

    @staticmethod
    def scope_for(assessment_type):
        if assessment_type == Assessment.Type.FINAL:
            return Assessment.Scope.COURSE
        return Assessment.Scope.CHAPTER


class Question(models.Model):
    """
    One question of an assessment. ``type`` selects which answer-key field
    is populated; the other key fields stay empty.
    """

    class Type(models.TextChoices):
        SINGLE = 'single', 'Single choice'
        MULTIPLE = 'multiple', 'Multiple choice'
        NUMERICAL = 'numerical', 'Numerical'
        MATCH = 'match', 'Match the pairs'
        SUBJECTIVE = 'subjective', 'Subjective'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name='questions')
    prompt = models.TextField()
    type = models.CharField(max_length=20, choices=Type.choices)
    order = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    points = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    # single / multiple
    options = models.JSONField(default=list, blank=True)
    correct_option_index = models.IntegerField(blank=True, null=True)
    correct_option_indexes = models.JSONField(default=list, blank=True)
    # numerical
    correct_text = models.TextField(blank=True, null=True)
    # match: [{"left": ..., "right": ...}, ...]
    pairs = models.JSONField(default=list, blank=True)
    # subjective, reference only
    sample_answer = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'assessment_questions'
        ordering = ['order']

    def __str__(self):
        return f'{self.get_type_display()}: {self.prompt[:60]}'

    def populated_key_fields(self):
        """Names of the answer-key fields that currently hold a value"""
        populated = []
        if self.correct_option_index is not None:
            populated.append('correct_option_index')
        if self.correct_option_indexes:
            populated.append('correct_option_indexes')
        if self.correct_text not in (None, ''):
            populated.append('correct_text')
        if self.pairs:
            populated.append('pairs')
        if self.sample_answer not in (None, ''):
            populated.append('sample_answer')
        return populated
