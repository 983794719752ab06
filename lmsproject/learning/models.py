"""
Learner-side records - scored assessment attempts and per-chapter progress
"""
from django.db import models
from django.utils import timezone
import uuid

from courses.models import Assessment, Chapter


class AttemptImmutable(Exception):
    """Raised when code tries to change an attempt that is already stored"""


class AssessmentAttempt(models.Model):
    """
    One scored submission. Attempts are created at submission time with all
    fields populated and are never updated afterwards; a re-submission is a
    new row with the next attempt_number.
    """

    class Status(models.TextChoices):
        SUBMITTED = 'submitted', 'Submitted'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name='attempts')
    student_id = models.CharField(max_length=64, db_index=True)
    attempt_number = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SUBMITTED)
    score = models.PositiveIntegerField()
    max_score = models.PositiveIntegerField()
    answers = models.JSONField(default=dict, blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'assessment_attempts'
        ordering = ['-submitted_at', '-attempt_number']
        constraints = [
            # Closes the count-then-insert race on max_attempts
            models.UniqueConstraint(
                fields=['assessment', 'student_id', 'attempt_number'],
                name='attempts_assessment_student_number_key',
            ),
        ]

    def __str__(self):
        return f'{self.student_id} #{self.attempt_number} on {self.assessment_id}: {self.score}/{self.max_score}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AttemptImmutable(f'Attempt {self.id} is already submitted')
        super().save(*args, **kwargs)

    @property
    def percent(self):
        if not self.max_score:
            return 0
        return self.score / self.max_score * 100


class ChapterProgress(models.Model):
    """One row per (chapter, student); completion only ever goes false -> true"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, related_name='progress_records')
    student_id = models.CharField(max_length=64, db_index=True)
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(blank=True, null=True)
    time_spent = models.PositiveIntegerField(default=0)  # seconds
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'chapter_progress'
        constraints = [
            models.UniqueConstraint(fields=['chapter', 'student_id'], name='chapter_progress_chapter_student_key'),
        ]

    def __str__(self):
        state = 'completed' if self.is_completed else 'in progress'
        return f'{self.student_id} - {self.chapter_id} ({state})'
