"""
Question bank service tests - validation, transactional replace, binding
rules and cascade delete
"""
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from accounts.roles import Principal
from courses.exceptions import Forbidden, NotFound, TransactionFailure, ValidationFailed
from courses.models import Assessment, Question
from courses.services import question_bank
from courses.testing import create_assessment, create_chapter, create_course, multiple, single
from learning.models import AssessmentAttempt


class ValidateQuestionsTests(TestCase):
    """Validation runs before any write and names the offending item"""

    def test_empty_list_rejected(self):
        with self.assertRaisesMessage(ValidationFailed, 'questions array is required'):
            question_bank.validate_questions([])

    def test_error_names_the_item(self):
        questions = [
            {'prompt': 'ok', 'type': 'subjective'},
            {'prompt': '   ', 'type': 'subjective'},
        ]
        with self.assertRaisesMessage(ValidationFailed, 'questions[1].prompt (or text) is required'):
            question_bank.validate_questions(questions)

    def test_text_alias_and_case_insensitive_type(self):
        cleaned = question_bank.validate_questions([
            {'text': 'Pick one', 'type': 'SINGLE', 'options': ['a', 'b'], 'correctOptionIndex': 1},
        ])
        self.assertEqual(cleaned[0]['prompt'], 'Pick one')
        self.assertEqual(cleaned[0]['type'], 'single')
        self.assertEqual(cleaned[0]['correct_option_index'], 1)

    def test_unknown_type_rejected(self):
        with self.assertRaisesMessage(ValidationFailed, 'questions[0].type must be one of'):
            question_bank.validate_questions([{'prompt': 'x', 'type': 'essay'}])

    def test_options_must_be_list(self):
        with self.assertRaisesMessage(ValidationFailed, 'questions[0].options must be an array'):
            question_bank.validate_questions([{'prompt': 'x', 'type': 'subjective', 'options': 'a,b'}])

    def test_correct_option_index_must_be_integer(self):
        with self.assertRaisesMessage(ValidationFailed, 'correct_option_index must be an integer'):
            question_bank.validate_questions([
                {'prompt': 'x', 'type': 'single', 'options': ['a'], 'correct_option_index': '0'},
            ])

    def test_single_index_out_of_range(self):
        with self.assertRaisesMessage(ValidationFailed, 'correct_option_index is out of range'):
            question_bank.validate_questions([
                {'prompt': 'x', 'type': 'single', 'options': ['a', 'b'], 'correct_option_index': 2},
            ])

    def test_multiple_indexes_sorted_and_unique(self):
        cleaned = question_bank.validate_questions([
            {'prompt': 'x', 'type': 'multiple', 'options': ['a', 'b', 'c'], 'correct_option_indexes': [2, 0]},
        ])
        self.assertEqual(cleaned[0]['correct_option_indexes'], [0, 2])
        with self.assertRaisesMessage(ValidationFailed, 'has duplicates'):
            question_bank.validate_questions([
                {'prompt': 'x', 'type': 'multiple', 'options': ['a', 'b'], 'correct_option_indexes': [1, 1]},
            ])

    def test_numerical_requires_text(self):
        with self.assertRaisesMessage(ValidationFailed, 'questions[0].correct_text is required'):
            question_bank.validate_questions([{'prompt': 'x', 'type': 'numerical', 'correct_text': ' '}])
        cleaned = question_bank.validate_questions([{'prompt': 'x', 'type': 'numerical', 'correctText': 3.5}])
        self.assertEqual(cleaned[0]['correct_text'], '3.5')

    def test_match_rejects_duplicate_lefts(self):
        with self.assertRaisesMessage(ValidationFailed, 'duplicate left'):
            question_bank.validate_questions([{
                'prompt': 'x', 'type': 'match',
                'pairs': [{'left': 'a', 'right': '1'}, {'left': ' a ', 'right': '2'}],
            }])

    def test_match_accepts_falsy_labels(self):
        data = question_bank.normalize_question({
            'prompt': 'Numbers to words', 'type': 'match',
            'pairs': [{'left': 0, 'right': 'zero'}, {'left': 1, 'right': 'one'}, {'left': False, 'right': 'no'}],
        }, 0)
        self.assertEqual(data['pairs'], [
            {'left': '0', 'right': 'zero'}, {'left': '1', 'right': 'one'}, {'left': 'False', 'right': 'no'},
        ])

    def test_match_rejects_missing_side(self):
        for pair in ({'left': None, 'right': 'x'}, {'left': 'a'}, {'left': 'a', 'right': '  '}):
            with self.subTest(pair=pair):
                with self.assertRaisesMessage(ValidationFailed, 'needs both left and right'):
                    question_bank.normalize_question({'prompt': 'x', 'type': 'match', 'pairs': [pair]}, 0)

    def test_points_and_order(self):
        cleaned = question_bank.validate_questions([
            {'prompt': 'x', 'type': 'subjective'},
            {'prompt': 'y', 'type': 'subjective', 'order': 7, 'points': 3},
        ])
        self.assertEqual([item['order'] for item in cleaned], [1, 7])
        self.assertEqual([item['points'] for item in cleaned], [1, 3])
        with self.assertRaisesMessage(ValidationFailed, 'questions[0].points must be a positive integer'):
            question_bank.validate_questions([{'prompt': 'x', 'type': 'subjective', 'points': 0}])

    def test_unused_key_fields_cleared(self):
        cleaned = question_bank.validate_questions([{
            'prompt': 'x', 'type': 'numerical', 'correct_text': '4',
            'options': ['a'], 'correct_option_index': 0, 'pairs': [{'left': 'a', 'right': 'b'}],
        }])
        self.assertEqual(cleaned[0]['options'], [])
        self.assertIsNone(cleaned[0]['correct_option_index'])
        self.assertEqual(cleaned[0]['pairs'], [])


class CreateAssessmentTests(TestCase):

    def setUp(self):
        self.course = create_course()
        self.chapter = create_chapter(self.course)
        self.questions = [{'prompt': 'Q', 'type': 'single', 'options': ['a', 'b'], 'correct_option_index': 0}]

    def test_quiz_binds_to_chapter(self):
        assessment = question_bank.create_assessment({
            'title': 'Quiz 1', 'type': 'quiz', 'course_id': str(self.course.id),
            'chapter_id': str(self.chapter.id), 'questions': self.questions,
        })
        self.assertEqual(assessment.scope, Assessment.Scope.CHAPTER)
        self.assertEqual(assessment.chapter, self.chapter)
        self.assertEqual(assessment.max_attempts, 1)
        self.assertEqual(assessment.questions.count(), 1)

    def test_final_binds_to_course(self):
        assessment = question_bank.create_assessment({
            'title': 'Final', 'type': 'final', 'course_id': str(self.course.id), 'questions': self.questions,
        })
        self.assertEqual(assessment.scope, Assessment.Scope.COURSE)
        self.assertIsNone(assessment.chapter)

    def test_unknown_course_not_found(self):
        with self.assertRaises(NotFound):
            question_bank.create_assessment({
                'title': 'Final', 'type': 'final',
                'course_id': '00000000-0000-0000-0000-000000000000', 'questions': self.questions,
            })

    def test_quiz_needs_chapter_of_same_course(self):
        other_chapter = create_chapter(create_course(title='Other'))
        with self.assertRaisesMessage(ValidationFailed, 'chapter_id is required'):
            question_bank.create_assessment({
                'title': 'Quiz', 'type': 'quiz', 'course_id': str(self.course.id), 'questions': self.questions,
            })
        with self.assertRaisesMessage(ValidationFailed, 'Invalid chapter_id for this course'):
            question_bank.create_assessment({
                'title': 'Quiz', 'type': 'quiz', 'course_id': str(self.course.id),
                'chapter_id': str(other_chapter.id), 'questions': self.questions,
            })
        self.assertFalse(Assessment.objects.exists())

    def test_chapter_holds_at_most_one_assessment(self):
        create_assessment(self.course, self.chapter, questions=[single()])
        with self.assertRaisesMessage(ValidationFailed, 'Chapter already has an assessment'):
            question_bank.create_assessment({
                'title': 'Quiz 2', 'type': 'quiz', 'course_id': str(self.course.id),
                'chapter_id': str(self.chapter.id), 'questions': self.questions,
            })

    def test_invalid_questions_create_nothing(self):
        with self.assertRaises(ValidationFailed):
            question_bank.create_assessment({
                'title': 'Final', 'type': 'final', 'course_id': str(self.course.id),
                'questions': [{'prompt': 'Q', 'type': 'bogus'}],
            })
        self.assertFalse(Assessment.objects.exists())


class ReplaceQuestionsTests(TestCase):

    def setUp(self):
        self.course = create_course()
        self.assessment = create_assessment(self.course, questions=[single(), multiple(points=2)])
        self.original_ids = set(self.assessment.questions.values_list('id', flat=True))

    def _current_ids(self):
        return set(Question.objects.filter(assessment=self.assessment).values_list('id', flat=True))

    def test_full_replace(self):
        question_bank.replace_questions(self.assessment.id, [
            {'prompt': 'New', 'type': 'numerical', 'correct_text': '42'},
        ])
        questions = list(self.assessment.questions.all())
        self.assertEqual(len(questions), 1)
        self.assertEqual(questions[0].type, 'numerical')
        self.assertEqual(questions[0].order, 1)
        self.assertFalse(self._current_ids() & self.original_ids)

    def test_empty_replace_keeps_prior_questions(self):
        with self.assertRaises(ValidationFailed):
            question_bank.replace_questions(self.assessment.id, [])
        self.assertEqual(self._current_ids(), self.original_ids)

    def test_bad_item_keeps_prior_questions(self):
        with self.assertRaisesMessage(ValidationFailed, 'questions[1]'):
            question_bank.replace_questions(self.assessment.id, [
                {'prompt': 'fine', 'type': 'subjective'},
                {'prompt': 'broken', 'type': 'single', 'options': []},
            ])
        self.assertEqual(self._current_ids(), self.original_ids)

    def test_storage_failure_rolls_back(self):
        with mock.patch.object(Question.objects, 'bulk_create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(TransactionFailure):
                question_bank.replace_questions(self.assessment.id, [
                    {'prompt': 'New', 'type': 'subjective'},
                ])
        self.assertEqual(self._current_ids(), self.original_ids)

    def test_unknown_assessment(self):
        with self.assertRaises(NotFound):
            question_bank.replace_questions('not-a-uuid', [{'prompt': 'x', 'type': 'subjective'}])


class UpdateAssessmentTests(TestCase):

    def setUp(self):
        self.course = create_course()
        self.chapter = create_chapter(self.course)
        self.assessment = create_assessment(self.course, self.chapter, questions=[single()])

    def test_patch_settings(self):
        question_bank.update_assessment(self.assessment.id, {
            'title': 'Renamed', 'max_attempts': 3, 'is_published': False, 'time_limit_seconds': 600,
        })
        self.assessment.refresh_from_db()
        self.assertEqual(self.assessment.title, 'Renamed')
        self.assertEqual(self.assessment.max_attempts, 3)
        self.assertFalse(self.assessment.is_published)
        self.assertEqual(self.assessment.time_limit_seconds, 600)

    def test_max_attempts_must_be_positive(self):
        with self.assertRaises(ValidationFailed):
            question_bank.update_assessment(self.assessment.id, {'max_attempts': 0})
        self.assessment.refresh_from_db()
        self.assertEqual(self.assessment.max_attempts, 1)

    def test_type_change_rederives_scope(self):
        question_bank.update_assessment(self.assessment.id, {'type': 'final'})
        self.assessment.refresh_from_db()
        self.assertEqual(self.assessment.scope, Assessment.Scope.COURSE)
        self.assertIsNone(self.assessment.chapter)

    def test_unknown_assessment(self):
        with self.assertRaises(NotFound):
            question_bank.update_assessment('00000000-0000-0000-0000-000000000000', {'title': 'x'})


class DeleteAssessmentTests(TestCase):

    def test_delete_removes_questions_and_attempts(self):
        course = create_course()
        assessment = create_assessment(course, questions=[single(), multiple()])
        AssessmentAttempt.objects.create(
            assessment=assessment, student_id='s1', attempt_number=1, score=1, max_score=2,
        )

        question_bank.delete_assessment(assessment.id)

        self.assertFalse(Question.objects.filter(assessment_id=assessment.id).exists())
        self.assertFalse(AssessmentAttempt.objects.filter(assessment_id=assessment.id).exists())
        with self.assertRaises(NotFound):
            question_bank.get_assessment(assessment.id)


class AssessmentVisibilityTests(TestCase):

    def setUp(self):
        self.course = create_course()
        self.visible = create_assessment(self.course, create_chapter(self.course, 1), questions=[single()])
        self.hidden = create_assessment(
            self.course, create_chapter(self.course, 2), questions=[single()], is_published=False,
        )
        self.student = Principal('s1', 'student')
        self.admin = Principal('a1', 'admin')

    def test_student_cannot_read_unpublished(self):
        with self.assertRaises(Forbidden):
            question_bank.get_assessment(self.hidden.id, principal=self.student)
        self.assertEqual(question_bank.get_assessment(self.hidden.id, principal=self.admin), self.hidden)

    def test_list_filters_unpublished_for_students(self):
        student_view = question_bank.list_assessments(course_id=self.course.id, principal=self.student)
        admin_view = question_bank.list_assessments(course_id=self.course.id, principal=self.admin)
        self.assertEqual([a.id for a in student_view], [self.visible.id])
        self.assertEqual(len(admin_view), 2)

    def test_quiz_on_hidden_chapter_stays_hidden(self):
        hidden_chapter = create_chapter(self.course, 3, is_published=False)
        quiz = create_assessment(self.course, hidden_chapter, questions=[single()])
        owner = Principal('owner-1', 'instructor')

        student_view = question_bank.list_assessments(course_id=self.course.id, principal=self.student)
        self.assertNotIn(quiz.id, [a.id for a in student_view])
        with self.assertRaisesMessage(Forbidden, 'Chapter is not published'):
            question_bank.list_assessments(chapter_id=hidden_chapter.id, principal=self.student)
        with self.assertRaisesMessage(Forbidden, 'Chapter is not published'):
            question_bank.get_assessment(quiz.id, principal=self.student)

        for principal in (self.admin, owner):
            with self.subTest(principal=principal):
                listed = question_bank.list_assessments(course_id=self.course.id, principal=principal)
                self.assertIn(quiz.id, [a.id for a in listed])
                self.assertEqual(question_bank.get_assessment(quiz.id, principal=principal), quiz)

    def test_finals_listed_without_chapter(self):
        final = create_assessment(self.course, questions=[single()])
        student_view = question_bank.list_assessments(course_id=self.course.id, principal=self.student)
        self.assertIn(final.id, [a.id for a in student_view])

    def test_list_needs_exactly_one_filter(self):
        with self.assertRaises(ValidationFailed):
            question_bank.list_assessments()
