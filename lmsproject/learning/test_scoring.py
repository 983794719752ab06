"""
Scoring engine tests - one grader per question type
"""
from django.test import SimpleTestCase, TestCase

from courses.models import Question
from courses.testing import create_assessment, create_course, multiple, single
from learning.services.scoring import GRADERS, grade_question, score_attempt


def question(**fields):
    fields.setdefault('points', 1)
    return Question(prompt='Q', order=1, **fields)


class GraderTableTests(SimpleTestCase):

    def test_every_type_has_a_grader(self):
        self.assertEqual(set(GRADERS), set(Question.Type.values))


class SingleChoiceTests(SimpleTestCase):

    def setUp(self):
        self.q = question(type='single', options=['a', 'b', 'c'], correct_option_index=1, points=2)

    def test_correct_index(self):
        self.assertEqual(grade_question(self.q, 1), 2)
        self.assertEqual(grade_question(self.q, '1'), 2)
        self.assertEqual(grade_question(self.q, 1.0), 2)

    def test_wrong_out_of_range_or_malformed(self):
        for submitted in (0, 2, 7, -1, None, 'b', True, [1], {'index': 1}):
            with self.subTest(submitted=submitted):
                self.assertEqual(grade_question(self.q, submitted), 0)


class MultipleChoiceTests(SimpleTestCase):

    def setUp(self):
        self.q = question(type='multiple', options=['a', 'b', 'c', 'd'], correct_option_indexes=[1, 3], points=3)

    def test_any_permutation_scores(self):
        self.assertEqual(grade_question(self.q, [3, 1]), 3)
        self.assertEqual(grade_question(self.q, ['1', '3']), 3)

    def test_no_partial_credit(self):
        for submitted in ([1], [1, 2, 3], [], [1, 3, 3], 1, None, [1, 'x']):
            with self.subTest(submitted=submitted):
                self.assertEqual(grade_question(self.q, submitted), 0)


class NumericalTests(SimpleTestCase):

    def setUp(self):
        self.q = question(type='numerical', correct_text='3.5')

    def test_string_or_numeric_equality(self):
        for submitted in ('3.5', ' 3.5 ', '3.50', 3.5, '3.500'):
            with self.subTest(submitted=submitted):
                self.assertEqual(grade_question(self.q, submitted), 1)

    def test_wrong_values(self):
        for submitted in ('3.4', 'three and a half', '', None, True, 'NaN', ['3.5']):
            with self.subTest(submitted=submitted):
                self.assertEqual(grade_question(self.q, submitted), 0)

    def test_text_answers_compare_trimmed(self):
        q = question(type='numerical', correct_text='1/2')
        self.assertEqual(grade_question(q, ' 1/2'), 1)
        self.assertEqual(grade_question(q, '0.5'), 0)


class MatchTests(SimpleTestCase):

    def setUp(self):
        self.q = question(type='match', pairs=[
            {'left': 'dog', 'right': 'bark'},
            {'left': 'cat', 'right': 'meow'},
        ])

    def test_list_and_mapping_forms(self):
        self.assertEqual(grade_question(self.q, [
            {'left': 'cat', 'right': 'meow'}, {'left': ' dog ', 'right': 'bark '},
        ]), 1)
        self.assertEqual(grade_question(self.q, {'dog': 'bark', 'cat': 'meow'}), 1)

    def test_must_reproduce_whole_pairing(self):
        for submitted in (
            {'dog': 'bark'},
            {'dog': 'meow', 'cat': 'bark'},
            {'dog': 'bark', 'cat': 'meow', 'cow': 'moo'},
            [{'left': 'dog', 'right': 'bark'}, {'left': 'dog', 'right': 'bark'}],
            [{'left': 'dog'}],
            'dog=bark',
            None,
        ):
            with self.subTest(submitted=submitted):
                self.assertEqual(grade_question(self.q, submitted), 0)


class SubjectiveTests(SimpleTestCase):

    def test_never_scored(self):
        q = question(type='subjective', sample_answer='anything', points=5)
        self.assertEqual(grade_question(q, 'anything'), 0)


class ScoreAttemptTests(TestCase):

    def setUp(self):
        self.assessment = create_assessment(create_course(), questions=[
            single(correct=0, points=1),
            multiple(correct=(1, 2), points=2),
            {'type': 'subjective', 'points': 4},
        ])
        self.q1, self.q2, self.q3 = self.assessment.questions.all()

    def test_max_score_independent_of_answers(self):
        self.assertEqual(score_attempt(self.assessment, {}), (0, 7))
        self.assertEqual(score_attempt(self.assessment, {str(self.q1.id): 0}), (1, 7))

    def test_all_auto_graded_correct(self):
        answers = {str(self.q1.id): 0, str(self.q2.id): [2, 1], str(self.q3.id): 'essay'}
        self.assertEqual(score_attempt(self.assessment, answers), (3, 7))

    def test_unknown_question_ids_ignored(self):
        self.assertEqual(score_attempt(self.assessment, {'nope': 1}), (0, 7))
