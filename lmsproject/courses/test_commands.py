"""
Management command tests - demo course seeding and question bank checks
"""
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from courses.management.commands.seed_demo_course import DEMO_TITLE
from courses.management.commands.verify_question_bank import KEY_FIELD_BY_TYPE, question_problems
from courses.models import Course, Question
from courses.testing import create_assessment, create_course, single


def run(command, *args, **options):
    out = StringIO()
    call_command(command, *args, stdout=out, **options)
    return out.getvalue()


class SeedDemoCourseTests(TestCase):

    def test_seed_builds_published_course_with_quizzes(self):
        output = run('seed_demo_course', owner='admin-7')

        course = Course.objects.get(title=DEMO_TITLE)
        self.assertEqual(course.status, Course.Status.PUBLISHED)
        self.assertEqual(course.created_by, 'admin-7')
        self.assertIn(f'Created course {course.id}', output)

        chapters = list(course.chapters.order_by('order'))
        self.assertEqual(
            [c.slug for c in chapters],
            ['1-getting-started', '2-python-basics-quiz', '3-collections', '4-collections-quiz'],
        )
        self.assertEqual(chapters[1].assessment.time_limit_seconds, 600)
        seeded_types = set(Question.objects.filter(assessment__course=course).values_list('type', flat=True))
        self.assertEqual(seeded_types, set(Question.Type.values))

    def test_second_seed_needs_force(self):
        run('seed_demo_course')
        output = run('seed_demo_course')
        self.assertIn('already exists', output)
        self.assertEqual(Course.objects.filter(title=DEMO_TITLE).count(), 1)

        run('seed_demo_course', force=True)
        self.assertEqual(Course.objects.filter(title=DEMO_TITLE).count(), 2)


class VerifyQuestionBankTests(TestCase):

    def test_seeded_bank_is_well_formed(self):
        run('seed_demo_course')
        output = run('verify_question_bank')
        self.assertIn('All 5 questions are well formed', output)

    def test_two_answer_keys_fail_the_check(self):
        run('seed_demo_course')
        question = Question.objects.get(type=Question.Type.SINGLE)
        Question.objects.filter(pk=question.pk).update(correct_text='def')

        out = StringIO()
        with self.assertRaisesMessage(CommandError, '1 of 5 questions have problems'):
            call_command('verify_question_bank', stdout=out)
        self.assertIn('unexpected answer-key fields: correct_text', out.getvalue())

    def test_assessment_filter(self):
        broken = create_assessment(create_course(), questions=[single()])
        healthy = create_assessment(create_course(title='Other'), questions=[single()])
        Question.objects.filter(assessment=broken).update(correct_option_index=9)

        self.assertIn('All 1 questions', run('verify_question_bank', assessment=str(healthy.id)))
        with self.assertRaises(CommandError):
            run('verify_question_bank', assessment=str(broken.id))

    def test_question_problems_reports_out_of_range_key(self):
        assessment = create_assessment(create_course(), questions=[single(correct=1)])
        question = assessment.questions.get()
        self.assertEqual(question_problems(question), [])

        question.correct_option_index = 5
        self.assertEqual(question_problems(question), ['questions[0].correct_option_index is out of range'])

    def test_every_type_has_one_key_field(self):
        self.assertEqual(set(KEY_FIELD_BY_TYPE), set(Question.Type.values))
