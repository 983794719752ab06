"""
Management command to build a published demo course with text chapters and
chapter quizzes covering every question type.
Usage: python manage.py seed_demo_course [--owner <principal id>]
"""
from django.core.management.base import BaseCommand

from courses.models import Course
from courses.services.course_builder import build_course

DEMO_TITLE = 'Python Fundamentals (demo)'

DEMO_LESSONS = [
    {
        'type': 'text',
        'title': 'Getting Started',
        'content': 'Python is an interpreted language. Functions are defined with the def keyword.',
    },
    {
        'type': 'test',
        'quizTitle': 'Python Basics Quiz',
        'quizDurationMinutes': 10,
        'questions': [
            {
                'type': 'single',
                'text': 'What is the correct way to define a function in Python?',
                'options': [
                    {'text': 'def function_name():', 'correct': True},
                    {'text': 'function function_name():'},
                    {'text': 'define function_name():'},
                ],
            },
            {
                'type': 'multiple',
                'text': 'Which of these are built-in sequence types?',
                'options': [
                    {'text': 'list', 'correct': True},
                    {'text': 'tuple', 'correct': True},
                    {'text': 'array'},
                ],
                'points': 2,
            },
            {'type': 'numerical', 'text': 'What does len("abc") return?', 'correctText': '3'},
        ],
    },
    {
        'type': 'text',
        'title': 'Collections',
        'content': 'Dictionaries map keys to values; sets hold unique items.',
    },
    {
        'type': 'test',
        'quizTitle': 'Collections Quiz',
        'questions': [
            {
                'type': 'match',
                'text': 'Match each literal to its type',
                'pairs': [
                    {'left': '[]', 'right': 'list'},
                    {'left': '{}', 'right': 'dict'},
                    {'left': '()', 'right': 'tuple'},
                ],
            },
            {
                'type': 'subjective',
                'text': 'When would you pick a set over a list?',
                'sampleAnswer': 'When membership tests matter and order does not.',
            },
        ],
    },
]


class Command(BaseCommand):
    help = 'Create a published demo course with text chapters and quizzes'

    def add_arguments(self, parser):
        parser.add_argument('--owner', default='seed-admin', help='Principal id recorded as course creator')
        parser.add_argument('--force', action='store_true', help='Create even if the demo course exists')

    def handle(self, *args, **options):
        if not options['force'] and Course.objects.filter(title=DEMO_TITLE).exists():
            self.stdout.write(self.style.WARNING(f'"{DEMO_TITLE}" already exists, use --force to add another'))
            return

        course = build_course(
            options['owner'],
            {'title': DEMO_TITLE, 'status': Course.Status.PUBLISHED},
            DEMO_LESSONS,
        )

        self.stdout.write(self.style.SUCCESS(f'Created course {course.id}: {course.title}'))
        for chapter in course.chapters.order_by('order'):
            line = f'  [{chapter.order}] {chapter.title} ({chapter.slug})'
            if hasattr(chapter, 'assessment'):
                line += f' - quiz with {chapter.assessment.questions.count()} questions'
            self.stdout.write(line)
