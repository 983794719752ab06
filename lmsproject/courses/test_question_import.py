"""
Bulk question import tests for CSV, JSON and XLSX files
"""
import io
import json

import openpyxl
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase

from courses.exceptions import ValidationFailed
from courses.services.question_import import import_questions, parse_question_file
from courses.testing import create_assessment, create_course, single

CSV_CONTENT = (
    'question_text,question_type,option_a,option_b,option_c,correct_answer,points,pairs\n'
    '"What is Django?",single,Framework,Language,Database,A,1,\n'
    '"Pick the containers",multiple,list,int,dict,"A,C",2,\n'
    '"2 * 21",numerical,,,,42,1,\n'
    '"Match them",match,,,,,1,a=1|b=2\n'
)


class ParseQuestionFileTests(TestCase):

    def test_csv_rows(self):
        questions = parse_question_file('bank.csv', CSV_CONTENT.encode('utf-8'))
        self.assertEqual(len(questions), 4)
        self.assertEqual(questions[0]['correct_option_index'], 0)
        self.assertEqual(questions[1]['correct_option_indexes'], [0, 2])
        self.assertEqual(questions[2]['correct_text'], '42')
        self.assertEqual(questions[3]['pairs'], [{'left': 'a', 'right': '1'}, {'left': 'b', 'right': '2'}])

    def test_option_text_as_answer(self):
        content = 'prompt,type,option_a,option_b,correct_answer\nQ,single,Yes,No,No\n'
        questions = parse_question_file('bank.csv', content.encode('utf-8'))
        self.assertEqual(questions[0]['correct_option_index'], 1)

    def test_unknown_answer_names_row(self):
        content = 'prompt,type,option_a,option_b,correct_answer\nQ,single,Yes,No,Maybe\n'
        with self.assertRaisesMessage(ValidationFailed, 'Row 2'):
            parse_question_file('bank.csv', content.encode('utf-8'))

    def test_json_list_or_wrapped(self):
        items = [{'prompt': 'Q', 'type': 'subjective'}]
        self.assertEqual(parse_question_file('q.json', json.dumps(items).encode()), items)
        self.assertEqual(parse_question_file('q.json', json.dumps({'questions': items}).encode()), items)
        with self.assertRaises(ValidationFailed):
            parse_question_file('q.json', b'{not json')

    def test_xlsx_rows(self):
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(['prompt', 'type', 'option_a', 'option_b', 'correct_answer', 'points'])
        sheet.append(['Capital of France?', 'single', 'Paris', 'Rome', 'A', 2])
        sheet.append([None, None, None, None, None, None])
        sheet.append(['Square root of 16', 'numerical', None, None, 4, 1])
        buffer = io.BytesIO()
        workbook.save(buffer)

        questions = parse_question_file('bank.xlsx', buffer.getvalue())

        self.assertEqual(len(questions), 2)
        self.assertEqual(questions[0]['points'], 2)
        self.assertEqual(questions[0]['correct_option_index'], 0)
        self.assertEqual(questions[1]['correct_text'], '4')

    def test_unsupported_extension(self):
        with self.assertRaisesMessage(ValidationFailed, 'File must be one of'):
            parse_question_file('bank.txt', b'hello')


class ImportQuestionsTests(TestCase):

    def setUp(self):
        self.assessment = create_assessment(create_course(), questions=[single()])

    def test_import_replaces_questions(self):
        upload = SimpleUploadedFile('bank.csv', CSV_CONTENT.encode('utf-8'), content_type='text/csv')
        assessment, imported = import_questions(self.assessment.id, upload)
        self.assertEqual(imported, 4)
        self.assertEqual(assessment.questions.count(), 4)
        self.assertEqual(
            list(assessment.questions.values_list('order', flat=True)), [1, 2, 3, 4]
        )

    def test_bad_file_keeps_existing_questions(self):
        before = list(self.assessment.questions.values_list('id', flat=True))
        upload = SimpleUploadedFile('bank.json', b'[{"prompt": "", "type": "single"}]')
        with self.assertRaises(ValidationFailed):
            import_questions(self.assessment.id, upload)
        self.assertEqual(list(self.assessment.questions.values_list('id', flat=True)), before)

    def test_missing_file(self):
        with self.assertRaisesMessage(ValidationFailed, 'No file provided'):
            import_questions(self.assessment.id, None)
