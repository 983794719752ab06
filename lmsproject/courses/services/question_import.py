"""
Bulk question import from CSV, JSON or XLSX files.

Tabular files (CSV, XLSX) use one row per question with these headers::

    prompt,type,option_a,option_b,option_c,option_d,correct_answer,points,order,pairs,sample_answer

``question_text``/``question_type`` are accepted as header aliases. For
single and multiple questions ``correct_answer`` holds option letters (A, B,
...) or the option text; multiple answers are separated by commas. Match
pairs are written ``left=right|left=right``.

JSON files hold a list of question objects in the same shape as the
questions payload of the authoring API.

An import is a full replace of the assessment's questions and goes through
the same validation, so a bad row leaves the existing questions untouched.
"""
import csv
import io
import json
import logging
import string

import openpyxl

from courses.exceptions import ValidationFailed
from courses.models import Question
from courses.services.question_bank import replace_questions

logger = logging.getLogger(__name__)

OPTION_COLUMNS = tuple(f'option_{letter}' for letter in string.ascii_lowercase[:6])
HEADER_ALIASES = {
    'question_text': 'prompt',
    'text': 'prompt',
    'question_type': 'type',
    'answer': 'correct_answer',
}
SUPPORTED_EXTENSIONS = ('.csv', '.json', '.xlsx')


def _normalize_header(header):
    key = str(header or '').strip().lower().replace(' ', '_')
    return HEADER_ALIASES.get(key, key)


def _cell(row, key):
    value = row.get(key)
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _resolve_option(token, options, row_label):
    token = token.strip()
    if len(token) == 1 and token.upper() in string.ascii_uppercase:
        position = string.ascii_uppercase.index(token.upper())
        if position < len(options):
            return position
    if token in options:
        return options.index(token)
    raise ValidationFailed(f'{row_label}: correct_answer "{token}" does not match any option')


def _parse_pairs(raw, row_label):
    pairs = []
    for chunk in raw.split('|'):
        if not chunk.strip():
            continue
        if '=' not in chunk:
            raise ValidationFailed(f'{row_label}: pairs must be written left=right|left=right')
        left, right = chunk.split('=', 1)
        pairs.append({'left': left.strip(), 'right': right.strip()})
    return pairs


def row_to_question(row, row_num):
    """Turn one normalized tabular row into a questions-payload item"""
    row_label = f'Row {row_num}'
    qtype = _cell(row, 'type').lower()
    question = {'prompt': _cell(row, 'prompt'), 'type': qtype}

    points = _cell(row, 'points')
    if points:
        try:
            question['points'] = int(points)
        except ValueError:
            raise ValidationFailed(f'{row_label}: points must be an integer')
    order = _cell(row, 'order')
    if order:
        try:
            question['order'] = int(order)
        except ValueError:
            raise ValidationFailed(f'{row_label}: order must be an integer')

    answer = _cell(row, 'correct_answer')

    if qtype in (Question.Type.SINGLE, Question.Type.MULTIPLE):
        options = [_cell(row, column) for column in OPTION_COLUMNS if _cell(row, column)]
        question['options'] = options
        if not answer:
            raise ValidationFailed(f'{row_label}: correct_answer is required')
        if qtype == Question.Type.SINGLE:
            question['correct_option_index'] = _resolve_option(answer, options, row_label)
        else:
            question['correct_option_indexes'] = [
                _resolve_option(token, options, row_label)
                for token in answer.split(',') if token.strip()
            ]
    elif qtype == Question.Type.NUMERICAL:
        question['correct_text'] = answer
    elif qtype == Question.Type.MATCH:
        question['pairs'] = _parse_pairs(_cell(row, 'pairs'), row_label)
    elif qtype == Question.Type.SUBJECTIVE:
        question['sample_answer'] = _cell(row, 'sample_answer') or answer or None

    return question


def _rows_from_csv(content):
    try:
        text = content.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationFailed('CSV file must be UTF-8 encoded')
    reader = csv.DictReader(io.StringIO(text))
    for row in reader:
        yield {_normalize_header(key): value for key, value in row.items() if key is not None}


def _rows_from_xlsx(content):
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ValidationFailed(f'Could not read XLSX file: {exc}')
    try:
        rows = workbook.active.iter_rows(values_only=True)
        headers = next(rows, None)
        if not headers:
            return []
        headers = [_normalize_header(header) for header in headers]
        parsed = []
        for values in rows:
            if not any(value not in (None, '') for value in values):
                continue
            parsed.append(dict(zip(headers, values)))
        return parsed
    finally:
        workbook.close()


def parse_question_file(name, content):
    """Parse an uploaded file into a list of question payload items"""
    lower_name = (name or '').lower()

    if lower_name.endswith('.json'):
        try:
            data = json.loads(content.decode('utf-8-sig'))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ValidationFailed(f'Invalid JSON file: {exc}')
        if isinstance(data, dict):
            data = data.get('questions')
        if not isinstance(data, list):
            raise ValidationFailed('JSON file must contain a list of questions')
        return data

    if lower_name.endswith('.csv'):
        rows = list(_rows_from_csv(content))
    elif lower_name.endswith('.xlsx'):
        rows = _rows_from_xlsx(content)
    else:
        raise ValidationFailed(f'File must be one of {", ".join(SUPPORTED_EXTENSIONS)}', field='file')

    # Row 1 is the header line
    return [row_to_question(row, row_num) for row_num, row in enumerate(rows, 2)]


def import_questions(assessment_id, uploaded_file):
    """Replace an assessment's questions with the contents of ``uploaded_file``"""
    if uploaded_file is None:
        raise ValidationFailed('No file provided', field='file')

    try:
        questions = parse_question_file(uploaded_file.name, uploaded_file.read())
        assessment = replace_questions(assessment_id, questions)
    except ValidationFailed as exc:
        logger.warning(f'Question import into {assessment_id} from {uploaded_file.name} rejected: {exc.message}')
        raise

    logger.info(f'Imported {len(questions)} questions into assessment {assessment.id} from {uploaded_file.name}')
    return assessment, len(questions)
