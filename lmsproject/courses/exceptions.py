"""
Domain errors raised by the content, question bank, scoring and progress
services. Each error carries a ``kind`` that the API layer maps to a
transport status code (see lmsproject.exceptions).
"""


class AssessmentError(Exception):
    """Base class for every error the core raises on purpose"""
    kind = 'error'
    default_message = 'Request could not be processed'

    def __init__(self, message=None, field=None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)


class NotFound(AssessmentError):
    kind = 'not_found'
    default_message = 'Resource not found'

    @classmethod
    def for_resource(cls, resource, identifier=None):
        if identifier is None:
            return cls(f'{resource} not found')
        return cls(f'{resource} {identifier} not found')


class ValidationFailed(AssessmentError):
    kind = 'validation_failed'
    default_message = 'Validation failed'


class Forbidden(AssessmentError):
    kind = 'forbidden'
    default_message = 'Not allowed'


class AttemptLimitExceeded(AssessmentError):
    """The student has used every attempt the assessment allows"""
    kind = 'attempt_limit_exceeded'
    default_message = 'No attempts remaining'

    def __init__(self, attempts_used, attempts_allowed):
        self.attempts_used = attempts_used
        self.attempts_allowed = attempts_allowed
        super().__init__(
            f'No attempts remaining ({attempts_used}/{attempts_allowed} used)'
        )


class TransactionFailure(AssessmentError):
    """
    Storage failed part-way through a multi-row write. The atomic block has
    already rolled back, so the whole operation can be retried.
    """
    kind = 'transaction_failure'
    default_message = 'Storage failure, nothing was saved'
