"""
Unit-of-work helper for multi-row writes
"""
from contextlib import contextmanager
import logging

from django.db import DatabaseError, transaction

from courses.exceptions import TransactionFailure

logger = logging.getLogger(__name__)


@contextmanager
def atomic_write(action):
    """
    Run a block inside ``transaction.atomic()``. Domain errors raised in the
    block roll it back and propagate unchanged; storage errors roll it back
    and surface as TransactionFailure.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception(f'{action} failed, transaction rolled back')
        raise TransactionFailure(f'{action} failed, nothing was saved') from exc
