"""
Number allocation for documents and journal entries.

Must be called inside the transaction that creates the document: the
sequence row stays locked until commit, so concurrent allocations for the
same scope serialize, and a rolled-back document also rolls back its number.
"""

import logging
from datetime import date

from django.db import IntegrityError, transaction

from millstock.conf import millstock_settings
from millstock.exceptions import Conflict
from millstock.models.sequence import DocumentSequence

logger = logging.getLogger('millstock')


def period_of(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def next_value(scope: str, period: str, using: str = 'default') -> int:
    """
    Increment and return the counter for (scope, period).

    Concurrency:
        - select_for_update() on the sequence row
        - first-time creation inside a savepoint; IntegrityError means another
          transaction created it first, so lock theirs and retry
    """
    retries = millstock_settings.SEQUENCE_RETRIES
    sequences = DocumentSequence.objects.using(using)

    with transaction.atomic(using=using):
        for attempt in range(retries):
            seq = sequences.select_for_update().filter(scope=scope, period=period).first()
            if seq is None:
                try:
                    with transaction.atomic(using=using):
                        seq = sequences.create(scope=scope, period=period, last_value=0)
                except IntegrityError:
                    logger.info(
                        "sequence.create_race",
                        extra={"scope": scope, "period": period, "attempt": attempt},
                    )
                    continue

            seq.last_value += 1
            seq.save(update_fields=['last_value', 'updated_at'])
            return seq.last_value

    raise Conflict('DUPLICATE_NUMBER', scope=scope, period=period)


def _pad(value: int) -> str:
    return str(value).zfill(millstock_settings.SEQUENCE_PADDING)


def issue_number(warehouse_code: str, day: date, using: str = 'default') -> str:
    """OUT/{warehouse}/{seq}/{MM}/{YYYY}"""
    prefix = millstock_settings.ISSUE_PREFIX
    seq = next_value(f"{prefix}:{warehouse_code}", period_of(day), using)
    return f"{prefix}/{warehouse_code}/{_pad(seq)}/{day.month:02d}/{day.year:04d}"


def receipt_number(warehouse_code: str, day: date, using: str = 'default') -> str:
    """IN/{warehouse}/{seq}/{MM}/{YYYY}"""
    prefix = millstock_settings.RECEIPT_PREFIX
    seq = next_value(f"{prefix}:{warehouse_code}", period_of(day), using)
    return f"{prefix}/{warehouse_code}/{_pad(seq)}/{day.month:02d}/{day.year:04d}"


def loan_return_number(warehouse_code: str, day: date, using: str = 'default') -> str:
    """RET-LOAN/{warehouse}/{seq}/{MM}/{YYYY}"""
    prefix = millstock_settings.LOAN_RETURN_PREFIX
    seq = next_value(f"{prefix}:{warehouse_code}", period_of(day), using)
    return f"{prefix}/{warehouse_code}/{_pad(seq)}/{day.month:02d}/{day.year:04d}"


def journal_number(company_code: str, day: date, using: str = 'default') -> str:
    """JV/{YYYY}/{MM}/{seq}"""
    prefix = millstock_settings.JOURNAL_PREFIX
    seq = next_value(f"{prefix}:{company_code}", period_of(day), using)
    return f"{prefix}/{day.year:04d}/{day.month:02d}/{_pad(seq)}"
