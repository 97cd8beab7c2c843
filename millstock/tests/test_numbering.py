"""
Tests for document number allocation.
"""

from datetime import date

import pytest

from millstock.models import DocumentSequence
from millstock.services import numbering


pytestmark = pytest.mark.django_db


class TestNumbering:
    """Tests for the numbering helpers."""

    def test_issue_number_format(self):
        """OUT/{warehouse}/{seq}/{MM}/{YYYY}."""
        assert numbering.issue_number('WH1', date(2026, 3, 9)) == 'OUT/WH1/0001/03/2026'

    def test_scopes_are_independent(self):
        """Each warehouse and document kind counts on its own."""
        day = date(2026, 3, 9)

        assert numbering.issue_number('WH1', day) == 'OUT/WH1/0001/03/2026'
        assert numbering.issue_number('WH2', day) == 'OUT/WH2/0001/03/2026'
        assert numbering.receipt_number('WH1', day) == 'IN/WH1/0001/03/2026'
        assert numbering.loan_return_number('WH1', day) == 'RET-LOAN/WH1/0001/03/2026'
        assert numbering.issue_number('WH1', day) == 'OUT/WH1/0002/03/2026'

    def test_new_month_restarts(self):
        """The counter is per calendar month."""
        numbering.issue_number('WH1', date(2026, 3, 31))

        assert numbering.issue_number('WH1', date(2026, 4, 1)) == 'OUT/WH1/0001/04/2026'
        assert DocumentSequence.objects.count() == 2

    def test_configured_prefix_and_padding(self, settings):
        """Prefixes and padding come from MILLSTOCK settings."""
        settings.MILLSTOCK = {'ISSUE_PREFIX': 'GI', 'SEQUENCE_PADDING': 6}

        assert numbering.issue_number('WH1', date(2026, 3, 9)) == 'GI/WH1/000001/03/2026'

    def test_journal_number_format(self):
        """JV/{YYYY}/{MM}/{seq}."""
        assert numbering.journal_number('PKS', date(2026, 12, 1)) == 'JV/2026/12/0001'

    def test_period_of(self):
        """Periods are YYYY-MM."""
        assert numbering.period_of(date(2026, 1, 15)) == '2026-01'
