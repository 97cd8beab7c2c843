"""
Tests for the GL posting engine.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from millstock.exceptions import AccountNotConfigured, ValidationError
from millstock.models import JournalEntry, JournalStatus, SystemAccountKey, SystemAccountMap
from millstock.services.gl import GLPosting
from millstock.types import GLLine, PostingContext


pytestmark = pytest.mark.django_db


@pytest.fixture
def gl(db):
    return GLPosting()


@pytest.fixture
def context(day, actor):
    return PostingContext(
        company_code='PKS',
        date=day,
        source_type='Manual',
        source_id='1',
        source_number='M-1',
        created_by=actor,
    )


def _pair(accounts, debit, credit):
    return [
        GLLine(account_id=accounts[SystemAccountKey.PRODUCTION_CONSUMPTION].pk, debit=Decimal(debit)),
        GLLine(account_id=accounts[SystemAccountKey.INVENTORY_GENERAL].pk, credit=Decimal(credit)),
    ]


class TestPostJournalEntry:
    """Tests for GLPosting.post_journal_entry()."""

    def test_balanced_entry(self, gl, context, accounts):
        """A balanced entry is posted with a JV number."""
        result = gl.post_journal_entry(context, _pair(accounts, '1500', '1500'))

        assert result.success is True
        assert result.entry_number == 'JV/2026/10/0001'
        entry = JournalEntry.objects.get(pk=result.journal_entry_id)
        assert entry.status == JournalStatus.POSTED
        assert entry.posted_at is not None
        assert entry.totals() == (Decimal('1500'), Decimal('1500'))

    def test_within_tolerance(self, gl, context, accounts):
        """A one-cent difference is accepted."""
        result = gl.post_journal_entry(context, _pair(accounts, '100.00', '100.01'))

        assert result.success is True

    def test_unbalanced_entry(self, gl, context, accounts):
        """A difference above tolerance fails without writing."""
        result = gl.post_journal_entry(context, _pair(accounts, '100.00', '100.02'))

        assert result.success is False
        assert result.code == 'UNBALANCED_ENTRY'
        assert not JournalEntry.objects.exists()

    def test_empty_lines(self, gl, context):
        """An entry needs lines."""
        result = gl.post_journal_entry(context, [])

        assert result.success is False
        assert result.code == 'INVALID_INPUT'

    def test_negative_amount(self, gl, context, accounts):
        """Negative amounts are rejected."""
        result = gl.post_journal_entry(context, _pair(accounts, '-5', '-5'))

        assert result.success is False
        assert result.code == 'INVALID_INPUT'

    def test_unknown_account(self, gl, context, accounts):
        """Lines must reference existing accounts."""
        lines = [GLLine(account_id=424242, debit=Decimal('1')), GLLine(account_id=424243, credit=Decimal('1'))]

        result = gl.post_journal_entry(context, lines)

        assert result.success is False
        assert result.code == 'ACCOUNT_NOT_CONFIGURED'

    def test_number_sequence_per_company_and_month(self, gl, context, accounts, day):
        """Numbers restart per company and per month."""
        first = gl.post_journal_entry(context, _pair(accounts, '1', '1'))
        second = gl.post_journal_entry(context, _pair(accounts, '1', '1'))
        other_company = gl.post_journal_entry(replace(context, company_code='ABC'), _pair(accounts, '1', '1'))
        next_month = gl.post_journal_entry(replace(context, date=day.replace(month=11)), _pair(accounts, '1', '1'))

        assert first.entry_number == 'JV/2026/10/0001'
        assert second.entry_number == 'JV/2026/10/0002'
        assert other_company.entry_number == 'JV/2026/10/0001'
        assert next_month.entry_number == 'JV/2026/11/0001'

    def test_default_memo(self, gl, context, accounts):
        """Without a memo the source is described."""
        result = gl.post_journal_entry(context, _pair(accounts, '1', '1'))

        assert JournalEntry.objects.get(pk=result.journal_entry_id).memo == 'Auto-posted from Manual M-1'


class TestAccounts:
    """Tests for system account resolution."""

    def test_resolves_mapped_account(self, gl, accounts):
        """A mapped key returns its account id."""
        account_id = gl.get_system_account_id('PKS', SystemAccountKey.INVENTORY_GENERAL)

        assert account_id == accounts[SystemAccountKey.INVENTORY_GENERAL].pk

    def test_missing_mapping(self, gl, accounts):
        """Another company's map does not apply."""
        with pytest.raises(AccountNotConfigured) as exc:
            gl.get_system_account_id('ABC', SystemAccountKey.INVENTORY_GENERAL)

        assert exc.value.data == {'key': 'INVENTORY_GENERAL', 'company': 'ABC'}
        assert exc.value.status_code == 500

    def test_inactive_account(self, gl, accounts):
        """An inactive mapped account counts as missing."""
        account = accounts[SystemAccountKey.INVENTORY_GENERAL]
        account.is_active = False
        account.save()

        with pytest.raises(AccountNotConfigured):
            gl.get_system_account_id('PKS', SystemAccountKey.INVENTORY_GENERAL)


class TestLineBuilders:
    """Tests for the goods-issue and loan-return line builders."""

    def test_goods_issue_lines_balance(self, gl, accounts):
        """Debit and credit carry the same rounded value."""
        lines = gl.build_goods_issue_gl_lines('PKS', 'PROD', Decimal('1234.565'))

        assert [(line.debit, line.credit) for line in lines] == [
            (Decimal('1234.57'), Decimal('0')),
            (Decimal('0'), Decimal('1234.57')),
        ]

    def test_unknown_purpose(self, gl, accounts):
        """Unknown purposes are a validation error."""
        with pytest.raises(ValidationError) as exc:
            gl.build_goods_issue_gl_lines('PKS', 'GIFT', Decimal('1'))

        assert exc.value.code == 'UNKNOWN_PURPOSE'

    def test_missing_account_builds_nothing(self, gl, accounts):
        """A missing side raises instead of returning half an entry."""
        SystemAccountMap.objects.filter(key=SystemAccountKey.PRODUCTION_CONSUMPTION).delete()

        with pytest.raises(AccountNotConfigured):
            gl.build_goods_issue_gl_lines('PKS', 'PROD', Decimal('1'))

    def test_loan_return_without_loss_needs_no_loss_account(self, gl, accounts):
        """The loss account is only required when there is a loss."""
        SystemAccountMap.objects.filter(key=SystemAccountKey.INVENTORY_ADJUSTMENT_LOSS).delete()

        lines = gl.build_loan_return_gl_lines('PKS', Decimal('1400'), Decimal('0'))

        assert len(lines) == 2

    def test_loan_return_with_loss(self, gl, accounts):
        """A loss adds a second balanced pair."""
        lines = gl.build_loan_return_gl_lines('PKS', Decimal('1400'), Decimal('600'))

        assert len(lines) == 4
        assert sum(line.debit for line in lines) == sum(line.credit for line in lines) == Decimal('2000')


class TestVoid:
    """Tests for GLPosting.void_journal_entry_by_source()."""

    def test_void_posted_entries(self, gl, context, accounts):
        """Posted entries of the source become VOID."""
        result = gl.post_journal_entry(context, _pair(accounts, '10', '10'))

        assert gl.void_journal_entry_by_source('Manual', '1') == 1

        entry = JournalEntry.objects.get(pk=result.journal_entry_id)
        assert entry.status == JournalStatus.VOID
        assert entry.voided_at is not None

    def test_void_is_idempotent(self, gl, context, accounts):
        """Voided entries are not voided again."""
        gl.post_journal_entry(context, _pair(accounts, '10', '10'))
        gl.void_journal_entry_by_source('Manual', '1')

        assert gl.void_journal_entry_by_source('Manual', '1') == 0

    def test_void_other_source_untouched(self, gl, context, accounts):
        """Only the named source is voided."""
        gl.post_journal_entry(context, _pair(accounts, '10', '10'))

        assert gl.void_journal_entry_by_source('Manual', '2') == 0
        assert JournalEntry.objects.get().status == JournalStatus.POSTED
