"""
Initial migration for Millstock models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


ISSUE_PURPOSES = [('ISSUE', 'Issue'), ('PROD', 'Production'), ('LOAN', 'Loan'), ('SCRAP', 'Scrap')]
ISSUE_STATUSES = [('APPROVED', 'Approved'), ('PARTIAL_RETURN', 'Partially returned'), ('RETURNED', 'Returned')]
RECEIPT_SOURCES = [('RETURN', 'Return'), ('NEW_ITEM', 'New item'), ('LOAN_RETURN', 'Loan return')]
GL_STATUSES = [('PENDING', 'Pending'), ('POSTED', 'Posted'), ('FAILED', 'Failed'), ('SKIPPED', 'No accounting impact')]
SYSTEM_ACCOUNT_KEYS = [
    ('INVENTORY_GENERAL', 'Inventory'),
    ('INVENTORY_ON_LOAN', 'Inventory on loan'),
    ('PRODUCTION_CONSUMPTION', 'Production consumption'),
    ('INVENTORY_ADJUSTMENT_LOSS', 'Inventory adjustment loss'),
    ('MAINTENANCE_EXPENSE_DEFAULT', 'Default maintenance expense'),
]


class Migration(migrations.Migration):
    """Create catalog, balance, ledger, document, GL and sequence tables."""

    initial = True

    dependencies = []

    operations = [
        # Catalog
        migrations.CreateModel(
            name='Unit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('conversion_to_base', models.DecimalField(decimal_places=6, default=Decimal('1'), max_digits=18, verbose_name='Conversion to base')),
            ],
            options={
                'verbose_name': 'Unit',
                'verbose_name_plural': 'Units',
                'ordering': ['code'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('conversion_to_base__gt', 0)), name='unit_conversion_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=64, unique=True, verbose_name='SKU')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('min_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=18)),
                ('max_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=18)),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('base_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.unit', verbose_name='Base unit')),
            ],
            options={
                'verbose_name': 'Item',
                'verbose_name_plural': 'Items',
                'ordering': ['sku'],
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('company_code', models.CharField(db_index=True, max_length=20, verbose_name='Company')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Bin',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, verbose_name='Code')),
                ('name', models.CharField(blank=True, default='', max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bins', to='millstock.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Bin',
                'verbose_name_plural': 'Bins',
                'ordering': ['warehouse', 'code'],
                'constraints': [
                    models.UniqueConstraint(fields=('warehouse', 'code'), name='unique_bin_per_warehouse'),
                ],
            },
        ),
        # General ledger
        migrations.CreateModel(
            name='LedgerAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_code', models.CharField(db_index=True, max_length=20)),
                ('code', models.CharField(max_length=32, verbose_name='Code')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'Ledger account',
                'verbose_name_plural': 'Ledger accounts',
                'ordering': ['company_code', 'code'],
                'constraints': [
                    models.UniqueConstraint(fields=('company_code', 'code'), name='unique_account_code_per_company'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SystemAccountMap',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_code', models.CharField(max_length=20)),
                ('key', models.CharField(choices=SYSTEM_ACCOUNT_KEYS, max_length=40)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='system_keys', to='millstock.ledgeraccount')),
            ],
            options={
                'verbose_name': 'System account mapping',
                'verbose_name_plural': 'System account mappings',
                'constraints': [
                    models.UniqueConstraint(fields=('company_code', 'key'), name='unique_system_account_key'),
                ],
            },
        ),
        migrations.CreateModel(
            name='JournalEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_code', models.CharField(max_length=20)),
                ('entry_number', models.CharField(max_length=64, verbose_name='Entry number')),
                ('date', models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ('source_type', models.CharField(max_length=30)),
                ('source_id', models.CharField(max_length=64)),
                ('memo', models.CharField(blank=True, default='', max_length=255)),
                ('status', models.CharField(choices=[('POSTED', 'Posted'), ('VOID', 'Void')], db_index=True, default='POSTED', max_length=10)),
                ('posted_at', models.DateTimeField(blank=True, null=True)),
                ('voided_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Journal entry',
                'verbose_name_plural': 'Journal entries',
                'ordering': ['-date', '-pk'],
                'indexes': [
                    models.Index(fields=['source_type', 'source_id'], name='journal_entry_source_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('company_code', 'entry_number'), name='unique_entry_number_per_company'),
                ],
            },
        ),
        migrations.CreateModel(
            name='JournalEntryLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('debit', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('credit', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=18)),
                ('cost_center', models.CharField(blank=True, default='', max_length=50)),
                ('dept', models.CharField(blank=True, default='', max_length=100)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('entry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='millstock.journalentry')),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='journal_lines', to='millstock.ledgeraccount')),
                ('item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.item')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.warehouse')),
            ],
            options={
                'ordering': ['pk'],
            },
        ),
        # Numbering
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('scope', models.CharField(max_length=80)),
                ('period', models.CharField(max_length=10)),
                ('last_value', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Document sequence',
                'verbose_name_plural': 'Document sequences',
                'constraints': [
                    models.UniqueConstraint(fields=('scope', 'period'), name='unique_sequence_scope_period'),
                ],
            },
        ),
        # Stock
        migrations.CreateModel(
            name='StockBalance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('qty_on_hand', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Base unit', max_digits=18, verbose_name='Quantity on hand')),
                ('avg_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), help_text='Per base unit', max_digits=18, verbose_name='Average cost')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='millstock.item', verbose_name='Item')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='millstock.warehouse', verbose_name='Warehouse')),
                ('bin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='millstock.bin', verbose_name='Bin')),
            ],
            options={
                'verbose_name': 'Stock balance',
                'verbose_name_plural': 'Stock balances',
                'indexes': [
                    models.Index(fields=['item', 'warehouse'], name='balance_item_wh_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('bin__isnull', False)), fields=('item', 'warehouse', 'bin'), name='unique_balance_per_bin'),
                    models.UniqueConstraint(condition=models.Q(('bin__isnull', True)), fields=('item', 'warehouse'), name='unique_balance_without_bin'),
                    models.CheckConstraint(condition=models.Q(('qty_on_hand__gte', 0)), name='balance_qty_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockLedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('reference_type', models.CharField(choices=[('IN', 'Inbound'), ('OUT', 'Outbound'), ('ADJ', 'Adjustment')], max_length=3, verbose_name='Reference type')),
                ('reference_id', models.CharField(max_length=64, verbose_name='Reference')),
                ('qty_delta', models.DecimalField(decimal_places=3, help_text='Base unit. Positive = in, negative = out', max_digits=18, verbose_name='Quantity delta')),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=18, null=True, verbose_name='Unit cost')),
                ('note', models.CharField(blank=True, default='', max_length=255, verbose_name='Note')),
                ('created_by', models.CharField(max_length=64, verbose_name='Created by')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='millstock.item', verbose_name='Item')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='millstock.warehouse', verbose_name='Warehouse')),
                ('bin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='millstock.bin', verbose_name='Bin')),
            ],
            options={
                'verbose_name': 'Stock ledger entry',
                'verbose_name_plural': 'Stock ledger entries',
                'ordering': ['timestamp', 'pk'],
                'indexes': [
                    models.Index(fields=['item', 'warehouse', 'timestamp'], name='ledger_item_wh_ts_idx'),
                    models.Index(fields=['reference_type', 'reference_id'], name='ledger_reference_idx'),
                ],
            },
        ),
        # Documents
        migrations.CreateModel(
            name='GoodsIssue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doc_number', models.CharField(max_length=64, unique=True, verbose_name='Document number')),
                ('date', models.DateField(db_index=True, default=django.utils.timezone.localdate, verbose_name='Date')),
                ('purpose', models.CharField(choices=ISSUE_PURPOSES, max_length=10, verbose_name='Purpose')),
                ('status', models.CharField(choices=ISSUE_STATUSES, db_index=True, default='APPROVED', max_length=20, verbose_name='Status')),
                ('target_dept', models.CharField(blank=True, default='', max_length=100, verbose_name='Department')),
                ('picker_name', models.CharField(blank=True, default='', max_length=100, verbose_name='Picked by')),
                ('note', models.TextField(blank=True, default='')),
                ('cost_center', models.CharField(blank=True, default='', max_length=50)),
                ('loan_receiver', models.CharField(blank=True, default='', max_length=100, verbose_name='Borrower')),
                ('expected_return_at', models.DateField(blank=True, null=True, verbose_name='Expected return')),
                ('loan_notes', models.TextField(blank=True, default='')),
                ('gl_status', models.CharField(choices=GL_STATUSES, db_index=True, default='PENDING', max_length=10, verbose_name='GL status')),
                ('gl_posted_at', models.DateTimeField(blank=True, null=True)),
                ('gl_error', models.TextField(blank=True, default='')),
                ('created_by', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='issues', to='millstock.warehouse', verbose_name='Warehouse')),
                ('expense_account', models.ForeignKey(blank=True, help_text='Overrides the default expense account for ISSUE', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.ledgeraccount', verbose_name='Expense account')),
                ('gl_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='millstock.journalentry')),
            ],
            options={
                'verbose_name': 'Goods issue',
                'verbose_name_plural': 'Goods issues',
                'ordering': ['-date', '-pk'],
                'indexes': [
                    models.Index(fields=['warehouse', 'date'], name='issue_wh_date_idx'),
                    models.Index(fields=['purpose', 'status'], name='issue_purpose_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GoodsIssueLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('qty', models.DecimalField(decimal_places=3, max_digits=18, verbose_name='Quantity')),
                ('qty_base', models.DecimalField(decimal_places=3, max_digits=18, verbose_name='Quantity (base unit)')),
                ('unit_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), help_text='Per base unit, average cost at issue time', max_digits=18)),
                ('qty_returned', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Loan only, in line unit', max_digits=18)),
                ('qty_lost', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Loan only, written off as unrecoverable, in line unit', max_digits=18)),
                ('note', models.CharField(blank=True, default='', max_length=255)),
                ('issue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='millstock.goodsissue')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.item')),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.unit')),
                ('bin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.bin')),
            ],
            options={
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='GoodsReceipt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doc_number', models.CharField(max_length=64, unique=True, verbose_name='Document number')),
                ('date', models.DateField(db_index=True, default=django.utils.timezone.localdate, verbose_name='Date')),
                ('source_type', models.CharField(choices=RECEIPT_SOURCES, max_length=12, verbose_name='Source')),
                ('source_ref', models.CharField(blank=True, default='', help_text='Display only; matching uses source_issue', max_length=64, verbose_name='Source reference')),
                ('note', models.TextField(blank=True, default='')),
                ('gl_status', models.CharField(choices=GL_STATUSES, db_index=True, default='PENDING', max_length=10)),
                ('gl_posted_at', models.DateTimeField(blank=True, null=True)),
                ('gl_error', models.TextField(blank=True, default='')),
                ('created_by', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='receipts', to='millstock.warehouse', verbose_name='Warehouse')),
                ('source_issue', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='receipts', to='millstock.goodsissue', verbose_name='Returned against')),
                ('gl_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='millstock.journalentry')),
            ],
            options={
                'verbose_name': 'Goods receipt',
                'verbose_name_plural': 'Goods receipts',
                'ordering': ['-date', '-pk'],
                'indexes': [
                    models.Index(fields=['warehouse', 'date'], name='receipt_wh_date_idx'),
                    models.Index(fields=['source_type', 'source_issue'], name='receipt_source_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GoodsReceiptLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('qty', models.DecimalField(decimal_places=3, max_digits=18)),
                ('qty_base', models.DecimalField(decimal_places=3, max_digits=18)),
                ('unit_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=18)),
                ('note', models.CharField(blank=True, default='', max_length=255)),
                ('receipt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='millstock.goodsreceipt')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.item')),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.unit')),
                ('bin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='millstock.bin')),
                ('loan_issue_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='return_lines', to='millstock.goodsissueline')),
            ],
            options={
                'ordering': ['pk'],
            },
        ),
    ]
