"""
StockLedgerEntry model — immutable ledger of quantity changes.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from millstock.models.enums import ReferenceType


class StockLedgerEntry(models.Model):
    """
    Immutable record of a quantity change at a location.

    Rules:
    - NEVER update() or delete()
    - Corrections are new entries with inverse delta
    - Written only by StockLedger.apply_movement(), together with the balance

    The ledger is the source of truth; StockBalance is its projection.
    """

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))

    item = models.ForeignKey(
        'millstock.Item',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Item'),
    )
    warehouse = models.ForeignKey(
        'millstock.Warehouse',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Warehouse'),
    )
    bin = models.ForeignKey(
        'millstock.Bin',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
        verbose_name=_('Bin'),
    )

    reference_type = models.CharField(
        max_length=3,
        choices=ReferenceType.choices,
        verbose_name=_('Reference type'),
    )
    reference_id = models.CharField(max_length=64, verbose_name=_('Reference'))

    qty_delta = models.DecimalField(
        max_digits=18,
        decimal_places=3,
        verbose_name=_('Quantity delta'),
        help_text=_('Base unit. Positive = in, negative = out'),
    )
    unit_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Unit cost'),
    )
    note = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Note'))
    created_by = models.CharField(max_length=64, verbose_name=_('Created by'))

    class Meta:
        verbose_name = _('Stock ledger entry')
        verbose_name_plural = _('Stock ledger entries')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['item', 'warehouse', 'timestamp'], name='ledger_item_wh_ts_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='ledger_reference_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Ledger entries are immutable. "
                "To correct, append a new entry with the inverse delta."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(
            "Ledger entries are immutable. "
            "To reverse, append a new entry with the inverse delta."
        )

    def __str__(self) -> str:
        sign = '+' if self.qty_delta > 0 else ''
        return f"{sign}{self.qty_delta} | {self.reference_type} {self.reference_id}"
