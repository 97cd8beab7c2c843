"""
StockBalance model — materialized quantity/cost per item and location.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('millstock')


class StockBalanceQuerySet(models.QuerySet):
    """QuerySet with location helpers."""

    def at_location(self, item, warehouse, bin=None):
        """Filter the single (item, warehouse, bin) coordinate; bin=None means no bin."""
        qs = self.filter(item=item, warehouse=warehouse)
        if bin is None:
            return qs.filter(bin__isnull=True)
        return qs.filter(bin=bin)

    def non_empty(self):
        return self.filter(qty_on_hand__gt=0)


class StockBalance(models.Model):
    """
    Quantity and weighted-average cost of an item at (warehouse, bin).

    This row is a cache of the ledger:
    - qty_on_hand == sum(StockLedgerEntry.qty_delta) for the location
    - only StockLedger.apply_movement() writes it, under select_for_update()
    - use recalculate() for audit/correction
    """

    item = models.ForeignKey(
        'millstock.Item',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('Item'),
    )
    warehouse = models.ForeignKey(
        'millstock.Warehouse',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('Warehouse'),
    )
    bin = models.ForeignKey(
        'millstock.Bin',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='balances',
        verbose_name=_('Bin'),
    )

    qty_on_hand = models.DecimalField(
        max_digits=18,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantity on hand'),
        help_text=_('Base unit'),
    )
    avg_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Average cost'),
        help_text=_('Per base unit'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockBalanceQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock balance')
        verbose_name_plural = _('Stock balances')
        constraints = [
            models.UniqueConstraint(
                fields=['item', 'warehouse', 'bin'],
                condition=Q(bin__isnull=False),
                name='unique_balance_per_bin',
            ),
            models.UniqueConstraint(
                fields=['item', 'warehouse'],
                condition=Q(bin__isnull=True),
                name='unique_balance_without_bin',
            ),
            models.CheckConstraint(
                condition=Q(qty_on_hand__gte=0),
                name='balance_qty_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['item', 'warehouse'], name='balance_item_wh_idx'),
        ]

    def ledger_entries(self):
        """Ledger entries that make up this balance."""
        from millstock.models.ledger import StockLedgerEntry

        qs = StockLedgerEntry.objects.using(self._state.db).filter(
            item_id=self.item_id, warehouse_id=self.warehouse_id,
        )
        if self.bin_id is None:
            return qs.filter(bin__isnull=True)
        return qs.filter(bin_id=self.bin_id)

    def ledger_total(self) -> Decimal:
        return self.ledger_entries().aggregate(
            t=Coalesce(Sum('qty_delta'), Decimal('0'))
        )['t']

    def recalculate(self) -> Decimal:
        """
        Recalculate qty_on_hand by replaying the ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        total = self.ledger_total()

        if total != self.qty_on_hand:
            old = self.qty_on_hand
            self.qty_on_hand = total
            self.save(update_fields=['qty_on_hand', 'updated_at'])
            logger.warning(
                "stock.balance.recalculated",
                extra={
                    "balance_id": self.pk,
                    "old": str(old),
                    "new": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        loc = f"{self.warehouse_id}/{self.bin_id}" if self.bin_id else f"{self.warehouse_id}"
        return f"item {self.item_id} @ {loc}: {self.qty_on_hand} @ {self.avg_cost}"
