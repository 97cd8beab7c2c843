"""
Stock ledger & balance engine.

apply_movement() is the ONLY writer of StockBalance and StockLedgerEntry.
Every write happens under transaction.atomic() with the balance row locked
by select_for_update(), so concurrent movements on the same location
serialize their read-check-write.
"""

import logging
from datetime import date
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Sum

from millstock import quantities
from millstock.conf import millstock_settings
from millstock.exceptions import InsufficientStock, ValidationError
from millstock.models.balance import StockBalance
from millstock.models.enums import ReferenceType
from millstock.models.ledger import StockLedgerEntry
from millstock.types import Availability, BalanceRow, BalanceSnapshot, Discrepancy, Page

logger = logging.getLogger('millstock')

_ANY_BIN = object()


def _pk(obj):
    return getattr(obj, 'pk', obj)


class StockLedger:
    """
    Quantity and cost arithmetic for (item, warehouse, bin) locations.

    Usage:
        ledger = StockLedger(using='default')
        ledger.apply_movement(item, wh, None, Decimal('20'), Decimal('500'),
                              reference_type='IN', reference_id='42',
                              actor='u-1')
        ledger.get_balance(item, wh)  # BalanceSnapshot(20, 500)
    """

    def __init__(self, using: str = 'default'):
        self.using = using

    @property
    def balances(self):
        return StockBalance.objects.using(self.using)

    @property
    def entries(self):
        return StockLedgerEntry.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def get_balance(self, item, warehouse, bin=None) -> BalanceSnapshot | None:
        """Current quantity/cost at a location, or None if nothing ever moved there."""
        balance = self.balances.at_location(item, warehouse, bin).first()
        if balance is None:
            return None
        return BalanceSnapshot(qty_on_hand=balance.qty_on_hand, avg_cost=balance.avg_cost)

    def validate_availability(self, item, warehouse, bin, required_qty_base) -> Availability:
        """Pure read; the authoritative check happens again under lock."""
        snapshot = self.get_balance(item, warehouse, bin)
        current = snapshot.qty_on_hand if snapshot else quantities.ZERO
        return Availability(
            available=current >= quantities.to_decimal(required_qty_base),
            current_qty=current,
        )

    def list_balances(self, item) -> list[BalanceRow]:
        qs = (
            self.balances
            .filter(item=item)
            .select_related('warehouse', 'bin')
            .order_by('warehouse__code', 'bin__code')
        )
        return [
            BalanceRow(
                warehouse_id=b.warehouse_id,
                warehouse_code=b.warehouse.code,
                bin_id=b.bin_id,
                bin_code=b.bin.code if b.bin_id else None,
                qty_on_hand=b.qty_on_hand,
                avg_cost=b.avg_cost,
            )
            for b in qs
        ]

    def list_ledger(self, item, warehouse=None, bin=_ANY_BIN,
                    date_from: date | None = None, date_to: date | None = None,
                    limit: int | None = None, offset: int = 0) -> Page:
        """
        Ledger entries for an item, newest first.

        Args:
            warehouse: Restrict to one warehouse (None = all)
            bin: Restrict to one bin; pass None for "no bin" (default = any)
            date_from / date_to: Inclusive bounds on the entry date
            limit: Page size (defaults to LEDGER_PAGE_SIZE, capped at MAX_PAGE_SIZE)
        """
        limit = limit or millstock_settings.LEDGER_PAGE_SIZE
        limit = min(limit, millstock_settings.MAX_PAGE_SIZE)
        offset = max(offset, 0)

        qs = self.entries.filter(item=item)
        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)
        if bin is None:
            qs = qs.filter(bin__isnull=True)
        elif bin is not _ANY_BIN:
            qs = qs.filter(bin=bin)
        if date_from is not None:
            qs = qs.filter(timestamp__date__gte=date_from)
        if date_to is not None:
            qs = qs.filter(timestamp__date__lte=date_to)

        total = qs.count()
        entries = list(
            qs.select_related('warehouse', 'bin')
            .order_by('-timestamp', '-pk')[offset:offset + limit]
        )
        return Page(items=entries, total=total, limit=limit, offset=offset)

    # ══════════════════════════════════════════════════════════════
    # MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    def lock_balance(self, item, warehouse, bin=None, create: bool = False) -> StockBalance | None:
        """
        Lock the balance row for a location (caller must be in a transaction).

        With create=True a missing row is created empty. Creation runs in a
        savepoint: an IntegrityError means another transaction won the race,
        so we lock and return theirs.
        """
        locked = self.balances.select_for_update().at_location(item, warehouse, bin).first()
        if locked is not None or not create:
            return locked

        try:
            with transaction.atomic(using=self.using):
                self.balances.create(item_id=_pk(item), warehouse_id=_pk(warehouse), bin_id=_pk(bin))
        except IntegrityError:
            logger.info(
                "stock.balance.create_race",
                extra={"item_id": _pk(item), "warehouse_id": _pk(warehouse), "bin_id": _pk(bin)},
            )
        return self.balances.select_for_update().at_location(item, warehouse, bin).get()

    def apply_movement(self, item, warehouse, bin, qty_delta, unit_cost=None, *,
                       reference_type: str, reference_id, note: str = '',
                       actor: str) -> StockLedgerEntry:
        """
        Change stock at a location and append the matching ledger entry.

        - Increase with a non-zero unit_cost: avg_cost becomes the weighted
          average of the balance and the incoming quantity.
        - Increase at zero cost (returns) or decrease: avg_cost unchanged.

        Raises:
            ValidationError('INVALID_QUANTITY'): If qty_delta is zero
            InsufficientStock: If the location would go below zero

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on the balance row before reading it
        """
        qty_delta = quantities.qty(qty_delta)
        if qty_delta == 0:
            raise ValidationError('INVALID_QUANTITY', qty_delta=qty_delta)
        unit_cost = quantities.cost(unit_cost) if unit_cost is not None else None

        with transaction.atomic(using=self.using):
            balance = self.lock_balance(item, warehouse, bin, create=qty_delta > 0)
            before = balance.qty_on_hand if balance is not None else quantities.ZERO
            after = before + qty_delta

            if balance is None or after < 0:
                raise InsufficientStock(
                    shortfalls=[{
                        'item_id': _pk(item),
                        'warehouse_id': _pk(warehouse),
                        'bin_id': _pk(bin),
                        'requested': -qty_delta,
                        'available': before,
                    }],
                )

            if qty_delta > 0 and unit_cost:
                balance.avg_cost = quantities.weighted_average(
                    before, balance.avg_cost, qty_delta, unit_cost,
                )
            balance.qty_on_hand = after
            balance.save(update_fields=['qty_on_hand', 'avg_cost', 'updated_at'])

            entry = self.entries.create(
                item_id=_pk(item),
                warehouse_id=_pk(warehouse),
                bin_id=_pk(bin),
                reference_type=reference_type,
                reference_id=str(reference_id),
                qty_delta=qty_delta,
                unit_cost=unit_cost,
                note=note[:255],
                created_by=actor,
            )

        logger.info(
            "stock.apply",
            extra={
                "item_id": _pk(item),
                "warehouse_id": _pk(warehouse),
                "bin_id": _pk(bin),
                "delta": str(qty_delta),
                "qty_on_hand": str(after),
                "avg_cost": str(balance.avg_cost),
                "reference": f"{reference_type}:{reference_id}",
            },
        )
        return entry

    def adjust(self, item, warehouse, bin, new_qty, reason: str, actor: str) -> StockLedgerEntry | None:
        """
        Inventory count adjustment.

        Calculates delta automatically: new_qty - qty_on_hand. Cost unchanged.

        Raises:
            ValidationError('INVALID_INPUT'): If reason is empty
            ValidationError('INVALID_QUANTITY'): If new_qty is negative
        """
        if not reason:
            raise ValidationError('INVALID_INPUT', field='reason')
        new_qty = quantities.qty(new_qty)
        if new_qty < 0:
            raise ValidationError('INVALID_QUANTITY', new_qty=new_qty)

        with transaction.atomic(using=self.using):
            balance = self.lock_balance(item, warehouse, bin, create=new_qty > 0)
            current = balance.qty_on_hand if balance is not None else quantities.ZERO
            delta = new_qty - current

            if delta == 0:
                return None

            return self.apply_movement(
                item, warehouse, bin, delta,
                reference_type=ReferenceType.ADJ,
                reference_id='ADJUSTMENT',
                note=f"Adjustment: {reason}",
                actor=actor,
            )

    def add_opening_stock(self, item, warehouse, bin, qty, unit_cost, actor: str) -> StockLedgerEntry | None:
        """Costed opening balance for an existing item. Skipped when qty <= 0."""
        qty = quantities.qty(qty)
        if qty <= 0:
            return None
        return self.apply_movement(
            item, warehouse, bin, qty, unit_cost,
            reference_type=ReferenceType.ADJ,
            reference_id='INITIAL_STOCK',
            note="Opening stock",
            actor=actor,
        )

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    def replay(self, item=None, fix: bool = False) -> list[Discrepancy]:
        """
        Rebuild every balance from the ledger and report mismatches.

        Args:
            item: Restrict to one item (None = all)
            fix: Overwrite cached quantities with the ledger sums

        Returns:
            One Discrepancy per location whose cache disagrees with its ledger
        """
        ledger_qs = self.entries.all()
        balance_qs = self.balances.all()
        if item is not None:
            ledger_qs = ledger_qs.filter(item=item)
            balance_qs = balance_qs.filter(item=item)

        sums = {
            (row['item_id'], row['warehouse_id'], row['bin_id']): row['total']
            for row in ledger_qs.values('item_id', 'warehouse_id', 'bin_id').annotate(total=Sum('qty_delta'))
        }

        found = []
        for balance in balance_qs.order_by('pk'):
            key = (balance.item_id, balance.warehouse_id, balance.bin_id)
            ledger_total = sums.pop(key, None) or quantities.ZERO
            if ledger_total == balance.qty_on_hand:
                continue
            found.append(Discrepancy(
                balance_id=balance.pk,
                item_id=balance.item_id,
                warehouse_id=balance.warehouse_id,
                bin_id=balance.bin_id,
                cached=balance.qty_on_hand,
                ledger=ledger_total,
            ))
            if fix:
                with transaction.atomic(using=self.using):
                    locked = self.balances.select_for_update().get(pk=balance.pk)
                    locked.recalculate()

        # Ledger rows with no balance at all
        for (item_id, warehouse_id, bin_id), total in sums.items():
            if total == 0:
                continue
            found.append(Discrepancy(
                balance_id=None,
                item_id=item_id,
                warehouse_id=warehouse_id,
                bin_id=bin_id,
                cached=quantities.ZERO,
                ledger=total,
            ))
            if fix:
                with transaction.atomic(using=self.using):
                    balance = self.lock_balance(item_id, warehouse_id, bin_id, create=True)
                    balance.recalculate()

        if found:
            logger.warning(
                "stock.replay.discrepancies",
                extra={"count": len(found), "fixed": fix},
            )
        return found
