"""
Pieces shared by the outbound and inbound workflows:

- CatalogResolver: catalog lookups that turn misses into ValidationError
- ResolvedLine: a request line with its catalog objects and base quantity
- run_gl_stage(): the decoupled GL stage
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable

from django.db import transaction
from django.utils import timezone

from millstock import quantities
from millstock.exceptions import MillstockError, ValidationError
from millstock.models.enums import GLStatus
from millstock.protocols.catalog import CatalogBackend
from millstock.services.gl import GLPosting
from millstock.types import GLLine, PostingContext, PostingResult

logger = logging.getLogger('millstock')


@dataclass
class ResolvedLine:
    """A request line after validation against the catalog."""

    index: int
    item: Any
    unit: Any
    bin: Any
    qty: Decimal
    qty_base: Decimal
    note: str = ''

    @property
    def location(self) -> tuple:
        """Sortable (item_id, bin_id) key inside one warehouse; no bin sorts first."""
        return (self.item.pk, self.bin.pk if self.bin is not None else 0)


class CatalogResolver:
    """Catalog lookups with the workflows' validation rules."""

    def __init__(self, catalog: CatalogBackend):
        self.catalog = catalog

    def warehouse(self, warehouse_id):
        warehouse = self.catalog.get_warehouse(warehouse_id)
        if warehouse is None:
            raise ValidationError('ENTITY_NOT_FOUND', message="Warehouse not found",
                                  entity='warehouse', id=warehouse_id)
        if not warehouse.is_active:
            raise ValidationError('INACTIVE_ENTITY', message=f"Warehouse {warehouse.code} is inactive",
                                  entity='warehouse', id=warehouse_id)
        return warehouse

    def bin(self, bin_id, warehouse):
        if bin_id is None:
            return None
        bin = self.catalog.get_bin(bin_id)
        if bin is None:
            raise ValidationError('ENTITY_NOT_FOUND', message="Bin not found", entity='bin', id=bin_id)
        if bin.warehouse_id != warehouse.pk:
            raise ValidationError('BIN_MISMATCH', entity='bin', id=bin_id, warehouse_id=warehouse.pk)
        if not bin.is_active:
            raise ValidationError('INACTIVE_ENTITY', message=f"Bin {bin.code} is inactive",
                                  entity='bin', id=bin_id)
        return bin

    def item(self, item_id):
        item = self.catalog.get_item(item_id)
        if item is None:
            raise ValidationError('ENTITY_NOT_FOUND', message="Item not found", entity='item', id=item_id)
        if not item.is_active:
            raise ValidationError('INACTIVE_ENTITY', message=f"Item {item.name} is inactive",
                                  entity='item', id=item_id)
        return item

    def unit(self, unit_id):
        unit = self.catalog.get_unit(unit_id)
        if unit is None:
            raise ValidationError('ENTITY_NOT_FOUND', message="Unit not found", entity='unit', id=unit_id)
        return unit

    def line(self, index: int, item_id, unit_id, qty, bin, note: str = '') -> ResolvedLine:
        """Resolve one request line; unit_id None means the item's base unit."""
        qty = quantities.to_decimal(qty)
        if qty <= 0:
            raise ValidationError('INVALID_QUANTITY', line=index, qty=qty)
        item = self.item(item_id)
        unit = self.unit(unit_id if unit_id is not None else item.base_unit_id)
        return ResolvedLine(
            index=index,
            item=item,
            unit=unit,
            bin=bin,
            qty=quantities.qty(qty),
            qty_base=quantities.qty(qty * unit.conversion_to_base),
            note=note,
        )


def run_gl_stage(document, gl: GLPosting, context: PostingContext,
                 build_lines: Callable[[], list[GLLine]]) -> PostingResult:
    """
    Build and post the journal for a movement document, then record the
    outcome on it (gl_status, gl_entry, gl_posted_at, gl_error).

    Never raises for GL problems: any error while building or posting the
    lines ends as gl_status=FAILED, and the stock movement in the enclosing
    transaction stays committed.
    """
    try:
        with transaction.atomic(using=gl.using):
            lines = build_lines()
            result = gl.post_journal_entry(context, lines)
    except MillstockError as e:
        result = PostingResult(success=False, error=e.message, code=e.code, details=e.as_dict()['data'])
    except Exception as e:
        logger.exception(
            "gl.stage.error",
            extra={"document": context.source_number},
        )
        result = PostingResult(success=False, error=str(e), code='INTERNAL_ERROR')

    if result.success:
        document.gl_status = GLStatus.POSTED
        document.gl_entry_id = result.journal_entry_id
        document.gl_posted_at = timezone.now()
        document.gl_error = ''
    else:
        document.gl_status = GLStatus.FAILED
        document.gl_error = f"{result.code}: {result.error}"
        logger.error(
            "gl.stage.failed",
            extra={
                "document": context.source_number,
                "code": result.code,
                "error": result.error,
            },
        )

    document.save(update_fields=['gl_status', 'gl_entry', 'gl_posted_at', 'gl_error', 'updated_at'])
    return result


def shortfall_report(lines: list[ResolvedLine], available_base: dict[tuple, Decimal]) -> list[dict]:
    """
    Lines whose location cannot cover the total requested there.

    Requirements are summed per location first, so two lines drawing on the
    same stock are checked together. Quantities are reported in each line's
    own unit.
    """
    required: dict[tuple, Decimal] = {}
    for line in lines:
        required[line.location] = required.get(line.location, Decimal('0')) + line.qty_base

    report = []
    for line in lines:
        available = available_base.get(line.location, Decimal('0'))
        if available >= required[line.location]:
            continue
        available_in_unit = quantities.qty(line.unit.from_base(available))
        report.append({
            'line': line.index,
            'item_id': line.item.pk,
            'unit_id': line.unit.pk,
            'bin_id': line.bin.pk if line.bin is not None else None,
            'requested': line.qty,
            'available': available_in_unit,
            'message': (
                f"{line.item.name}: requested {line.qty} {line.unit.code}, "
                f"available {available_in_unit} {line.unit.code}"
            ),
        })
    return report
