"""
Catalog Protocol — interface to the item/unit/warehouse master data.

Millstock defines this protocol; the master-data app (or the bundled
ModelCatalog) implements it. Lookups return None on a miss; the workflows
decide which miss is a ValidationError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from millstock.models import Bin, Item, Unit, Warehouse


@runtime_checkable
class CatalogBackend(Protocol):
    """
    Read access to the catalog, plus item creation for new-item receipts.

    Implementations:
        - ModelCatalog: Millstock's own catalog tables
    """

    def get_item(self, item_id) -> Item | None:
        ...

    def get_unit(self, unit_id) -> Unit | None:
        ...

    def get_warehouse(self, warehouse_id) -> Warehouse | None:
        ...

    def get_bin(self, bin_id) -> Bin | None:
        ...

    def find_item_by_sku(self, sku: str) -> Item | None:
        ...

    def create_item(
        self,
        sku: str,
        name: str,
        base_unit: Unit,
        description: str = '',
        min_stock: Decimal = Decimal('0'),
        max_stock: Decimal = Decimal('0'),
    ) -> Item:
        """
        Create an active item. Must run on the caller's transaction so the
        item and its opening stock commit together.

        Raises:
            django.db.IntegrityError: If the SKU is taken
        """
        ...
