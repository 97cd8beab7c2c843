"""
Catalog adapters.

ModelCatalog reads Millstock's own catalog tables. get_catalog() loads the
backend named in settings:

    MILLSTOCK = {
        "CATALOG_BACKEND": "millstock.adapters.catalog.ModelCatalog",
    }

Backends are constructed with the database alias of the calling service.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from millstock.conf import millstock_settings
from millstock.models import Bin, Item, Unit, Warehouse
from millstock.protocols.catalog import CatalogBackend

logger = logging.getLogger(__name__)


class ModelCatalog:
    """CatalogBackend over the millstock Unit/Item/Warehouse/Bin tables."""

    def __init__(self, using: str = 'default'):
        self.using = using

    def _get(self, model, pk):
        if pk is None:
            return None
        return model.objects.using(self.using).filter(pk=pk).first()

    def get_item(self, item_id) -> Item | None:
        return self._get(Item, item_id)

    def get_unit(self, unit_id) -> Unit | None:
        return self._get(Unit, unit_id)

    def get_warehouse(self, warehouse_id) -> Warehouse | None:
        return self._get(Warehouse, warehouse_id)

    def get_bin(self, bin_id) -> Bin | None:
        return self._get(Bin, bin_id)

    def find_item_by_sku(self, sku: str) -> Item | None:
        return Item.objects.using(self.using).filter(sku=sku).first()

    def create_item(
        self,
        sku: str,
        name: str,
        base_unit: Unit,
        description: str = '',
        min_stock: Decimal = Decimal('0'),
        max_stock: Decimal = Decimal('0'),
    ) -> Item:
        return Item.objects.using(self.using).create(
            sku=sku,
            name=name,
            base_unit=base_unit,
            description=description,
            min_stock=min_stock,
            max_stock=max_stock,
            is_active=True,
        )


def get_catalog(using: str = 'default') -> CatalogBackend:
    """
    Return the configured catalog backend bound to a database alias.

    Raises:
        ImproperlyConfigured: If CATALOG_BACKEND is empty or cannot be imported
    """
    backend_path = millstock_settings.CATALOG_BACKEND

    if not backend_path:
        raise ImproperlyConfigured(
            "MILLSTOCK['CATALOG_BACKEND'] must be configured. "
            "Example: 'millstock.adapters.catalog.ModelCatalog'"
        )

    try:
        backend_class = import_string(backend_path)
    except ImportError as e:
        raise ImproperlyConfigured(
            f"Failed to import catalog backend '{backend_path}': {e}"
        ) from e

    logger.debug("Loaded catalog backend: %s", backend_path)
    return backend_class(using=using)
