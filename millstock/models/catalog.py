"""
Catalog models — units, items, warehouses and bins.

The engine only reads these (through a CatalogBackend); they live here so the
app works standalone. Items are never deleted once the ledger references them.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class Unit(models.Model):
    """
    Unit of measure with its factor to the base unit.

    Example: a box of 12 has conversion_to_base=12, so 3 boxes = 36 base units.
    """

    code = models.CharField(max_length=20, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    conversion_to_base = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        default=Decimal('1'),
        verbose_name=_('Conversion to base'),
    )

    class Meta:
        verbose_name = _('Unit')
        verbose_name_plural = _('Units')
        ordering = ['code']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(conversion_to_base__gt=0),
                name='unit_conversion_positive',
            ),
        ]

    def to_base(self, qty: Decimal) -> Decimal:
        return qty * self.conversion_to_base

    def from_base(self, qty: Decimal) -> Decimal:
        return qty / self.conversion_to_base

    def __str__(self) -> str:
        return self.code


class Item(models.Model):
    """Catalog item. Stock is always tracked in base_unit."""

    sku = models.CharField(max_length=64, unique=True, verbose_name=_('SKU'))
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    base_unit = models.ForeignKey(
        Unit,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Base unit'),
    )
    min_stock = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal('0'))
    max_stock = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal('0'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Item')
        verbose_name_plural = _('Items')
        ordering = ['sku']

    def __str__(self) -> str:
        return f"{self.sku} {self.name}"


class Warehouse(models.Model):
    """Physical storage scope; belongs to one company."""

    code = models.CharField(max_length=20, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    company_code = models.CharField(max_length=20, db_index=True, verbose_name=_('Company'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def __str__(self) -> str:
        return self.code


class Bin(models.Model):
    """Storage bin inside a warehouse."""

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='bins',
        verbose_name=_('Warehouse'),
    )
    code = models.CharField(max_length=20, verbose_name=_('Code'))
    name = models.CharField(max_length=100, blank=True, default='')
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _('Bin')
        verbose_name_plural = _('Bins')
        ordering = ['warehouse', 'code']
        constraints = [
            models.UniqueConstraint(fields=['warehouse', 'code'], name='unique_bin_per_warehouse'),
        ]

    def __str__(self) -> str:
        return f"{self.warehouse.code}/{self.code}"
