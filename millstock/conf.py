"""
Millstock configuration.

Usage in settings.py:
    MILLSTOCK = {
        "CATALOG_BACKEND": "millstock.adapters.catalog.ModelCatalog",
        "GL_TOLERANCE": "0.01",
        "LEDGER_PAGE_SIZE": 50,
    }
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class MillstockSettings:
    """Millstock configuration settings."""

    # Catalog collaborator (dotted path to a CatalogBackend implementation)
    CATALOG_BACKEND: str = "millstock.adapters.catalog.ModelCatalog"

    # Max |debit - credit| accepted on a journal entry
    GL_TOLERANCE: str = "0.01"

    # Ledger pagination
    LEDGER_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500

    # Document number prefixes
    ISSUE_PREFIX: str = "OUT"
    RECEIPT_PREFIX: str = "IN"
    LOAN_RETURN_PREFIX: str = "RET-LOAN"
    JOURNAL_PREFIX: str = "JV"

    # Zero-padding of sequence numbers
    SEQUENCE_PADDING: int = 4

    # Attempts when creating a sequence row races another transaction
    SEQUENCE_RETRIES: int = 3

    @property
    def gl_tolerance(self) -> Decimal:
        return Decimal(str(self.GL_TOLERANCE))


def get_millstock_settings() -> MillstockSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "MILLSTOCK", {})
    return MillstockSettings(**{
        k: v for k, v in user_settings.items()
        if k in MillstockSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_millstock_settings(), name)


millstock_settings = _LazySettings()
