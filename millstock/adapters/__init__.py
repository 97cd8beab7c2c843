"""
Millstock Adapters.

Implementations of protocols for external systems.
"""

from millstock.adapters.catalog import ModelCatalog, get_catalog

__all__ = [
    "ModelCatalog",
    "get_catalog",
]
