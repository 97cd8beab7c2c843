"""
Millstock Protocols.

Defines interfaces for external system integration.
"""

from millstock.protocols.catalog import CatalogBackend

__all__ = [
    "CatalogBackend",
]
