"""
Error taxonomy for the protocell catalogue.

Most foreseeable conditions (duplicate fingerprints, lookup misses, invalid
structures offered for registration) are reported as ``None`` return values
by the catalogue. The exceptions below mark the places where a condition has
to cross a function boundary before it can be turned into a return value.
"""

from __future__ import annotations


class CatalogueError(Exception):
    """Base class for all catalogue errors."""


class ValidationError(CatalogueError):
    """A structure or persisted record is malformed or not valence-saturated."""


class PersistenceError(CatalogueError):
    """The durable store could not complete a read or write."""


class SnapshotError(CatalogueError):
    """An import snapshot could not be parsed; the import is aborted."""
