"""
Catalogue module for Protocell.

Blueprint records, durable stores and the fingerprint-keyed catalogue that
registers, deduplicates, searches, exports and imports them.
"""

from protocell.catalogue.blueprints import CellBlueprint, MoleculeBlueprint, PolymerBlueprint
from protocell.catalogue.store import BlueprintStore, InMemoryStore, JsonDirectoryStore
from protocell.catalogue.catalogue import Catalogue, CleanupReport, ImportReport

__all__ = [
    # Records
    "CellBlueprint",
    "MoleculeBlueprint",
    "PolymerBlueprint",
    # Stores
    "BlueprintStore",
    "InMemoryStore",
    "JsonDirectoryStore",
    # Catalogue
    "Catalogue",
    "CleanupReport",
    "ImportReport",
]
