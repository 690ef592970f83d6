"""
Protocell: a chemistry catalogue and structural-validity engine.

Atoms and bonds are checked for valence saturation, fingerprinted by
composition and topology, and recorded as blueprints in a deduplicated,
persistent catalogue. Template registries describe the monomers, polymers
and cells the catalogue knows about; the assembly layer reshapes molecules
toward stable geometries and finds clusters of polymers that can assemble.
"""

__version__ = "0.1.0"
__author__ = "Protocell Contributors"

from protocell.errors import CatalogueError, PersistenceError, SnapshotError, ValidationError
from protocell.chemistry import (
    ElementTable,
    Molecule,
    StructureGraph,
    is_valid,
    structure_fingerprint,
)
from protocell.templates import (
    MonomerRegistry,
    PolymerType,
    StableFormRegistry,
    TemplateRegistry,
)
from protocell.assembly import Polymer, StableFormReshaper, detect_assemblies
from protocell.catalogue import (
    Catalogue,
    InMemoryStore,
    JsonDirectoryStore,
    MoleculeBlueprint,
    PolymerBlueprint,
)
from protocell.templates.cells import CellBlueprint

__all__ = [
    # Errors
    "CatalogueError",
    "PersistenceError",
    "SnapshotError",
    "ValidationError",
    # Chemistry
    "ElementTable",
    "Molecule",
    "StructureGraph",
    "is_valid",
    "structure_fingerprint",
    # Templates
    "CellBlueprint",
    "MonomerRegistry",
    "PolymerType",
    "StableFormRegistry",
    "TemplateRegistry",
    # Assembly
    "Polymer",
    "StableFormReshaper",
    "detect_assemblies",
    # Catalogue
    "Catalogue",
    "InMemoryStore",
    "JsonDirectoryStore",
    "MoleculeBlueprint",
    "PolymerBlueprint",
]
