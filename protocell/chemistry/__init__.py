"""
Chemistry module for Protocell.

Contains the element table, the atom/bond arena with its molecule view,
the valence-balance checker and content fingerprinting.
"""

from protocell.chemistry.elements import (
    Element,
    ElementTable,
    bond_energy,
    default_element_table,
)
from protocell.chemistry.fingerprint import (
    formula_of,
    normalize_formula,
    same_structure,
    structure_fingerprint,
    template_fingerprint,
)
from protocell.chemistry.structure import Atom, Bond, Molecule, StructureGraph
from protocell.chemistry.validity import (
    ValenceReport,
    check_valence,
    is_blueprint_valid,
    is_valid,
)

__all__ = [
    "Element",
    "ElementTable",
    "bond_energy",
    "default_element_table",
    "formula_of",
    "normalize_formula",
    "same_structure",
    "structure_fingerprint",
    "template_fingerprint",
    "Atom",
    "Bond",
    "Molecule",
    "StructureGraph",
    "ValenceReport",
    "check_valence",
    "is_blueprint_valid",
    "is_valid",
]
