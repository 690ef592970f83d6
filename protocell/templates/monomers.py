"""
Monomer templates.

A monomer is a stable molecule that chains with copies of itself into a
polymer: ethylene into polyethylene, glucose into polysaccharides, amino
acids into proteins, nucleotides into nucleic acids, fatty acids into lipid
chains. Each template carries a full atom/bond layout so it can be seeded
into the catalogue as a molecule blueprint; the formula and fingerprint are
derived from that layout rather than declared.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Iterable, List, Optional, Tuple

from protocell.chemistry.fingerprint import formula_of, structure_fingerprint
from protocell.chemistry.validity import check_valence
from protocell.templates.registry import TemplateRegistry


class PolymerizationType(Enum):
    """How monomers link."""
    ADDITION = "addition"  # Double bond opens
    CONDENSATION = "condensation"  # Functional groups react, small molecule released


AtomSlot = Tuple[str, float, float]
BondSlot = Tuple[int, int, int]


@dataclass(frozen=True)
class MonomerTemplate:
    """Declarative description of a monomer."""

    id: str
    name: str
    polymerization_type: PolymerizationType
    polymer_name: str
    polymer_category: str
    description: str
    min_monomers: int
    atom_layout: Tuple[AtomSlot, ...]
    bond_layout: Tuple[BondSlot, ...]
    cell_role: Optional[str] = None
    condensation_byproduct: Optional[str] = None

    @cached_property
    def formula(self) -> str:
        return formula_of(symbol for symbol, _, _ in self.atom_layout)

    @cached_property
    def fingerprint(self) -> str:
        symbols = {i: slot[0] for i, slot in enumerate(self.atom_layout)}
        return structure_fingerprint(symbols, self.bond_layout)

    def is_valid(self) -> bool:
        symbols = {i: slot[0] for i, slot in enumerate(self.atom_layout)}
        return check_valence(symbols, self.bond_layout).valid


class MonomerRegistry(TemplateRegistry[MonomerTemplate]):
    """Monomer registry with formula lookup."""

    def find_by_formula(self, formula: str) -> Optional[MonomerTemplate]:
        return self.find(lambda t: t.formula == formula)

    def is_known_monomer(self, formula: str) -> bool:
        return self.find_by_formula(formula) is not None

    def by_category(self, category: str) -> List[MonomerTemplate]:
        return self.filter(lambda t: t.polymer_category == category)

    def with_entries(self, extra: Iterable[MonomerTemplate]) -> "MonomerRegistry":
        return MonomerRegistry(super().with_entries(extra).list_all())


# =============================================================================
# TEMPLATES
# =============================================================================

ETHYLENE = MonomerTemplate(
    id="ethylene",
    name="Ethylene",
    polymerization_type=PolymerizationType.ADDITION,
    polymer_name="Polyethylene",
    polymer_category="generic",
    description="Simplest alkene, forms polyethylene plastic",
    min_monomers=3,
    atom_layout=(
        ("C", -15, 0),
        ("C", 15, 0),
        ("H", -30, -15),
        ("H", -30, 15),
        ("H", 30, -15),
        ("H", 30, 15),
    ),
    bond_layout=(
        (0, 1, 2),  # C=C
        (0, 2, 1),
        (0, 3, 1),
        (1, 4, 1),
        (1, 5, 1),
    ),
)

GLUCOSE = MonomerTemplate(
    id="glucose",
    name="Glucose",
    polymerization_type=PolymerizationType.CONDENSATION,
    polymer_name="Polysaccharide",
    polymer_category="carbohydrate",
    description="Sugar monomer, forms starch and cellulose",
    min_monomers=2,
    cell_role="energy",
    condensation_byproduct="H2O",
    atom_layout=(
        # Pyranose ring
        ("C", 0, 0),
        ("C", 20, -10),
        ("C", 40, 0),
        ("C", 40, 20),
        ("C", 20, 30),
        ("O", 0, 20),
        # CH2OH
        ("C", 20, 50),
        ("O", 35, 62),
        ("H", 48, 70),
        # Ring hydroxyls
        ("O", -15, -10),
        ("O", 20, -28),
        ("O", 58, -8),
        ("O", 58, 28),
        ("H", -28, -18),
        ("H", 30, -40),
        ("H", 70, -16),
        ("H", 70, 36),
        # Ring hydrogens
        ("H", -12, 5),
        ("H", 8, -18),
        ("H", 45, -12),
        ("H", 30, 12),
        ("H", 8, 36),
        ("H", 5, 55),
        ("H", 25, 64),
    ),
    bond_layout=(
        (0, 1, 1), (1, 2, 1), (2, 3, 1), (3, 4, 1), (4, 5, 1), (5, 0, 1),
        (4, 6, 1), (6, 7, 1), (7, 8, 1),
        (0, 9, 1), (1, 10, 1), (2, 11, 1), (3, 12, 1),
        (9, 13, 1), (10, 14, 1), (11, 15, 1), (12, 16, 1),
        (0, 17, 1), (1, 18, 1), (2, 19, 1), (3, 20, 1), (4, 21, 1),
        (6, 22, 1), (6, 23, 1),
    ),
)

GLYCINE = MonomerTemplate(
    id="glycine",
    name="Glycine",
    polymerization_type=PolymerizationType.CONDENSATION,
    polymer_name="Protein",
    polymer_category="protein",
    description="Simplest amino acid, forms proteins via peptide bonds",
    min_monomers=2,
    cell_role="structure",
    condensation_byproduct="H2O",
    # H2N-CH2-COOH
    atom_layout=(
        ("N", -30, 0),
        ("C", 0, 0),
        ("C", 30, 0),
        ("O", 45, -15),
        ("O", 45, 15),
        ("H", -45, -10),
        ("H", -45, 10),
        ("H", 0, -20),
        ("H", 0, 20),
        ("H", 60, 20),
    ),
    bond_layout=(
        (0, 1, 1),
        (1, 2, 1),
        (2, 3, 2),  # C=O
        (2, 4, 1),
        (0, 5, 1),
        (0, 6, 1),
        (1, 7, 1),
        (1, 8, 1),
        (4, 9, 1),
    ),
)

ADENINE_NUCLEOTIDE = MonomerTemplate(
    id="adenine_nucleotide",
    name="Adenine Nucleotide",
    polymerization_type=PolymerizationType.CONDENSATION,
    polymer_name="Nucleic Acid",
    polymer_category="nucleic_acid",
    description="DNA/RNA building block: phosphate, sugar and a reduced amine base",
    min_monomers=2,
    cell_role="genetics",
    condensation_byproduct="H2O",
    atom_layout=(
        # Phosphate
        ("P", -40, 0),
        ("O", -40, -20),
        ("O", -58, -10),
        ("O", -58, 10),
        ("O", -22, 0),
        # Sugar
        ("C", -5, 0),
        ("C", 12, 0),
        ("N", 30, 0),
        ("O", 12, 18),
        # Base
        ("C", 40, -15),
        ("C", 40, 15),
        ("N", 58, -10),
        ("C", 58, 10),
        ("N", 75, 18),
        # Hydrogens
        ("H", -72, -16),
        ("H", -72, 16),
        ("H", -5, -16),
        ("H", -5, 16),
        ("H", 12, -16),
        ("H", 12, 32),
        ("H", 35, -30),
        ("H", 35, 30),
        ("H", 88, 12),
        ("H", 78, 32),
    ),
    bond_layout=(
        (0, 1, 2), (0, 2, 1), (0, 3, 1), (0, 4, 1),
        (4, 5, 1), (5, 6, 1), (6, 7, 1), (6, 8, 1),
        (7, 9, 1), (9, 11, 2), (11, 12, 1), (12, 10, 2), (10, 7, 1),
        (12, 13, 1),
        (2, 14, 1), (3, 15, 1), (5, 16, 1), (5, 17, 1), (6, 18, 1),
        (8, 19, 1), (9, 20, 1), (10, 21, 1), (13, 22, 1), (13, 23, 1),
    ),
)

FATTY_ACID = MonomerTemplate(
    id="fatty_acid",
    name="Fatty Acid",
    polymerization_type=PolymerizationType.CONDENSATION,
    polymer_name="Lipid Chain",
    polymer_category="lipid",
    description="Short-chain fatty acid (butyric), forms lipid membranes",
    min_monomers=2,
    cell_role="membrane",
    condensation_byproduct="H2O",
    # CH3-CH2-CH2-COOH
    atom_layout=(
        ("C", -45, 0),
        ("C", -15, 0),
        ("C", 15, 0),
        ("C", 45, 0),
        ("O", 60, -15),
        ("O", 60, 15),
        ("H", -55, -12),
        ("H", -55, 12),
        ("H", -60, 0),
        ("H", -15, -15),
        ("H", -15, 15),
        ("H", 15, -15),
        ("H", 15, 15),
        ("H", 75, 20),
    ),
    bond_layout=(
        (0, 1, 1), (1, 2, 1), (2, 3, 1),
        (3, 4, 2), (3, 5, 1),
        (0, 6, 1), (0, 7, 1), (0, 8, 1),
        (1, 9, 1), (1, 10, 1),
        (2, 11, 1), (2, 12, 1),
        (5, 13, 1),
    ),
)

MONOMER_TEMPLATES = (ETHYLENE, GLUCOSE, GLYCINE, ADENINE_NUCLEOTIDE, FATTY_ACID)


def default_monomer_registry() -> MonomerRegistry:
    return MonomerRegistry(MONOMER_TEMPLATES)
