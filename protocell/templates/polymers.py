"""
Polymer templates and the usefulness classifier.

A polymer template names the monomer it is built from, the minimum chain
length and the cell role it fills. Classification walks the registry in
declaration order and stops at the first template whose predicate accepts
the polymer, so a shorter-minimum template listed after a longer-minimum one
of the same type only catches the chains the first one rejects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from protocell.chemistry.fingerprint import template_fingerprint
from protocell.templates.monomers import MonomerRegistry, default_monomer_registry
from protocell.templates.registry import TemplateRegistry


class PolymerType(str, Enum):
    """Declared polymer type."""
    GENERIC = "generic"
    LIPID = "lipid"
    CARBOHYDRATE = "carbohydrate"
    PROTEIN = "protein"
    NUCLEIC_ACID = "nucleic_acid"


# Role a sealed polymer of each type takes in a cell
TYPE_ROLES: Dict[PolymerType, Optional[str]] = {
    PolymerType.LIPID: "membrane",
    PolymerType.PROTEIN: "structure",
    PolymerType.NUCLEIC_ACID: "genetics",
    PolymerType.CARBOHYDRATE: "energy",
    PolymerType.GENERIC: None,
}


@dataclass(frozen=True)
class PolymerTemplate:
    """Declarative polymer: a chain of one monomer with a minimum length."""

    id: str
    name: str
    type: PolymerType
    monomer_id: str
    min_monomers: int
    cell_role: Optional[str] = None
    essential: bool = False
    description: str = ""

    @property
    def fingerprint(self) -> str:
        return template_fingerprint(
            "polymer",
            [(self.cell_role or "none", self.monomer_id, self.min_monomers, 1)],
            qualifier=self.type.value,
        )

    def matches(self, polymer: Any, monomers: MonomerRegistry) -> bool:
        """
        Type equality, minimum chain length and monomer homogeneity.

        Every molecule of the polymer must have this template's monomer
        formula.
        """
        molecules = getattr(polymer, "molecules", None) or []
        if len(molecules) < self.min_monomers:
            return False
        if polymer.type != self.type:
            return False
        monomer = monomers.lookup(self.monomer_id)
        if monomer is None:
            return False
        return all(m.formula == monomer.formula for m in molecules)


@dataclass
class PolymerUsefulness:
    useful: bool
    template: Optional[PolymerTemplate] = None
    role: Optional[str] = None
    essential: bool = False


@dataclass
class CellViability:
    """Role coverage of a polymer set against ``VIABILITY_REQUIREMENTS``."""
    viable: bool
    role_counts: Dict[str, int]
    missing: List[Dict[str, Any]] = field(default_factory=list)


# =============================================================================
# TEMPLATES
# =============================================================================

PHOSPHOLIPID = PolymerTemplate(
    id="phospholipid",
    name="Phospholipid",
    type=PolymerType.LIPID,
    monomer_id="fatty_acid",
    min_monomers=3,
    cell_role="membrane",
    essential=True,
    description="Forms the cell membrane bilayer",
)
FATTY_ACID_CHAIN = PolymerTemplate(
    id="fatty_acid",
    name="Fatty Acid",
    type=PolymerType.LIPID,
    monomer_id="fatty_acid",
    min_monomers=2,
    cell_role="membrane",
    description="Building block for lipids and energy storage",
)
STRUCTURAL_PROTEIN = PolymerTemplate(
    id="structural_protein",
    name="Structural Protein",
    type=PolymerType.PROTEIN,
    monomer_id="glycine",
    min_monomers=4,
    cell_role="structure",
    essential=True,
    description="Provides cell structure and support",
)
ENZYME = PolymerTemplate(
    id="enzyme",
    name="Enzyme",
    type=PolymerType.PROTEIN,
    monomer_id="glycine",
    min_monomers=3,
    cell_role="metabolism",
    description="Catalyzes chemical reactions",
)
TRANSPORT_PROTEIN = PolymerTemplate(
    id="transport_protein",
    name="Transport Protein",
    type=PolymerType.PROTEIN,
    monomer_id="glycine",
    min_monomers=3,
    cell_role="transport",
    description="Moves molecules across membrane",
)
DNA_STRAND = PolymerTemplate(
    id="dna_strand",
    name="DNA Strand",
    type=PolymerType.NUCLEIC_ACID,
    monomer_id="adenine_nucleotide",
    min_monomers=4,
    cell_role="genetics",
    essential=True,
    description="Stores genetic information",
)
RNA_STRAND = PolymerTemplate(
    id="rna_strand",
    name="RNA Strand",
    type=PolymerType.NUCLEIC_ACID,
    monomer_id="adenine_nucleotide",
    min_monomers=3,
    cell_role="genetics",
    description="Carries genetic messages for protein synthesis",
)
GLYCOGEN = PolymerTemplate(
    id="glycogen",
    name="Glycogen",
    type=PolymerType.CARBOHYDRATE,
    monomer_id="glucose",
    min_monomers=3,
    cell_role="energy",
    description="Energy storage molecule",
)
CELLULOSE = PolymerTemplate(
    id="cellulose",
    name="Cellulose",
    type=PolymerType.CARBOHYDRATE,
    monomer_id="glucose",
    min_monomers=4,
    cell_role="structure",
    description="Structural carbohydrate (cell wall)",
)
POLYETHYLENE = PolymerTemplate(
    id="polyethylene",
    name="Polyethylene",
    type=PolymerType.GENERIC,
    monomer_id="ethylene",
    min_monomers=3,
    description="Addition polymer of ethylene",
)

# Declaration order is the classification order
POLYMER_TEMPLATES = (
    PHOSPHOLIPID,
    FATTY_ACID_CHAIN,
    STRUCTURAL_PROTEIN,
    ENZYME,
    TRANSPORT_PROTEIN,
    DNA_STRAND,
    RNA_STRAND,
    GLYCOGEN,
    CELLULOSE,
    POLYETHYLENE,
)

# role -> (required count, acceptable polymer template ids)
VIABILITY_REQUIREMENTS: Dict[str, Tuple[int, Tuple[str, ...]]] = {
    "membrane": (1, ("phospholipid", "fatty_acid")),
    "structure": (1, ("structural_protein", "cellulose")),
    "genetics": (1, ("dna_strand", "rna_strand")),
    "metabolism": (0, ("enzyme",)),
    "energy": (0, ("glycogen",)),
    "transport": (0, ("transport_protein",)),
}


def default_polymer_registry() -> TemplateRegistry[PolymerTemplate]:
    return TemplateRegistry(POLYMER_TEMPLATES)


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_polymer(
    polymer: Any,
    polymers: Optional[TemplateRegistry[PolymerTemplate]] = None,
    monomers: Optional[MonomerRegistry] = None,
) -> PolymerUsefulness:
    """
    Find the first template, in declaration order, that accepts ``polymer``.

    Args:
        polymer: Anything with ``type`` and ``molecules`` (each with ``formula``).
        polymers: Polymer template registry.
        monomers: Monomer registry used to resolve each template's monomer.

    Returns:
        ``PolymerUsefulness`` carrying the winning template, or ``useful=False``.
    """
    polymers = polymers if polymers is not None else default_polymer_registry()
    monomers = monomers if monomers is not None else default_monomer_registry()

    for template in polymers.list_all():
        if template.matches(polymer, monomers):
            return PolymerUsefulness(
                useful=True,
                template=template,
                role=template.cell_role,
                essential=template.essential,
            )
    return PolymerUsefulness(useful=False)


def check_cell_viability(
    polymers: Sequence[Any],
    registry: Optional[TemplateRegistry[PolymerTemplate]] = None,
    monomers: Optional[MonomerRegistry] = None,
) -> CellViability:
    """Count classified roles and report the ones short of their requirement."""
    role_counts = {role: 0 for role in VIABILITY_REQUIREMENTS}
    for polymer in polymers:
        result = classify_polymer(polymer, registry, monomers)
        if result.useful and result.role in role_counts:
            role_counts[result.role] += 1

    missing = []
    for role, (count, options) in VIABILITY_REQUIREMENTS.items():
        if role_counts[role] < count:
            missing.append(
                {"role": role, "needed": count - role_counts[role], "options": list(options)}
            )

    return CellViability(viable=not missing, role_counts=role_counts, missing=missing)
