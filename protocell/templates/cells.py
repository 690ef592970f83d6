"""
Cell blueprints and hierarchical requirement matching.

A cell blueprint declares named roles (membrane, nucleoid, ribosomes), each
filled by polymers of a referenced template's type with a minimum chain
length, in a required number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from protocell.chemistry.fingerprint import template_fingerprint
from protocell.errors import ValidationError
from protocell.templates.monomers import MonomerRegistry, default_monomer_registry
from protocell.templates.polymers import PolymerTemplate, default_polymer_registry
from protocell.templates.registry import TemplateRegistry

DEFAULT_CELL_COLOR = "#8b5cf6"


@dataclass(frozen=True)
class RoleRequirement:
    """What one role of a cell needs."""

    polymer_id: str
    min_chain_length: int
    count: int
    description: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "polymerId": self.polymer_id,
            "minChainLength": self.min_chain_length,
            "count": self.count,
            "description": self.description,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "RoleRequirement":
        try:
            return cls(
                polymer_id=str(data["polymerId"]),
                min_chain_length=int(data.get("minChainLength", 1)),
                count=int(data.get("count", 1)),
                description=data.get("description", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed role requirement: {data!r}") from e


@dataclass
class RoleProgress:
    have: int
    need: int
    satisfied: bool
    polymers: List[Any] = field(default_factory=list)


@dataclass
class RequirementReport:
    """Per-role progress plus the roles still short."""
    satisfied: bool
    progress: Dict[str, RoleProgress]
    missing: List[Dict[str, Any]]


def chain_length(polymer: Any) -> int:
    length = getattr(polymer, "chain_length", None)
    if length is None:
        length = len(getattr(polymer, "molecules", None) or [])
    return int(length)


@dataclass
class CellBlueprint:
    """Static blueprint of a prokaryote-like assembly."""

    id: str
    name: str
    requirements: Dict[str, RoleRequirement]
    species: Optional[str] = None
    description: str = ""
    color: str = DEFAULT_CELL_COLOR

    @property
    def fingerprint(self) -> str:
        return template_fingerprint(
            "cell",
            [
                (role, req.polymer_id, req.min_chain_length, req.count)
                for role, req in self.requirements.items()
            ],
        )

    @property
    def total_polymers_required(self) -> int:
        return sum(req.count for req in self.requirements.values())

    def check_requirements(
        self,
        candidates: Sequence[Any],
        polymers: Optional[TemplateRegistry[PolymerTemplate]] = None,
    ) -> RequirementReport:
        """
        Check which roles the candidate polymers fill.

        A candidate counts towards a role when its declared type equals the
        referenced polymer template's type and its chain length is at least
        the role's minimum. A candidate may count towards several roles.
        Candidates are never modified.

        Args:
            candidates: Polymer instances (``type`` plus ``chain_length`` or
                ``molecules``).
            polymers: Registry resolving ``polymer_id`` references.

        Returns:
            ``RequirementReport``; ``satisfied`` iff every role is.
        """
        polymers = polymers if polymers is not None else default_polymer_registry()
        progress: Dict[str, RoleProgress] = {}
        missing: List[Dict[str, Any]] = []

        for role, req in self.requirements.items():
            template = polymers.lookup(req.polymer_id)
            if template is None:
                matching: List[Any] = []
            else:
                matching = [
                    p for p in candidates
                    if p.type == template.type and chain_length(p) >= req.min_chain_length
                ]

            progress[role] = RoleProgress(
                have=len(matching),
                need=req.count,
                satisfied=len(matching) >= req.count,
                polymers=matching,
            )
            if len(matching) < req.count:
                missing.append({
                    "role": role,
                    "polymerId": req.polymer_id,
                    "need": req.count,
                    "have": len(matching),
                    "minChainLength": req.min_chain_length,
                })

        return RequirementReport(satisfied=not missing, progress=progress, missing=missing)

    def detailed_requirements(
        self,
        polymers: Optional[TemplateRegistry[PolymerTemplate]] = None,
        monomers: Optional[MonomerRegistry] = None,
    ) -> List[Dict[str, Any]]:
        """Requirements joined with their polymer and monomer templates."""
        polymers = polymers if polymers is not None else default_polymer_registry()
        monomers = monomers if monomers is not None else default_monomer_registry()

        details = []
        for role, req in self.requirements.items():
            template = polymers.lookup(req.polymer_id)
            monomer = monomers.lookup(template.monomer_id) if template else None
            details.append({
                "role": role,
                "polymerId": req.polymer_id,
                "polymerName": template.name if template else req.polymer_id,
                "polymerType": template.type.value if template else "generic",
                "minChainLength": req.min_chain_length,
                "count": req.count,
                "description": req.description,
                "monomerId": template.monomer_id if template else None,
                "monomerName": monomer.name if monomer else None,
                "monomerFormula": monomer.formula if monomer else None,
            })
        return details

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "species": self.species,
            "description": self.description,
            "requirements": {role: req.to_record() for role, req in self.requirements.items()},
            "color": self.color,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "CellBlueprint":
        if not isinstance(data, Mapping) or "id" not in data:
            raise ValidationError(f"Cell record without id: {data!r}")
        requirements = data.get("requirements") or {}
        if not isinstance(requirements, Mapping):
            raise ValidationError(f"Cell {data['id']}: requirements must be a mapping")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            species=data.get("species"),
            description=data.get("description", ""),
            requirements={
                role: RoleRequirement.from_record(req) for role, req in requirements.items()
            },
            color=data.get("color") or DEFAULT_CELL_COLOR,
        )


# =============================================================================
# BLUEPRINTS
# =============================================================================

MINIMAL_CELL = CellBlueprint(
    id="minimal_cell",
    name="Minimal Cell",
    species="Protocellus minimus",
    description="Simplest possible living cell with just membrane and genetic material",
    requirements={
        "membrane": RoleRequirement("phospholipid", 2, 1, "Lipid bilayer enclosing the cell"),
        "nucleoid": RoleRequirement("dna_strand", 2, 1, "Genetic material for replication"),
    },
    color="#4ade80",
)

CYANOBACTERIA = CellBlueprint(
    id="cyanobacteria",
    name="Cyanobacteria",
    species="Synechococcus elongatus",
    description="Photosynthetic bacteria that produce oxygen",
    requirements={
        "membrane": RoleRequirement("phospholipid", 3, 1, "Double membrane with thylakoid system"),
        "nucleoid": RoleRequirement("dna_strand", 3, 1, "Circular chromosome"),
        "ribosomes": RoleRequirement("structural_protein", 2, 1, "Protein synthesis machinery"),
    },
    color="#22d3ee",
)

ESCHERICHIA_COLI = CellBlueprint(
    id="e_coli",
    name="E. coli",
    species="Escherichia coli",
    description="Common gut bacterium and model organism for molecular biology",
    requirements={
        "membrane": RoleRequirement("phospholipid", 3, 2, "Inner and outer membrane"),
        "nucleoid": RoleRequirement("dna_strand", 4, 1, "Single circular chromosome"),
        "ribosomes": RoleRequirement("structural_protein", 3, 2, "Ribosomes for protein production"),
    },
    color="#f472b6",
)

THERMOPHILE = CellBlueprint(
    id="thermophile",
    name="Thermophile",
    species="Thermus aquaticus",
    description="Heat-loving bacteria, source of Taq polymerase",
    requirements={
        "membrane": RoleRequirement("phospholipid", 4, 2, "Heat-stable lipid bilayer"),
        "nucleoid": RoleRequirement("dna_strand", 3, 1, "Heat-stable DNA"),
        "ribosomes": RoleRequirement("structural_protein", 3, 1, "Heat-stable proteins"),
    },
    color="#f97316",
)

CELL_BLUEPRINTS = (MINIMAL_CELL, CYANOBACTERIA, ESCHERICHIA_COLI, THERMOPHILE)


def default_cell_registry() -> TemplateRegistry[CellBlueprint]:
    return TemplateRegistry(CELL_BLUEPRINTS)
