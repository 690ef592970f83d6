"""
Persisted blueprint records.

Blueprints are what the catalogue stores: a molecule blueprint keeps an atom
layout relative to the molecule's centre of mass and a bond layout by atom
index, so it can be turned back into atoms anywhere. ``to_record`` and
``from_record`` convert to and from the camelCase JSON records written to the
store and to export snapshots.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import networkx as nx
import numpy as np

from protocell.chemistry.elements import ElementTable, default_element_table
from protocell.chemistry.fingerprint import build_bond_graph, formula_of, template_fingerprint
from protocell.chemistry.structure import Molecule, StructureGraph, as_position, new_id
from protocell.errors import ValidationError
from protocell.templates.cells import CellBlueprint
from protocell.templates.monomers import MonomerTemplate
from protocell.templates.polymers import PolymerTemplate, PolymerType, PolymerUsefulness

__all__ = [
    "MoleculeBlueprint",
    "PolymerBlueprint",
    "CellBlueprint",
]


def _now() -> float:
    """Creation timestamp in milliseconds."""
    return time.time() * 1000.0


# =============================================================================
# MOLECULES
# =============================================================================

@dataclass
class MoleculeBlueprint:
    """Persisted description of a discovered (or seeded) molecule."""

    fingerprint: str
    name: str
    formula: str
    atom_data: List[Dict[str, Any]]
    bond_data: List[Dict[str, Any]]
    mass: float = 0.0
    is_stable: bool = False
    created_at: float = field(default_factory=_now)
    description: str = ""
    tags: List[str] = field(default_factory=list)
    is_monomer: bool = False
    monomer_id: Optional[str] = None
    polymer_category: Optional[str] = None
    polymer_name: Optional[str] = None
    cell_role: Optional[str] = None
    id: str = field(default_factory=new_id)
    # Seeded from a monomer template; never persisted, exempt from cleanup
    static: bool = False

    type = "molecule"

    @classmethod
    def from_molecule(
        cls,
        molecule: Molecule,
        name: Optional[str] = None,
        fingerprint: Optional[str] = None,
    ) -> "MoleculeBlueprint":
        """
        Capture a molecule's layout relative to its centre of mass.

        ``fingerprint`` overrides the molecule's own key; the catalogue
        passes a suffixed key when the hash collides with another structure.
        """
        atoms = molecule.atoms
        center = molecule.center_of_mass
        index_of = {atom.id: i for i, atom in enumerate(atoms)}

        atom_data = [
            {
                "index": i,
                "symbol": atom.symbol,
                "relX": float(atom.position[0] - center[0]),
                "relY": float(atom.position[1] - center[1]),
            }
            for i, atom in enumerate(atoms)
        ]
        bond_data = [
            {
                "atom1Index": index_of[bond.atom1_id],
                "atom2Index": index_of[bond.atom2_id],
                "order": bond.order,
            }
            for bond in molecule.bonds
        ]

        monomer = molecule.monomer_template
        return cls(
            fingerprint=fingerprint or molecule.fingerprint,
            name=name or molecule.name or molecule.formula,
            formula=molecule.formula,
            atom_data=atom_data,
            bond_data=bond_data,
            mass=molecule.mass,
            is_stable=molecule.is_stable(),
            is_monomer=monomer is not None,
            monomer_id=monomer.id if monomer else None,
            polymer_category=monomer.polymer_category if monomer else None,
            polymer_name=monomer.polymer_name if monomer else None,
            cell_role=monomer.cell_role if monomer else None,
        )

    @classmethod
    def from_monomer(
        cls,
        template: MonomerTemplate,
        elements: Optional[ElementTable] = None,
    ) -> "MoleculeBlueprint":
        """Static blueprint for a monomer template."""
        elements = elements or default_element_table()
        offsets = np.array([(x, y) for _, x, y in template.atom_layout], dtype=float)
        weights = np.array([elements.mass(s) for s, _, _ in template.atom_layout])
        offsets -= (offsets * weights[:, None]).sum(axis=0) / weights.sum()

        return cls(
            fingerprint=template.fingerprint,
            name=template.name,
            formula=template.formula,
            atom_data=[
                {"index": i, "symbol": slot[0], "relX": float(x), "relY": float(y)}
                for i, (slot, (x, y)) in enumerate(zip(template.atom_layout, offsets))
            ],
            bond_data=[
                {"atom1Index": a, "atom2Index": b, "order": order}
                for a, b, order in template.bond_layout
            ],
            mass=float(weights.sum()),
            is_stable=template.is_valid(),
            created_at=0.0,
            description=template.description,
            tags=["monomer", template.polymer_category],
            is_monomer=True,
            monomer_id=template.id,
            polymer_category=template.polymer_category,
            polymer_name=template.polymer_name,
            cell_role=template.cell_role,
            id=f"monomer_{template.id}",
            static=True,
        )

    def bond_graph(self) -> nx.Graph:
        """Labelled bond graph of the stored layout, keyed by atom index."""
        return build_bond_graph(
            {a["index"]: a["symbol"] for a in self.atom_data},
            ((b["atom1Index"], b["atom2Index"], b["order"]) for b in self.bond_data),
        )

    def instantiate(self, graph: StructureGraph, position: Any = (0.0, 0.0)) -> Molecule:
        """
        Build the blueprint's atoms and bonds in ``graph`` around ``position``.

        Returns:
            The new molecule.
        """
        origin = as_position(position)
        ids = {}
        for data in self.atom_data:
            ids[data["index"]] = graph.add_atom(
                data["symbol"], origin + np.array([data["relX"], data["relY"]])
            )
        for data in self.bond_data:
            graph.add_bond(ids[data["atom1Index"]], ids[data["atom2Index"]], data.get("order", 1))
        return Molecule(graph, list(ids.values()), name=self.name)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "fingerprint": self.fingerprint,
            "name": self.name,
            "formula": self.formula,
            "atomData": [dict(a) for a in self.atom_data],
            "bondData": [dict(b) for b in self.bond_data],
            "mass": self.mass,
            "isStable": self.is_stable,
            "createdAt": self.created_at,
            "description": self.description,
            "tags": list(self.tags),
            "isMonomer": self.is_monomer,
            "monomerId": self.monomer_id,
            "polymerCategory": self.polymer_category,
            "polymerName": self.polymer_name,
            "cellRole": self.cell_role,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "MoleculeBlueprint":
        """
        Parse a stored molecule record.

        Raises:
            ValidationError: If required fields are missing or mistyped.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Molecule record must be an object, got {type(data).__name__}")
        try:
            atom_data = [
                {
                    "index": int(a["index"]),
                    "symbol": str(a["symbol"]),
                    "relX": float(a.get("relX", 0.0)),
                    "relY": float(a.get("relY", 0.0)),
                }
                for a in data.get("atomData") or []
            ]
            bond_data = [
                {
                    "atom1Index": int(b["atom1Index"]),
                    "atom2Index": int(b["atom2Index"]),
                    "order": int(b.get("order") or 1),
                }
                for b in data.get("bondData") or []
            ]
            fingerprint = str(data["fingerprint"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed molecule record: {e}") from e

        formula = data.get("formula") or formula_of(a["symbol"] for a in atom_data)
        name = data.get("name") or formula
        description = data.get("description") or ""
        tags = data.get("tags") or []
        for label, value in (("formula", formula), ("name", name), ("description", description)):
            if not isinstance(value, str):
                raise ValidationError(f"Molecule {label} must be a string, got {type(value).__name__}")
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValidationError("Molecule tags must be a list of strings")

        try:
            mass = float(data.get("mass") or 0.0)
            created_at = float(data.get("createdAt") or 0.0)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed molecule record: {e}") from e

        return cls(
            fingerprint=fingerprint,
            name=name,
            formula=formula,
            atom_data=atom_data,
            bond_data=bond_data,
            mass=mass,
            is_stable=bool(data.get("isStable", False)),
            created_at=created_at,
            description=description,
            tags=list(tags),
            is_monomer=bool(data.get("isMonomer", False)),
            monomer_id=data.get("monomerId"),
            polymer_category=data.get("polymerCategory"),
            polymer_name=data.get("polymerName"),
            cell_role=data.get("cellRole"),
            id=data.get("id") or new_id(),
        )


# =============================================================================
# POLYMERS
# =============================================================================

@dataclass
class PolymerBlueprint:
    """Persisted polymer: a static template or a discovered chain."""

    name: str
    type: PolymerType
    monomer_id: Optional[str]
    min_monomers: int
    cell_role: Optional[str] = None
    essential: bool = False
    description: str = ""
    discovered: bool = False
    discovered_at: Optional[float] = None
    id: str = field(default_factory=new_id)
    fingerprint: str = ""
    static: bool = False

    def __post_init__(self):
        self.type = PolymerType(self.type)
        if not self.fingerprint:
            self.fingerprint = template_fingerprint(
                "polymer",
                [(self.cell_role or "none", self.monomer_id or "none", self.min_monomers, 1)],
                qualifier=self.type.value,
            )

    @classmethod
    def from_template(cls, template: PolymerTemplate) -> "PolymerBlueprint":
        return cls(
            id=template.id,
            name=template.name,
            type=template.type,
            monomer_id=template.monomer_id,
            min_monomers=template.min_monomers,
            cell_role=template.cell_role,
            essential=template.essential,
            description=template.description,
            fingerprint=template.fingerprint,
            static=True,
        )

    @classmethod
    def from_polymer(
        cls,
        polymer: Any,
        usefulness: PolymerUsefulness,
        name: Optional[str] = None,
    ) -> "PolymerBlueprint":
        """
        Blueprint of a discovered polymer.

        The monomer reference comes from the matching template when the
        polymer was classified, else from the first molecule's monomer
        detection, else from its formula.
        """
        molecules = list(polymer.molecules)
        if usefulness.template is not None:
            monomer_id = usefulness.template.monomer_id
        elif molecules and getattr(molecules[0], "monomer_template", None) is not None:
            monomer_id = molecules[0].monomer_template.id
        elif molecules:
            monomer_id = molecules[0].formula
        else:
            monomer_id = None

        default_name = (
            usefulness.template.name if usefulness.template else f"Polymer-{len(molecules)}"
        )
        return cls(
            id=polymer.id,
            name=name or polymer.name or default_name,
            type=polymer.type,
            monomer_id=monomer_id,
            min_monomers=len(molecules),
            cell_role=usefulness.role,
            essential=usefulness.essential,
            description=f"Useful for {usefulness.role}" if usefulness.useful else "Unknown function",
            discovered=True,
            discovered_at=_now(),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "monomerId": self.monomer_id,
            "minMonomers": self.min_monomers,
            "essential": self.essential,
            "cellRole": self.cell_role,
            "fingerprint": self.fingerprint,
            "discovered": self.discovered,
            "discoveredAt": self.discovered_at,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "PolymerBlueprint":
        if not isinstance(data, Mapping):
            raise ValidationError(f"Polymer record must be an object, got {type(data).__name__}")
        try:
            return cls(
                id=data.get("id") or new_id(),
                name=data.get("name") or "Polymer",
                type=PolymerType(data.get("type", "generic")),
                monomer_id=data.get("monomerId"),
                min_monomers=int(data.get("minMonomers", 1)),
                cell_role=data.get("cellRole"),
                essential=bool(data.get("essential", False)),
                description=data.get("description") or "",
                discovered=bool(data.get("discovered", False)),
                discovered_at=data.get("discoveredAt"),
                fingerprint=data.get("fingerprint") or "",
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed polymer record: {e}") from e
