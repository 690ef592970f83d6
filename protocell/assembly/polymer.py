"""
Polymer instances: ordered chains of molecules.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

import numpy as np

from protocell.chemistry.structure import new_id
from protocell.templates.polymers import TYPE_ROLES, PolymerType

logger = logging.getLogger(__name__)


def detect_polymer_type(molecules: Iterable[Any]) -> PolymerType:
    """
    Guess a polymer type from the element composition of its molecules.

    Phosphorus with nitrogen reads as nucleic acid, nitrogen alone as
    protein, a C:H:O ratio near 1:2:1 as carbohydrate and a hydrogen-rich,
    oxygen-poor chain as lipid. Anything else is generic.
    """
    counts = {"C": 0, "H": 0, "O": 0, "N": 0, "P": 0}
    any_atoms = False
    for molecule in molecules:
        for atom in molecule.atoms:
            any_atoms = True
            if atom.symbol in counts:
                counts[atom.symbol] += 1
    if not any_atoms:
        return PolymerType.GENERIC

    C, H, O, N, P = (counts[s] for s in ("C", "H", "O", "N", "P"))

    if P > 0 and N > 0:
        return PolymerType.NUCLEIC_ACID
    if N > 0:
        return PolymerType.PROTEIN
    if C > 0 and H > 0 and O > 0:
        h_to_c = H / C
        o_to_c = O / C
        if 1.5 <= h_to_c <= 2.5 and 0.5 <= o_to_c <= 1.5:
            return PolymerType.CARBOHYDRATE
    if C > 0 and H > 0 and P == 0:
        if H / C >= 1.8 and O / C < 0.5:
            return PolymerType.LIPID
    return PolymerType.GENERIC


class Polymer:
    """
    Ordered chain of molecules with a declared type.

    Args:
        molecules: Chain members in order.
        type: Declared type; detected from composition when omitted.
        name: Optional display name.
    """

    def __init__(
        self,
        molecules: Optional[Sequence[Any]] = None,
        type: Optional[PolymerType] = None,
        name: Optional[str] = None,
    ):
        self.id = new_id()
        self.molecules: List[Any] = list(molecules or [])
        self.name = name
        self.type = PolymerType(type) if type is not None else detect_polymer_type(self.molecules)
        self._declared = type is not None

        self.sealed = False
        self.cell_role: Optional[str] = None
        self.assembly_id: Optional[str] = None

        for molecule in self.molecules:
            molecule.polymer_id = self.id

    @property
    def sequence(self) -> str:
        return "-".join(m.formula for m in self.molecules)

    @property
    def chain_length(self) -> int:
        return len(self.molecules)

    @property
    def mass(self) -> float:
        return float(sum(m.mass for m in self.molecules))

    @property
    def fingerprint(self) -> str:
        """Type prefix plus the sorted fingerprints of the chain members."""
        parts = sorted(m.fingerprint for m in self.molecules)
        return f"{self.type.value[:3].upper()}:{'|'.join(parts)}"

    @property
    def center(self) -> np.ndarray:
        """Mean of the molecule centres."""
        if not self.molecules:
            return np.zeros(2)
        return np.mean([m.center_of_mass for m in self.molecules], axis=0)

    def add_molecule(self, molecule: Any) -> None:
        if self.sealed:
            raise ValueError(f"Polymer {self.id} is sealed")
        molecule.polymer_id = self.id
        self.molecules.append(molecule)
        if not self._declared:
            self.type = detect_polymer_type(self.molecules)

    def remove_molecule(self, molecule_id: str) -> bool:
        for i, molecule in enumerate(self.molecules):
            if molecule.id == molecule_id:
                molecule.polymer_id = None
                del self.molecules[i]
                return True
        return False

    def seal(self) -> None:
        """Stop accepting monomers and take the cell role of the declared type."""
        self.sealed = True
        for molecule in self.molecules:
            for atom in molecule.atoms:
                atom.sealed = True
        self.cell_role = TYPE_ROLES.get(self.type)
        logger.debug(f"Polymer {self.name or self.type.value} sealed")

    def is_stable(self) -> bool:
        return len(self.molecules) >= 2 and all(m.is_stable() for m in self.molecules)

    def atoms(self) -> List[Any]:
        return [atom for m in self.molecules for atom in m.atoms]

    def __repr__(self) -> str:
        return f"Polymer({self.type.value}, length={self.chain_length}, sealed={self.sealed})"
