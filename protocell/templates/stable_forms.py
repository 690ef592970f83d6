"""
Canonical geometries of known stable molecules.

The reshaper looks structures up here by formula. Offsets are declared
relative to an arbitrary origin and re-centred on the template's centre of
mass, so a structure already sitting in canonical geometry maps exactly onto
its targets.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from functools import cached_property
from typing import Hashable, Iterable, Mapping, Optional, Tuple

import numpy as np

from protocell.chemistry.elements import ElementTable, default_element_table
from protocell.chemistry.fingerprint import formula_of
from protocell.templates.monomers import ETHYLENE, FATTY_ACID, GLYCINE, MonomerTemplate
from protocell.templates.registry import TemplateRegistry


def bond_signature_of(symbols: Mapping[Hashable, str], bonds: Iterable[Tuple[Hashable, Hashable, int]]) -> Counter:
    """Multiset of ``(symbol, symbol, order)`` bonds, symbol pairs sorted."""
    return Counter((*sorted((symbols[a], symbols[b])), int(order)) for a, b, order in bonds)


@dataclass(frozen=True)
class StableForm:
    """Canonical atom placement and bond orders of one molecule."""

    id: str
    name: str
    atoms: Tuple[Tuple[str, float, float], ...]
    bonds: Tuple[Tuple[int, int, int], ...]
    description: str = ""

    @cached_property
    def formula(self) -> str:
        return formula_of(symbol for symbol, _, _ in self.atoms)

    @cached_property
    def element_counts(self) -> Counter:
        return Counter(symbol for symbol, _, _ in self.atoms)

    @cached_property
    def bond_signature(self) -> Counter:
        return bond_signature_of(dict(enumerate(s for s, _, _ in self.atoms)), self.bonds)

    def symbol_pair(self, bond: Tuple[int, int, int]) -> Tuple[str, str]:
        a, b, _ = bond
        return tuple(sorted((self.atoms[a][0], self.atoms[b][0])))

    def centred_offsets(self, elements: Optional[ElementTable] = None) -> np.ndarray:
        """(n, 2) offsets relative to the template's mass-weighted centre."""
        elements = elements or default_element_table()
        offsets = np.array([(x, y) for _, x, y in self.atoms], dtype=float)
        weights = np.array([elements.mass(symbol) for symbol, _, _ in self.atoms])
        centre = (offsets * weights[:, None]).sum(axis=0) / weights.sum()
        return offsets - centre

    @classmethod
    def from_monomer(cls, monomer: MonomerTemplate) -> "StableForm":
        return cls(
            id=monomer.formula,
            name=monomer.name,
            atoms=monomer.atom_layout,
            bonds=monomer.bond_layout,
            description=monomer.description,
        )


class StableFormRegistry(TemplateRegistry[StableForm]):

    def find_by_formula(self, formula: str, bonds: Optional[Counter] = None) -> Optional[StableForm]:
        """
        Form with this formula.

        Isomers share a formula; when ``bonds`` (a ``bond_signature``) is
        given, the isomer with exactly those bonds wins, else the first
        declared form is returned.
        """
        candidates = self.filter(lambda t: t.formula == formula)
        if bonds is not None:
            for form in candidates:
                if form.bond_signature == bonds:
                    return form
        return candidates[0] if candidates else None

    def with_entries(self, extra: Iterable[StableForm]) -> "StableFormRegistry":
        return StableFormRegistry(super().with_entries(extra).list_all())


# =============================================================================
# TEMPLATES
# =============================================================================

_SINGLE = 1
_DOUBLE = 2
_TRIPLE = 3

STABLE_FORMS = (
    StableForm(
        "H2", "Hydrogen",
        (("H", -15, 0), ("H", 15, 0)),
        ((0, 1, _SINGLE),),
        "Diatomic hydrogen, single bond",
    ),
    StableForm(
        "O2", "Oxygen",
        (("O", -20, 0), ("O", 20, 0)),
        ((0, 1, _DOUBLE),),
        "Diatomic oxygen, double bond",
    ),
    StableForm(
        "N2", "Nitrogen",
        (("N", -18, 0), ("N", 18, 0)),
        ((0, 1, _TRIPLE),),
        "Diatomic nitrogen, triple bond",
    ),
    StableForm(
        "H2O", "Water",
        (("O", 0, 0), ("H", -24, 19), ("H", 24, 19)),
        ((0, 1, _SINGLE), (0, 2, _SINGLE)),
        "Bent, 104.5 degree bond angle",
    ),
    StableForm(
        "CO2", "Carbon Dioxide",
        (("C", 0, 0), ("O", -35, 0), ("O", 35, 0)),
        ((0, 1, _DOUBLE), (0, 2, _DOUBLE)),
        "Linear, double bonds",
    ),
    StableForm(
        "CH4", "Methane",
        (("C", 0, 0), ("H", 0, -25), ("H", 23, 12), ("H", -23, 12), ("H", 0, 25)),
        ((0, 1, _SINGLE), (0, 2, _SINGLE), (0, 3, _SINGLE), (0, 4, _SINGLE)),
        "Tetrahedral (2D projection)",
    ),
    StableForm(
        "NH3", "Ammonia",
        (("N", 0, 0), ("H", 0, -22), ("H", 19, 11), ("H", -19, 11)),
        ((0, 1, _SINGLE), (0, 2, _SINGLE), (0, 3, _SINGLE)),
        "Trigonal pyramidal",
    ),
    StableForm(
        "HCl", "Hydrogen Chloride",
        (("Cl", -17, 0), ("H", 17, 0)),
        ((0, 1, _SINGLE),),
        "Polar covalent",
    ),
    StableForm(
        "CO", "Carbon Monoxide",
        (("C", -15, 0), ("O", 15, 0)),
        ((0, 1, _TRIPLE),),
        "Triple bond",
    ),
    StableForm(
        "H2S", "Hydrogen Sulfide",
        (("S", 0, 0), ("H", -22, 16), ("H", 22, 16)),
        ((0, 1, _SINGLE), (0, 2, _SINGLE)),
        "Bent shape",
    ),
    StableForm(
        "C2H6", "Ethane",
        (
            ("C", -18, 0), ("C", 18, 0),
            ("H", -33, -15), ("H", -33, 15), ("H", -18, -25),
            ("H", 33, -15), ("H", 33, 15), ("H", 18, 25),
        ),
        (
            (0, 1, _SINGLE),
            (0, 2, _SINGLE), (0, 3, _SINGLE), (0, 4, _SINGLE),
            (1, 5, _SINGLE), (1, 6, _SINGLE), (1, 7, _SINGLE),
        ),
        "Simplest alkane with a C-C bond",
    ),
    StableForm(
        "C3H8", "Propane",
        (
            ("C", -30, 0), ("C", 0, 0), ("C", 30, 0),
            ("H", -45, -15), ("H", -45, 15), ("H", -30, -22),
            ("H", 0, -22), ("H", 0, 22),
            ("H", 45, -15), ("H", 45, 15), ("H", 30, 22),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE),
            (0, 3, _SINGLE), (0, 4, _SINGLE), (0, 5, _SINGLE),
            (1, 6, _SINGLE), (1, 7, _SINGLE),
            (2, 8, _SINGLE), (2, 9, _SINGLE), (2, 10, _SINGLE),
        ),
        "3-carbon alkane",
    ),
    StableForm(
        "C4H10", "Butane",
        (
            ("C", -45, 0), ("C", -15, 0), ("C", 15, 0), ("C", 45, 0),
            ("H", -60, -15), ("H", -60, 15), ("H", -45, -22),
            ("H", -15, -22), ("H", -15, 22),
            ("H", 15, -22), ("H", 15, 22),
            ("H", 60, -15), ("H", 60, 15), ("H", 45, 22),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE),
            (0, 4, _SINGLE), (0, 5, _SINGLE), (0, 6, _SINGLE),
            (1, 7, _SINGLE), (1, 8, _SINGLE),
            (2, 9, _SINGLE), (2, 10, _SINGLE),
            (3, 11, _SINGLE), (3, 12, _SINGLE), (3, 13, _SINGLE),
        ),
        "4-carbon alkane",
    ),
    StableForm(
        "C5H12", "Pentane",
        (
            ("C", -60, 0), ("C", -30, 0), ("C", 0, 0), ("C", 30, 0), ("C", 60, 0),
            ("H", -75, -15), ("H", -75, 15), ("H", -60, -22),
            ("H", -30, -22), ("H", -30, 22),
            ("H", 0, -22), ("H", 0, 22),
            ("H", 30, -22), ("H", 30, 22),
            ("H", 75, -15), ("H", 75, 15), ("H", 60, 22),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE), (3, 4, _SINGLE),
            (0, 5, _SINGLE), (0, 6, _SINGLE), (0, 7, _SINGLE),
            (1, 8, _SINGLE), (1, 9, _SINGLE),
            (2, 10, _SINGLE), (2, 11, _SINGLE),
            (3, 12, _SINGLE), (3, 13, _SINGLE),
            (4, 14, _SINGLE), (4, 15, _SINGLE), (4, 16, _SINGLE),
        ),
        "5-carbon alkane",
    ),
    StableForm(
        "C6H14", "Hexane",
        (
            ("C", -75, 0), ("C", -45, 0), ("C", -15, 0),
            ("C", 15, 0), ("C", 45, 0), ("C", 75, 0),
            ("H", -90, -15), ("H", -90, 15), ("H", -75, -22),
            ("H", -45, -22), ("H", -45, 22),
            ("H", -15, -22), ("H", -15, 22),
            ("H", 15, -22), ("H", 15, 22),
            ("H", 45, -22), ("H", 45, 22),
            ("H", 90, -15), ("H", 90, 15), ("H", 75, 22),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE),
            (3, 4, _SINGLE), (4, 5, _SINGLE),
            (0, 6, _SINGLE), (0, 7, _SINGLE), (0, 8, _SINGLE),
            (1, 9, _SINGLE), (1, 10, _SINGLE),
            (2, 11, _SINGLE), (2, 12, _SINGLE),
            (3, 13, _SINGLE), (3, 14, _SINGLE),
            (4, 15, _SINGLE), (4, 16, _SINGLE),
            (5, 17, _SINGLE), (5, 18, _SINGLE), (5, 19, _SINGLE),
        ),
        "6-carbon alkane",
    ),
    StableForm(
        "C3H6", "Propene",
        (
            ("C", -30, 0), ("C", 0, 0), ("C", 30, 0),
            ("H", -45, -15), ("H", -45, 15), ("H", -30, -22),
            ("H", 0, 22),
            ("H", 45, -15), ("H", 45, 15),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _DOUBLE),
            (0, 3, _SINGLE), (0, 4, _SINGLE), (0, 5, _SINGLE),
            (1, 6, _SINGLE),
            (2, 7, _SINGLE), (2, 8, _SINGLE),
        ),
        "3-carbon alkene",
    ),
    StableForm(
        "C4H8", "Butene",
        (
            ("C", -45, 0), ("C", -15, 0), ("C", 15, 0), ("C", 45, 0),
            ("H", -60, -15), ("H", -60, 15), ("H", -45, -22),
            ("H", -15, -22), ("H", -15, 22),
            ("H", 15, 22),
            ("H", 60, -15), ("H", 60, 15),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _DOUBLE),
            (0, 4, _SINGLE), (0, 5, _SINGLE), (0, 6, _SINGLE),
            (1, 7, _SINGLE), (1, 8, _SINGLE),
            (2, 9, _SINGLE),
            (3, 10, _SINGLE), (3, 11, _SINGLE),
        ),
        "4-carbon alkene (1-butene)",
    ),
    StableForm(
        "C5H10", "Pentene",
        (
            ("C", -60, 0), ("C", -30, 0), ("C", 0, 0), ("C", 30, 0), ("C", 60, 0),
            ("H", -75, -15), ("H", -75, 15), ("H", -60, -22),
            ("H", -30, -22), ("H", -30, 22),
            ("H", 0, -22), ("H", 0, 22),
            ("H", 30, 22),
            ("H", 75, -15), ("H", 75, 15),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE), (3, 4, _DOUBLE),
            (0, 5, _SINGLE), (0, 6, _SINGLE), (0, 7, _SINGLE),
            (1, 8, _SINGLE), (1, 9, _SINGLE),
            (2, 10, _SINGLE), (2, 11, _SINGLE),
            (3, 12, _SINGLE),
            (4, 13, _SINGLE), (4, 14, _SINGLE),
        ),
        "5-carbon alkene (1-pentene)",
    ),
    StableForm(
        "C3H6cyc", "Cyclopropane",
        (
            ("C", 0, -20), ("C", 17, 10), ("C", -17, 10),
            ("H", -12, -35), ("H", 12, -35),
            ("H", 32, 0), ("H", 27, 25),
            ("H", -32, 0), ("H", -27, 25),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 0, _SINGLE),
            (0, 3, _SINGLE), (0, 4, _SINGLE),
            (1, 5, _SINGLE), (1, 6, _SINGLE),
            (2, 7, _SINGLE), (2, 8, _SINGLE),
        ),
        "3-membered carbon ring",
    ),
    StableForm(
        "C4H8cyc", "Cyclobutane",
        (
            ("C", -15, -15), ("C", 15, -15), ("C", 15, 15), ("C", -15, 15),
            ("H", -30, -25), ("H", -15, -35),
            ("H", 30, -25), ("H", 15, -35),
            ("H", 30, 25), ("H", 15, 35),
            ("H", -30, 25), ("H", -15, 35),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE), (3, 0, _SINGLE),
            (0, 4, _SINGLE), (0, 5, _SINGLE),
            (1, 6, _SINGLE), (1, 7, _SINGLE),
            (2, 8, _SINGLE), (2, 9, _SINGLE),
            (3, 10, _SINGLE), (3, 11, _SINGLE),
        ),
        "4-membered carbon ring",
    ),
    StableForm(
        "C5H10cyc", "Cyclopentane",
        (
            ("C", 0, -25), ("C", 24, -8), ("C", 15, 20), ("C", -15, 20), ("C", -24, -8),
            ("H", -12, -40), ("H", 12, -40),
            ("H", 40, -18), ("H", 35, 5),
            ("H", 25, 35), ("H", 5, 35),
            ("H", -25, 35), ("H", -5, 35),
            ("H", -40, -18), ("H", -35, 5),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE), (3, 4, _SINGLE), (4, 0, _SINGLE),
            (0, 5, _SINGLE), (0, 6, _SINGLE),
            (1, 7, _SINGLE), (1, 8, _SINGLE),
            (2, 9, _SINGLE), (2, 10, _SINGLE),
            (3, 11, _SINGLE), (3, 12, _SINGLE),
            (4, 13, _SINGLE), (4, 14, _SINGLE),
        ),
        "5-membered carbon ring",
    ),
    StableForm(
        "C6H12", "Cyclohexane",
        (
            ("C", 0, -28), ("C", 24, -14), ("C", 24, 14),
            ("C", 0, 28), ("C", -24, 14), ("C", -24, -14),
            ("H", -12, -43), ("H", 12, -43),
            ("H", 40, -24), ("H", 38, -4),
            ("H", 40, 24), ("H", 38, 4),
            ("H", -12, 43), ("H", 12, 43),
            ("H", -40, 24), ("H", -38, 4),
            ("H", -40, -24), ("H", -38, -4),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _SINGLE), (2, 3, _SINGLE),
            (3, 4, _SINGLE), (4, 5, _SINGLE), (5, 0, _SINGLE),
            (0, 6, _SINGLE), (0, 7, _SINGLE),
            (1, 8, _SINGLE), (1, 9, _SINGLE),
            (2, 10, _SINGLE), (2, 11, _SINGLE),
            (3, 12, _SINGLE), (3, 13, _SINGLE),
            (4, 14, _SINGLE), (4, 15, _SINGLE),
            (5, 16, _SINGLE), (5, 17, _SINGLE),
        ),
        "6-membered carbon ring (chair, projected)",
    ),
    StableForm(
        "C2H2", "Acetylene",
        (("C", -15, 0), ("C", 15, 0), ("H", -35, 0), ("H", 35, 0)),
        ((0, 1, _TRIPLE), (0, 2, _SINGLE), (1, 3, _SINGLE)),
        "Simplest alkyne",
    ),
    StableForm(
        "C3H4", "Propyne",
        (
            ("C", -30, 0), ("C", 0, 0), ("C", 30, 0),
            ("H", -45, -15), ("H", -45, 15), ("H", -30, -22),
            ("H", 50, 0),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _TRIPLE),
            (0, 3, _SINGLE), (0, 4, _SINGLE), (0, 5, _SINGLE),
            (2, 6, _SINGLE),
        ),
        "3-carbon alkyne (methylacetylene)",
    ),
    StableForm(
        "C4H6", "Butyne",
        (
            ("C", -45, 0), ("C", -15, 0), ("C", 15, 0), ("C", 45, 0),
            ("H", -60, -15), ("H", -60, 15), ("H", -45, -22),
            ("H", 60, -15), ("H", 60, 15), ("H", 45, 22),
        ),
        (
            (0, 1, _SINGLE), (1, 2, _TRIPLE), (2, 3, _SINGLE),
            (0, 4, _SINGLE), (0, 5, _SINGLE), (0, 6, _SINGLE),
            (3, 7, _SINGLE), (3, 8, _SINGLE), (3, 9, _SINGLE),
        ),
        "4-carbon alkyne (2-butyne)",
    ),
    StableForm(
        "C6H6", "Benzene",
        (
            ("C", 0, -30), ("C", 26, -15), ("C", 26, 15),
            ("C", 0, 30), ("C", -26, 15), ("C", -26, -15),
            ("H", 0, -50), ("H", 43, -25), ("H", 43, 25),
            ("H", 0, 50), ("H", -43, 25), ("H", -43, -25),
        ),
        (
            # Kekule ring
            (0, 1, _DOUBLE), (1, 2, _SINGLE), (2, 3, _DOUBLE),
            (3, 4, _SINGLE), (4, 5, _DOUBLE), (5, 0, _SINGLE),
            (0, 6, _SINGLE), (1, 7, _SINGLE), (2, 8, _SINGLE),
            (3, 9, _SINGLE), (4, 10, _SINGLE), (5, 11, _SINGLE),
        ),
        "Aromatic 6-membered ring",
    ),
    StableForm(
        "C7H8", "Toluene",
        (
            ("C", 0, -30), ("C", 26, -15), ("C", 26, 15),
            ("C", 0, 30), ("C", -26, 15), ("C", -26, -15),
            ("C", 0, -55),
            ("H", 43, -25), ("H", 43, 25), ("H", 0, 50),
            ("H", -43, 25), ("H", -43, -25),
            ("H", -15, -65), ("H", 15, -65), ("H", 0, -75),
        ),
        (
            (0, 1, _DOUBLE), (1, 2, _SINGLE), (2, 3, _DOUBLE),
            (3, 4, _SINGLE), (4, 5, _DOUBLE), (5, 0, _SINGLE),
            (0, 6, _SINGLE),
            (1, 7, _SINGLE), (2, 8, _SINGLE), (3, 9, _SINGLE),
            (4, 10, _SINGLE), (5, 11, _SINGLE),
            (6, 12, _SINGLE), (6, 13, _SINGLE), (6, 14, _SINGLE),
        ),
        "Methylbenzene",
    ),
    StableForm.from_monomer(ETHYLENE),
    StableForm.from_monomer(GLYCINE),
    StableForm.from_monomer(FATTY_ACID),
)


def default_stable_form_registry() -> StableFormRegistry:
    return StableFormRegistry(STABLE_FORMS)
