"""
Element data for the chemistry layer.

The element table is the one collaborator every other component consults:
validity checking needs valences, the molecule view needs masses, and the
reshaper weights centres of mass by them. Valences are the single "preferred"
valence of each element; elements with several common oxidation states
(S, Fe) are pinned to their lowest one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional


# =============================================================================
# ELEMENT PROPERTIES
# =============================================================================

@dataclass(frozen=True)
class Element:
    """
    Properties of a chemical element relevant to bonding.

    Attributes
    ----------
    symbol : str
        Chemical symbol, e.g. ``"C"``.
    name : str
        Common name.
    number : int
        Atomic number.
    valence : int
        Total bond order an atom of this element sustains when saturated.
    mass : float
        Standard atomic weight (u).
    radius : float
        Display radius in simulation pixels.
    color : str
        Display colour (hex).
    category : str
        Periodic-table category.
    """
    symbol: str
    name: str
    number: int
    valence: int
    mass: float
    radius: float
    color: str
    category: str


ELEMENTS: Dict[str, Element] = {
    # Organic chemistry / life
    "H": Element("H", "Hydrogen", 1, 1, 1.008, 25, "#FFFFFF", "nonmetal"),
    "C": Element("C", "Carbon", 6, 4, 12.011, 35, "#333333", "nonmetal"),
    "N": Element("N", "Nitrogen", 7, 3, 14.007, 32, "#3050F8", "nonmetal"),
    "O": Element("O", "Oxygen", 8, 2, 15.999, 30, "#FF0D0D", "nonmetal"),
    "P": Element("P", "Phosphorus", 15, 5, 30.974, 38, "#FF8000", "nonmetal"),
    "S": Element("S", "Sulfur", 16, 2, 32.065, 36, "#FFFF30", "nonmetal"),
    # Metals important for biology
    "Na": Element("Na", "Sodium", 11, 1, 22.990, 40, "#AB5CF2", "alkali-metal"),
    "K": Element("K", "Potassium", 19, 1, 39.098, 45, "#8F40D4", "alkali-metal"),
    "Mg": Element("Mg", "Magnesium", 12, 2, 24.305, 38, "#8AFF00", "alkaline-earth"),
    "Ca": Element("Ca", "Calcium", 20, 2, 40.078, 42, "#3DFF00", "alkaline-earth"),
    "Fe": Element("Fe", "Iron", 26, 2, 55.845, 38, "#E06633", "transition-metal"),
    "Zn": Element("Zn", "Zinc", 30, 2, 65.38, 37, "#7D80B0", "transition-metal"),
    # Halogens
    "Cl": Element("Cl", "Chlorine", 17, 1, 35.453, 34, "#1FF01F", "halogen"),
    # Noble gases
    "He": Element("He", "Helium", 2, 0, 4.003, 28, "#D9FFFF", "noble-gas"),
}


# Bond energies (arbitrary units), keyed "<a><order-mark><b>"
BOND_ENERGIES: Dict[str, float] = {
    "C-C": 83,
    "C=C": 146,
    "C#C": 200,
    "C-H": 99,
    "C-O": 86,
    "C=O": 177,
    "C-N": 73,
    "C=N": 147,
    "C#N": 213,
    "O-H": 111,
    "O-O": 35,
    "O=O": 119,
    "N-H": 93,
    "N-N": 39,
    "N=N": 100,
    "N#N": 226,
    "P-O": 90,
    "S-H": 82,
    "S-S": 54,
}

DEFAULT_BOND_ENERGY = 60.0

_ORDER_MARKS = {1: "-", 2: "=", 3: "#"}


# =============================================================================
# ELEMENT TABLE
# =============================================================================

class ElementTable:
    """
    Read-only symbol -> Element lookup.

    Components take an ``ElementTable`` at construction so tests can swap in
    a reduced or altered table.
    """

    def __init__(self, elements: Optional[Mapping[str, Element]] = None):
        self._elements: Dict[str, Element] = dict(
            ELEMENTS if elements is None else elements
        )

    def lookup(self, symbol: str) -> Optional[Element]:
        """Return the element for ``symbol`` or None if it is unknown."""
        return self._elements.get(symbol)

    def valence(self, symbol: str) -> Optional[int]:
        element = self._elements.get(symbol)
        return element.valence if element is not None else None

    def mass(self, symbol: str) -> float:
        """Atomic mass, 1.0 for unknown symbols so centroids stay defined."""
        element = self._elements.get(symbol)
        return element.mass if element is not None else 1.0

    def symbols(self) -> List[str]:
        return list(self._elements)

    def by_category(self, category: str) -> List[Element]:
        return [e for e in self._elements.values() if e.category == category]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def with_elements(self, extra: Iterable[Element]) -> "ElementTable":
        """Return a new table with ``extra`` added or replacing entries."""
        merged = dict(self._elements)
        for element in extra:
            merged[element.symbol] = element
        return ElementTable(merged)


def bond_energy(symbol_a: str, symbol_b: str, order: int = 1) -> float:
    """Bond energy between two elements for the given bond order."""
    mark = _ORDER_MARKS.get(order, "-")
    return BOND_ENERGIES.get(
        f"{symbol_a}{mark}{symbol_b}",
        BOND_ENERGIES.get(f"{symbol_b}{mark}{symbol_a}", DEFAULT_BOND_ENERGY),
    )


_DEFAULT_TABLE = ElementTable()


def default_element_table() -> ElementTable:
    """Shared table built from ``ELEMENTS``."""
    return _DEFAULT_TABLE
