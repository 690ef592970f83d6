"""
Valence-balance test for atom/bond graphs.

A structure is valid only if it has at least two atoms and one bond, every
atom is a known element, every bond connects atoms of the structure, and each
atom's summed incident bond order equals its element's valence exactly.
Under- and over-saturation are both failures and one failing atom fails the
whole structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from protocell.chemistry.elements import ElementTable, default_element_table

MIN_ATOMS = 2
MIN_BONDS = 1


@dataclass
class ValenceReport:
    """
    Outcome of a valence check.

    ``used`` and ``capacity`` are keyed by atom key; ``violations`` holds a
    human-readable reason for each failure so callers can log it.
    """

    used: Dict[Hashable, int] = field(default_factory=dict)
    capacity: Dict[Hashable, Optional[int]] = field(default_factory=dict)
    violations: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.valid


def check_valence(
    symbols: Mapping[Hashable, str],
    bonds: Iterable[Tuple[Hashable, Hashable, int]],
    elements: Optional[ElementTable] = None,
) -> ValenceReport:
    """
    Check every atom's bond-order sum against its element's valence.

    Args:
        symbols: Atom key -> element symbol.
        bonds: ``(atom_key_1, atom_key_2, order)`` triples.
        elements: Element table, defaults to the shared table.

    Returns:
        A ``ValenceReport``; the structure is valid iff it has no violations.
    """
    elements = elements or default_element_table()
    bonds = list(bonds)
    report = ValenceReport()

    if len(symbols) < MIN_ATOMS:
        report.violations.append(f"needs at least {MIN_ATOMS} atoms, has {len(symbols)}")
    if len(bonds) < MIN_BONDS:
        report.violations.append(f"needs at least {MIN_BONDS} bond, has {len(bonds)}")

    for key, symbol in symbols.items():
        report.capacity[key] = elements.valence(symbol)
        report.used[key] = 0
        if report.capacity[key] is None:
            report.violations.append(f"atom {key}: unknown element {symbol!r}")

    for a, b, order in bonds:
        if a not in symbols or b not in symbols:
            report.violations.append(f"bond {a}-{b} references an atom outside the structure")
            continue
        report.used[a] += int(order)
        report.used[b] += int(order)

    for key, capacity in report.capacity.items():
        if capacity is None:
            continue
        if report.used[key] != capacity:
            report.violations.append(
                f"atom {key} ({symbols[key]}): bond order {report.used[key]} != valence {capacity}"
            )

    return report


def is_valid(
    atoms: Iterable[Any],
    bonds: Iterable[Any],
    elements: Optional[ElementTable] = None,
) -> bool:
    """
    Valence-balance test over atom and bond objects.

    Atoms need ``id`` and ``symbol``; bonds need ``atom1_id``, ``atom2_id``
    and ``order``.
    """
    symbols = {atom.id: atom.symbol for atom in atoms}
    triples = [(b.atom1_id, b.atom2_id, b.order) for b in bonds]
    return check_valence(symbols, triples, elements).valid


def layout_report(
    atom_data: Iterable[Mapping[str, Any]],
    bond_data: Iterable[Mapping[str, Any]],
    elements: Optional[ElementTable] = None,
) -> ValenceReport:
    """Valence check over a persisted layout (``index``/``symbol`` atoms, index-pair bonds)."""
    symbols = {a["index"]: a["symbol"] for a in atom_data}
    triples = [
        (b["atom1Index"], b["atom2Index"], b.get("order", 1) or 1)
        for b in bond_data
    ]
    return check_valence(symbols, triples, elements)


def is_blueprint_valid(blueprint: Any, elements: Optional[ElementTable] = None) -> bool:
    """Apply the valence test to a molecule blueprint's stored layout."""
    return layout_report(blueprint.atom_data, blueprint.bond_data, elements).valid
