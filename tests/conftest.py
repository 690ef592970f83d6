"""
Shared fixtures and structure builders for the Protocell tests.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pytest

from protocell.catalogue import Catalogue, InMemoryStore
from protocell.chemistry import Molecule, StructureGraph
from protocell.templates.polymers import PolymerType


def build(
    graph: StructureGraph,
    atoms: Sequence[Tuple[str, float, float]],
    bonds: Sequence[Tuple[int, int, int]],
    offset=(0.0, 0.0),
    name: Optional[str] = None,
) -> Molecule:
    """Add a layout to ``graph`` and return it as one molecule."""
    origin = np.asarray(offset, dtype=float)
    ids = [graph.add_atom(symbol, origin + np.array([x, y])) for symbol, x, y in atoms]
    for a, b, order in bonds:
        graph.add_bond(ids[a], ids[b], order)
    return Molecule(graph, ids, name=name)


def build_form(graph: StructureGraph, form, offset=(0.0, 0.0)) -> Molecule:
    """Molecule in the exact declared geometry of a stable form or monomer layout."""
    atoms = getattr(form, "atoms", None) or form.atom_layout
    bonds = getattr(form, "bonds", None) or form.bond_layout
    return build(graph, atoms, bonds, offset)


def hydrocarbon(
    graph: StructureGraph,
    n_carbons: int,
    skeleton: Sequence[Tuple[int, int]],
    offset=(0.0, 0.0),
) -> Molecule:
    """Saturated hydrocarbon: single-bonded carbon skeleton, hydrogens filled to valence 4."""
    atoms = [("C", 30.0 * i, 0.0) for i in range(n_carbons)]
    bonds = [(a, b, 1) for a, b in skeleton]
    degree = Counter(i for edge in skeleton for i in edge)
    for c in range(n_carbons):
        for k in range(4 - degree[c]):
            atoms.append(("H", 30.0 * c + 8.0 * k - 8.0, 20.0))
            bonds.append((c, len(atoms) - 1, 1))
    return build(graph, atoms, bonds, offset)


# Both C10H18 with identical degree sequences; colour refinement cannot tell them apart
DECALIN = ((0, 1), (1, 2), (2, 3), (3, 4), (4, 5), (5, 0), (5, 6), (6, 7), (7, 8), (8, 9), (9, 0))
BICYCLOPENTYL = ((0, 1), (1, 2), (2, 3), (3, 4), (4, 0), (5, 6), (6, 7), (7, 8), (8, 9), (9, 5), (0, 5))


WATER_ATOMS = (("O", 0, 0), ("H", -24, 19), ("H", 24, 19))
WATER_BONDS = ((0, 1, 1), (0, 2, 1))


@dataclass
class FakePolymer:
    """Minimal polymer stand-in for matching and clustering."""
    type: PolymerType
    chain_length: int = 3
    center: Tuple[float, float] = (0.0, 0.0)
    sealed: bool = True
    assembly_id: Optional[str] = None


@pytest.fixture
def graph():
    return StructureGraph()


@pytest.fixture
def water(graph):
    return build(graph, WATER_ATOMS, WATER_BONDS, name="Water")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def catalogue(store):
    return Catalogue(store=store)
