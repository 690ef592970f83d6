"""
Atom/bond arena and the ephemeral molecule view.

Atoms and bonds live in a ``StructureGraph`` keyed by integer id. Bonds hold
the ids of their two atoms and atoms hold the ids of their bonds, so neither
object owns the other and removing a bond is a pair of list edits. Molecules
are views over a connected set of atom ids; everything they report (formula,
mass, fingerprint, stability) is recomputed from the graph.
"""

from __future__ import annotations

import copy
import itertools
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
import networkx as nx

from protocell.chemistry.elements import ElementTable, bond_energy, default_element_table
from protocell.chemistry.fingerprint import (
    build_bond_graph,
    formula_of,
    same_structure,
    structure_fingerprint,
)
from protocell.chemistry.validity import is_valid


def new_id() -> str:
    """Random identifier for molecules, polymers and blueprints."""
    return uuid.uuid4().hex[:12]


def as_position(value: Any) -> np.ndarray:
    """Coerce ``(x, y)`` or an array into a float 2-vector."""
    pos = np.asarray(value, dtype=float).reshape(-1)
    if pos.shape != (2,):
        raise ValueError(f"Position must have two coordinates, got {pos.shape}")
    return pos


@dataclass
class Atom:
    """A single atom in a structure graph."""

    id: int
    symbol: str
    position: np.ndarray
    valence: int  # Capacity from the element table
    bond_ids: List[int] = field(default_factory=list)
    molecule_id: Optional[str] = None
    sealed: bool = False  # Set when the owning polymer is sealed


@dataclass
class Bond:
    """A bond between two atoms, referenced by id."""

    id: int
    atom1_id: int
    atom2_id: int
    order: int = 1

    def other(self, atom_id: int) -> int:
        """Id of the atom at the far end from ``atom_id``."""
        if atom_id == self.atom1_id:
            return self.atom2_id
        if atom_id == self.atom2_id:
            return self.atom1_id
        raise ValueError(f"Atom {atom_id} is not part of bond {self.id}")

    def as_triple(self) -> Tuple[int, int, int]:
        return (self.atom1_id, self.atom2_id, self.order)


class StructureGraph:
    """
    Arena of atoms and bonds.

    This is the mutable substrate the simulation works on: atoms are added
    as they spawn, bonds form and break, and ``molecules()`` cuts the graph
    into its connected pieces on demand.
    """

    def __init__(self, elements: Optional[ElementTable] = None):
        self.elements = elements or default_element_table()
        self.atoms: Dict[int, Atom] = {}
        self.bonds: Dict[int, Bond] = {}
        self._atom_ids = itertools.count()
        self._bond_ids = itertools.count()

    def add_atom(self, symbol: str, position: Any = (0.0, 0.0)) -> int:
        """Add an atom. Returns its id."""
        element = self.elements.lookup(symbol)
        if element is None:
            raise ValueError(f"Unknown element: {symbol}")
        atom_id = next(self._atom_ids)
        self.atoms[atom_id] = Atom(
            id=atom_id,
            symbol=symbol,
            position=as_position(position),
            valence=element.valence,
        )
        return atom_id

    def add_bond(self, atom1_id: int, atom2_id: int, order: int = 1) -> int:
        """Bond two atoms. Returns the bond id."""
        if atom1_id not in self.atoms or atom2_id not in self.atoms:
            raise ValueError("Atom ids out of bounds")
        if atom1_id == atom2_id:
            raise ValueError("An atom cannot bond to itself")
        if not 1 <= int(order) <= 3:
            raise ValueError(f"Bond order must be 1-3, got {order}")
        if self.bond_between(atom1_id, atom2_id) is not None:
            raise ValueError(f"Atoms {atom1_id} and {atom2_id} are already bonded")

        bond_id = next(self._bond_ids)
        self.bonds[bond_id] = Bond(bond_id, atom1_id, atom2_id, int(order))
        self.atoms[atom1_id].bond_ids.append(bond_id)
        self.atoms[atom2_id].bond_ids.append(bond_id)
        return bond_id

    def remove_bond(self, bond_id: int) -> bool:
        """Break a bond. Returns True if the bond existed."""
        bond = self.bonds.pop(bond_id, None)
        if bond is None:
            return False
        for atom_id in (bond.atom1_id, bond.atom2_id):
            atom = self.atoms.get(atom_id)
            if atom is not None and bond_id in atom.bond_ids:
                atom.bond_ids.remove(bond_id)
        return True

    def remove_atom(self, atom_id: int) -> bool:
        """Remove an atom together with its bonds."""
        atom = self.atoms.get(atom_id)
        if atom is None:
            return False
        for bond_id in list(atom.bond_ids):
            self.remove_bond(bond_id)
        del self.atoms[atom_id]
        return True

    def bond_between(self, atom1_id: int, atom2_id: int) -> Optional[Bond]:
        atom = self.atoms.get(atom1_id)
        if atom is None:
            return None
        for bond_id in atom.bond_ids:
            bond = self.bonds[bond_id]
            if atom2_id in (bond.atom1_id, bond.atom2_id):
                return bond
        return None

    def incident_order(self, atom_id: int) -> int:
        """Sum of bond orders on an atom."""
        return sum(self.bonds[b].order for b in self.atoms[atom_id].bond_ids)

    def available_valence(self, atom_id: int) -> int:
        atom = self.atoms[atom_id]
        return max(0, atom.valence - self.incident_order(atom_id))

    def get_adjacency_list(self) -> Dict[int, List[int]]:
        adj: Dict[int, List[int]] = {i: [] for i in self.atoms}
        for bond in self.bonds.values():
            adj[bond.atom1_id].append(bond.atom2_id)
            adj[bond.atom2_id].append(bond.atom1_id)
        return adj

    def connected_groups(self, atom_ids: Optional[Iterable[int]] = None) -> List[List[int]]:
        """
        Connected atom groups found by breadth-first search over bonds.

        Args:
            atom_ids: Restrict the search to these atoms. Bonds leading out of
                the subset are not followed.

        Returns:
            Groups in order of their first atom.
        """
        scope = list(self.atoms) if atom_ids is None else [a for a in atom_ids if a in self.atoms]
        allowed = set(scope)
        visited: Set[int] = set()
        groups: List[List[int]] = []

        for start in scope:
            if start in visited:
                continue
            group = []
            queue = deque([start])
            visited.add(start)
            while queue:
                current = queue.popleft()
                group.append(current)
                for bond_id in self.atoms[current].bond_ids:
                    other = self.bonds[bond_id].other(current)
                    if other in allowed and other not in visited:
                        visited.add(other)
                        queue.append(other)
            groups.append(group)

        return groups

    def molecules(self, min_atoms: int = 1, monomers=None) -> List["Molecule"]:
        """
        Split the graph into molecules, reassigning atom ownership.

        Call again after bonds form or break; atoms moved between pieces get
        the id of their new molecule.
        """
        return [
            Molecule(self, group, monomers=monomers)
            for group in self.connected_groups()
            if len(group) >= min_atoms
        ]

    def to_networkx(self, atom_ids: Optional[Iterable[int]] = None) -> nx.Graph:
        """Labelled networkx view (symbol on nodes, order on edges)."""
        ids = list(self.atoms) if atom_ids is None else list(atom_ids)
        symbols = {i: self.atoms[i].symbol for i in ids}
        return build_bond_graph(symbols, (b.as_triple() for b in self.bonds.values()))

    def copy(self) -> StructureGraph:
        """Deep copy with the same ids."""
        clone = StructureGraph(self.elements)
        clone.atoms = copy.deepcopy(self.atoms)
        clone.bonds = copy.deepcopy(self.bonds)
        clone._atom_ids = itertools.count(max(self.atoms, default=-1) + 1)
        clone._bond_ids = itertools.count(max(self.bonds, default=-1) + 1)
        return clone


class Molecule:
    """
    Ephemeral view of a connected group of atoms.

    Derived properties are refreshed by ``update_properties()``; they are
    computed once at construction and must be refreshed after the graph
    changes.
    """

    def __init__(
        self,
        graph: StructureGraph,
        atom_ids: Sequence[int],
        name: Optional[str] = None,
        monomers=None,
    ):
        self.id = new_id()
        self.graph = graph
        self.atom_ids: List[int] = list(atom_ids)
        self.name = name
        self.polymer_id: Optional[str] = None

        for atom in self.atoms:
            atom.molecule_id = self.id

        # Monomer detection (needs a monomer template registry)
        self.is_monomer = False
        self.monomer_template = None

        self.formula = ""
        self.fingerprint = ""
        self.update_properties()

        if monomers is not None:
            self.detect_monomer(monomers)

    @property
    def atoms(self) -> List[Atom]:
        return [self.graph.atoms[i] for i in self.atom_ids if i in self.graph.atoms]

    @property
    def bonds(self) -> List[Bond]:
        """Bonds with both ends inside this molecule."""
        members = set(self.atom_ids)
        seen: Dict[int, Bond] = {}
        for atom in self.atoms:
            for bond_id in atom.bond_ids:
                bond = self.graph.bonds[bond_id]
                if bond.atom1_id in members and bond.atom2_id in members:
                    seen[bond_id] = bond
        return list(seen.values())

    @property
    def mass(self) -> float:
        return float(sum(self.graph.elements.mass(a.symbol) for a in self.atoms))

    @property
    def center_of_mass(self) -> np.ndarray:
        atoms = self.atoms
        if not atoms:
            return np.zeros(2)
        weights = np.array([self.graph.elements.mass(a.symbol) for a in atoms])
        positions = np.array([a.position for a in atoms])
        return (positions * weights[:, None]).sum(axis=0) / weights.sum()

    @property
    def total_bond_energy(self) -> float:
        atoms = self.graph.atoms
        return float(
            sum(
                bond_energy(atoms[b.atom1_id].symbol, atoms[b.atom2_id].symbol, b.order)
                for b in self.bonds
            )
        )

    def symbols(self) -> Dict[int, str]:
        return {a.id: a.symbol for a in self.atoms}

    def update_properties(self) -> None:
        """Recompute formula and fingerprint from the current graph."""
        symbols = self.symbols()
        self.formula = formula_of(symbols.values())
        self.fingerprint = structure_fingerprint(
            symbols, (b.as_triple() for b in self.bonds)
        )

    def bond_graph(self) -> nx.Graph:
        return build_bond_graph(self.symbols(), (b.as_triple() for b in self.bonds))

    def is_stable(self) -> bool:
        """True when every atom's valence is exactly filled."""
        return is_valid(self.atoms, self.bonds, self.graph.elements)

    def detect_monomer(self, monomers) -> bool:
        """Flag this molecule as a monomer if its formula matches a template."""
        template = monomers.find_by_formula(self.formula)
        self.is_monomer = template is not None
        self.monomer_template = template
        return self.is_monomer

    def can_polymerize(self) -> bool:
        """Only stable, known monomers can chain into polymers."""
        return len(self.atom_ids) >= 2 and self.is_stable() and self.is_monomer

    def is_equivalent_to(self, other: Molecule) -> bool:
        if self.fingerprint != other.fingerprint:
            return False
        return same_structure(self.bond_graph(), other.bond_graph())

    def __repr__(self) -> str:
        return f"Molecule({self.formula}, atoms={len(self.atom_ids)})"
