"""
Emergent-assembly detection by spatial clustering.

Sealed polymers that are not yet part of an assembly are linked when their
centres are closer than ``max_distance``. Each connected component holding at
least one lipid and one nucleic acid becomes a new assembly, with its members
sorted into membrane, nucleoid, ribosome and other buckets.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
from scipy.spatial import distance_matrix

from protocell.chemistry.structure import new_id
from protocell.templates.polymers import PolymerType

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 150.0

BUCKETS = {
    PolymerType.LIPID: "membrane",
    PolymerType.NUCLEIC_ACID: "nucleoid",
    PolymerType.PROTEIN: "ribosomes",
}


@dataclass
class AssemblyInstance:
    """A detected higher-order assembly (a prokaryote-like protocell)."""

    id: str = field(default_factory=new_id)
    membrane: List[Any] = field(default_factory=list)
    nucleoid: List[Any] = field(default_factory=list)
    ribosomes: List[Any] = field(default_factory=list)
    other: List[Any] = field(default_factory=list)

    @property
    def members(self) -> List[Any]:
        return self.membrane + self.nucleoid + self.ribosomes + self.other

    @property
    def center(self) -> np.ndarray:
        members = self.members
        if not members:
            return np.zeros(2)
        return np.mean([np.asarray(p.center, dtype=float) for p in members], axis=0)


def available_polymers(polymers: Iterable[Any]) -> List[Any]:
    """Sealed polymers not yet claimed by an assembly."""
    return [p for p in polymers if p.sealed and p.assembly_id is None]


def connected_groups(polymers: Sequence[Any], max_distance: float = DEFAULT_MAX_DISTANCE) -> List[List[Any]]:
    """
    Components of the "centres closer than ``max_distance``" relation.

    Breadth-first search is seeded from each unvisited polymer in input
    order, so every polymer lands in exactly one group.
    """
    if not polymers:
        return []
    centers = np.array([np.asarray(p.center, dtype=float) for p in polymers])
    adjacent = distance_matrix(centers, centers) < max_distance

    visited = np.zeros(len(polymers), dtype=bool)
    groups = []
    for start in range(len(polymers)):
        if visited[start]:
            continue
        visited[start] = True
        group = [start]
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for other in np.flatnonzero(adjacent[current] & ~visited):
                visited[other] = True
                group.append(int(other))
                queue.append(int(other))
        groups.append([polymers[i] for i in group])
    return groups


def can_form_assembly(polymers: Sequence[Any]) -> bool:
    """At least one lipid and one nucleic acid."""
    types = {p.type for p in polymers}
    return PolymerType.LIPID in types and PolymerType.NUCLEIC_ACID in types


def categorize(polymers: Iterable[Any]) -> Dict[str, List[Any]]:
    """Sort polymers into assembly buckets by declared type."""
    result: Dict[str, List[Any]] = {"membrane": [], "nucleoid": [], "ribosomes": [], "other": []}
    for polymer in polymers:
        result[BUCKETS.get(polymer.type, "other")].append(polymer)
    return result


def create_assembly(polymers: Sequence[Any]) -> Optional[AssemblyInstance]:
    """Build an assembly from ``polymers`` and claim them, or None if the gate fails."""
    if not can_form_assembly(polymers):
        return None
    assembly = AssemblyInstance(**categorize(polymers))
    for polymer in assembly.members:
        polymer.assembly_id = assembly.id
    return assembly


def find_assembly_groups(polymers: Iterable[Any], max_distance: float = DEFAULT_MAX_DISTANCE) -> List[List[Any]]:
    """Groups of available polymers that pass the composition gate."""
    groups = connected_groups(available_polymers(polymers), max_distance)
    return [g for g in groups if can_form_assembly(g)]


def detect_assemblies(polymers: Iterable[Any], max_distance: float = DEFAULT_MAX_DISTANCE) -> List[AssemblyInstance]:
    """
    One detection pass: find qualifying groups and turn each into an assembly.

    Args:
        polymers: All polymer instances in the environment.
        max_distance: Adjacency radius between polymer centres.

    Returns:
        Newly created assemblies. Their members carry the new assembly id and
        are skipped by later passes.
    """
    assemblies = []
    for group in find_assembly_groups(polymers, max_distance):
        assembly = create_assembly(group)
        if assembly is not None:
            assemblies.append(assembly)
    if assemblies:
        logger.info(f"Detected {len(assemblies)} new assemblies")
    return assemblies


class AssemblyDetector:
    """Runs detection passes with a fixed adjacency radius."""

    def __init__(self, max_distance: float = DEFAULT_MAX_DISTANCE):
        if max_distance <= 0:
            raise ValueError(f"max_distance must be positive, got {max_distance}")
        self.max_distance = max_distance

    @classmethod
    def from_config(cls, config) -> "AssemblyDetector":
        return cls(max_distance=config.max_distance)

    def find_groups(self, polymers: Iterable[Any]) -> List[List[Any]]:
        return find_assembly_groups(polymers, self.max_distance)

    def detect(self, polymers: Iterable[Any]) -> List[AssemblyInstance]:
        return detect_assemblies(polymers, self.max_distance)
