"""
Stable-form reshaping.

Structures whose formula matches a canonical stable form are compared with
that form's bond orders and geometry. The reshaper only decides whether a
structure needs reshaping and where each atom should go; moving the atoms
is left to the physics collaborator handed to ``apply_reshape``.

Targets are assigned per element class. The default greedy pass walks the
atoms in input order and gives each the nearest unclaimed slot, which is not
globally optimal. ``assignment="optimal"`` solves the per-class minimum-cost
bipartite matching instead.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from scipy.optimize import linear_sum_assignment

from protocell.chemistry.elements import ElementTable, default_element_table
from protocell.templates.stable_forms import (
    StableForm,
    StableFormRegistry,
    bond_signature_of,
    default_stable_form_registry,
)

logger = logging.getLogger(__name__)

# Pixels an atom may sit from its target before the structure is reshaped
DEFAULT_POSITION_THRESHOLD = 15.0

ASSIGNMENT_MODES = ("greedy", "optimal")


@dataclass
class ReshapePlan:
    """Decision and target configuration for one structure."""

    template: StableForm
    targets: Dict[int, np.ndarray]
    needs_reshaping: bool
    reasons: List[str] = field(default_factory=list)
    displacements: Dict[int, float] = field(default_factory=dict)

    @property
    def total_displacement(self) -> float:
        return float(sum(self.displacements.values()))


def _symbols(structure: Any) -> Dict[int, str]:
    return {atom.id: atom.symbol for atom in structure.atoms}


def _positions(structure: Any) -> Dict[int, np.ndarray]:
    return {atom.id: np.asarray(atom.position, dtype=float) for atom in structure.atoms}


def assign_greedy(positions: np.ndarray, slots: np.ndarray) -> List[int]:
    """
    Nearest-unclaimed-slot assignment in input order.

    Returns:
        Slot index for each row of ``positions``.
    """
    used = set()
    chosen = []
    for pos in positions:
        best_index = -1
        best_distance = np.inf
        for i, slot in enumerate(slots):
            if i in used:
                continue
            distance = np.linalg.norm(pos - slot)
            if distance < best_distance:
                best_distance = distance
                best_index = i
        used.add(best_index)
        chosen.append(best_index)
    return chosen


def assign_optimal(positions: np.ndarray, slots: np.ndarray) -> List[int]:
    """Minimum total-distance assignment (Hungarian method)."""
    cost = np.linalg.norm(positions[:, None, :] - slots[None, :, :], axis=2)
    rows, cols = linear_sum_assignment(cost)
    chosen = [0] * len(positions)
    for r, c in zip(rows, cols):
        chosen[r] = int(c)
    return chosen


class StableFormReshaper:
    """
    Matches structures against stable forms and plans their reshaping.

    Args:
        registry: Stable-form templates, looked up by formula.
        position_threshold: Maximum allowed distance between an atom and its
            target before reshaping is needed.
        assignment: ``"greedy"`` (default) or ``"optimal"``.
        elements: Element table used to centre template offsets.
    """

    def __init__(
        self,
        registry: Optional[StableFormRegistry] = None,
        position_threshold: float = DEFAULT_POSITION_THRESHOLD,
        assignment: str = "greedy",
        elements: Optional[ElementTable] = None,
    ):
        if assignment not in ASSIGNMENT_MODES:
            raise ValueError(f"Unknown assignment mode: {assignment}")
        self.registry = registry if registry is not None else default_stable_form_registry()
        self.position_threshold = position_threshold
        self.assignment = assignment
        self.elements = elements or default_element_table()

    @classmethod
    def from_config(cls, config, registry: Optional[StableFormRegistry] = None) -> "StableFormReshaper":
        return cls(
            registry=registry,
            position_threshold=config.position_threshold,
            assignment=config.assignment,
        )

    def match(self, structure: Any) -> Optional[StableForm]:
        """
        Stable form with the structure's formula and exact element multiset.

        Among isomers the form with the same bonds (symbol pair and order) is
        preferred, so cyclopropane is not planned against propene.
        """
        bonds = bond_signature_of(
            _symbols(structure),
            ((b.atom1_id, b.atom2_id, b.order) for b in structure.bonds),
        )
        template = self.registry.find_by_formula(structure.formula, bonds)
        if template is None:
            return None
        if Counter(_symbols(structure).values()) != template.element_counts:
            return None
        return template

    def target_configuration(
        self,
        structure: Any,
        template: StableForm,
        assignment: Optional[str] = None,
    ) -> Dict[int, np.ndarray]:
        """
        Target position of each atom: centre of mass plus its slot offset.

        Element classes whose atom count differs from the template's are
        left without targets.
        """
        mode = assignment or self.assignment
        if mode not in ASSIGNMENT_MODES:
            raise ValueError(f"Unknown assignment mode: {mode}")

        center = np.asarray(structure.center_of_mass, dtype=float)
        offsets = template.centred_offsets(self.elements)
        positions = _positions(structure)

        atoms_by_symbol: Dict[str, List[int]] = defaultdict(list)
        for atom_id, symbol in _symbols(structure).items():
            atoms_by_symbol[symbol].append(atom_id)
        slots_by_symbol: Dict[str, List[int]] = defaultdict(list)
        for i, (symbol, _, _) in enumerate(template.atoms):
            slots_by_symbol[symbol].append(i)

        targets: Dict[int, np.ndarray] = {}
        for symbol, atom_ids in atoms_by_symbol.items():
            slot_indices = slots_by_symbol.get(symbol, [])
            if len(slot_indices) != len(atom_ids):
                continue
            slots = np.array([center + offsets[i] for i in slot_indices])
            current = np.array([positions[a] for a in atom_ids])
            if mode == "optimal":
                chosen = assign_optimal(current, slots)
            else:
                chosen = assign_greedy(current, slots)
            for atom_id, slot in zip(atom_ids, chosen):
                targets[atom_id] = slots[slot]

        return targets

    def bond_mismatches(self, structure: Any, template: StableForm) -> List[str]:
        """
        Reasons the structure's bonds disagree with the template's.

        Each structure bond is paired with an unclaimed template bond of the
        same symbol pair, preferring one of the same order, so a form with
        both C-O and C=O bonds is matched bond for bond.
        """
        reasons = []
        bonds = list(structure.bonds)
        if len(bonds) != len(template.bonds):
            reasons.append(f"bond count {len(bonds)} != {len(template.bonds)}")
            return reasons

        symbols = _symbols(structure)
        unclaimed = list(template.bonds)
        mismatched = []
        for bond in bonds:
            pair = tuple(sorted((symbols[bond.atom1_id], symbols[bond.atom2_id])))
            exact = next(
                (t for t in unclaimed if template.symbol_pair(t) == pair and t[2] == bond.order),
                None,
            )
            if exact is not None:
                unclaimed.remove(exact)
            else:
                mismatched.append((bond, pair))

        for bond, pair in mismatched:
            expected = next((t for t in unclaimed if template.symbol_pair(t) == pair), None)
            if expected is None:
                reasons.append(f"no {pair[0]}-{pair[1]} bond in {template.name}")
                continue
            unclaimed.remove(expected)
            reasons.append(f"{pair[0]}-{pair[1]} bond order {bond.order} != {expected[2]}")
        return reasons

    def plan(self, structure: Any, assignment: Optional[str] = None) -> Optional[ReshapePlan]:
        """
        Decide whether ``structure`` needs reshaping.

        Returns:
            A ``ReshapePlan``, or None when no stable form matches.
        """
        template = self.match(structure)
        if template is None:
            return None

        reasons = self.bond_mismatches(structure, template)
        targets = self.target_configuration(structure, template, assignment)
        positions = _positions(structure)
        displacements = {
            atom_id: float(np.linalg.norm(positions[atom_id] - target))
            for atom_id, target in targets.items()
        }
        for atom_id, distance in displacements.items():
            if distance > self.position_threshold:
                reasons.append(f"atom {atom_id} is {distance:.1f} from its target")

        return ReshapePlan(
            template=template,
            targets=targets,
            needs_reshaping=bool(reasons),
            reasons=reasons,
            displacements=displacements,
        )

    def needs_reshaping(self, structure: Any) -> bool:
        plan = self.plan(structure)
        return plan is not None and plan.needs_reshaping


def apply_reshape(plan: ReshapePlan, mover: Callable[[int, np.ndarray], Any]) -> int:
    """
    Hand every ``(atom_id, target)`` pair to the physics collaborator.

    The mover's return value is ignored. Plans that need no reshaping move
    nothing.

    Returns:
        Number of atoms handed to ``mover``.
    """
    if not plan.needs_reshaping:
        return 0
    for atom_id, target in plan.targets.items():
        mover(atom_id, target.copy())
    logger.debug(f"Reshaping toward {plan.template.name}: {len(plan.targets)} atoms")
    return len(plan.targets)
