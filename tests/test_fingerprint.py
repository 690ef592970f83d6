"""
Unit tests for formulas and fingerprints.

Run with: pytest tests/test_fingerprint.py -v
"""

import random

import pytest

from protocell.chemistry.fingerprint import (
    build_bond_graph,
    fingerprint_formula,
    formula_of,
    normalize_formula,
    parse_formula,
    same_structure,
    structure_fingerprint,
    template_fingerprint,
)
from protocell.templates.cells import MINIMAL_CELL, CellBlueprint, RoleRequirement
from protocell.templates.monomers import GLUCOSE

from conftest import BICYCLOPENTYL, DECALIN, WATER_ATOMS, WATER_BONDS, build, hydrocarbon


# =============================================================================
# TEST: FORMULAS
# =============================================================================

class TestFormula:
    """Hill-ordered formulas."""

    @pytest.mark.parametrize(
        "symbols,expected",
        [
            (["O", "H", "H"], "H2O"),
            (["O", "C", "O"], "CO2"),
            (["Cl", "H"], "HCl"),
            (["H", "N", "H", "H"], "H3N"),
            (["H", "C", "H", "C", "H", "H"], "C2H4"),
            (["Na", "Cl"], "ClNa"),
        ],
    )
    def test_hill_order(self, symbols, expected):
        assert formula_of(symbols) == expected

    def test_parse_sums_repeated_symbols(self):
        assert parse_formula("CH3CH2OH") == {"C": 2, "H": 6, "O": 1}

    @pytest.mark.parametrize("written", ["H2O", "OH2", "HOH"])
    def test_normalize(self, written):
        assert normalize_formula(written) == "H2O"

    def test_glucose_formula(self):
        assert GLUCOSE.formula == "C6H12O6"


# =============================================================================
# TEST: STRUCTURE FINGERPRINTS
# =============================================================================

class TestStructureFingerprint:
    """Invariance under renumbering and translation, sensitivity to topology."""

    def test_water_prefix(self):
        symbols = {i: s for i, (s, _, _) in enumerate(WATER_ATOMS)}
        fingerprint = structure_fingerprint(symbols, WATER_BONDS)
        assert fingerprint.startswith("H2O:")
        assert fingerprint_formula(fingerprint) == "H2O"

    def test_permutation_invariance(self):
        symbols = {i: slot[0] for i, slot in enumerate(GLUCOSE.atom_layout)}
        reference = structure_fingerprint(symbols, GLUCOSE.bond_layout)

        rng = random.Random(7)
        for _ in range(5):
            keys = list(symbols)
            rng.shuffle(keys)
            relabel = {old: new for old, new in zip(symbols, keys)}
            shuffled_symbols = {relabel[k]: s for k, s in symbols.items()}
            shuffled_bonds = [
                (relabel[b], relabel[a], order) if rng.random() < 0.5 else (relabel[a], relabel[b], order)
                for a, b, order in GLUCOSE.bond_layout
            ]
            rng.shuffle(shuffled_bonds)
            assert structure_fingerprint(shuffled_symbols, shuffled_bonds) == reference

    def test_translation_invariance(self, graph):
        here = build(graph, WATER_ATOMS, WATER_BONDS)
        there = build(graph, WATER_ATOMS, WATER_BONDS, offset=(500, -300))
        assert here.fingerprint == there.fingerprint
        assert here.is_equivalent_to(there)

    def test_bond_order_changes_fingerprint(self):
        symbols = {0: "C", 1: "C", 2: "H", 3: "H", 4: "H", 5: "H"}
        double = [(0, 1, 2), (0, 2, 1), (0, 3, 1), (1, 4, 1), (1, 5, 1)]
        single = [(0, 1, 1)] + double[1:]
        assert structure_fingerprint(symbols, double) != structure_fingerprint(symbols, single)

    def test_isomers_share_formula_not_fingerprint(self):
        """Ethanol and dimethyl ether."""
        ethanol = {0: "C", 1: "C", 2: "O"}
        ether = {0: "C", 1: "O", 2: "C"}
        a = structure_fingerprint(ethanol, [(0, 1, 1), (1, 2, 1)])
        b = structure_fingerprint(ether, [(0, 1, 1), (1, 2, 1)])
        assert fingerprint_formula(a) == fingerprint_formula(b)
        assert a != b

    def test_hash_collision_is_caught_by_exact_comparison(self, graph):
        decalin = hydrocarbon(graph, 10, DECALIN)
        bicyclopentyl = hydrocarbon(graph, 10, BICYCLOPENTYL, offset=(0, 400))
        assert decalin.is_stable() and bicyclopentyl.is_stable()
        assert decalin.formula == bicyclopentyl.formula == "C10H18"

        assert decalin.fingerprint == bicyclopentyl.fingerprint
        assert not same_structure(decalin.bond_graph(), bicyclopentyl.bond_graph())
        assert not decalin.is_equivalent_to(bicyclopentyl)
        assert decalin.is_equivalent_to(hydrocarbon(graph, 10, DECALIN, offset=(400, 0)))

    def test_same_structure_ignores_numbering_not_labels(self):
        water = build_bond_graph({0: "O", 1: "H", 2: "H"}, WATER_BONDS)
        renumbered = build_bond_graph({7: "H", 8: "O", 9: "H"}, [(8, 7, 1), (9, 8, 1)])
        assert same_structure(water, renumbered)

        double_bonded = build_bond_graph({0: "O", 1: "H", 2: "H"}, [(0, 1, 2), (0, 2, 1)])
        assert not same_structure(water, double_bonded)
        sulfide = build_bond_graph({0: "S", 1: "H", 2: "H"}, WATER_BONDS)
        assert not same_structure(water, sulfide)

    def test_template_keys_have_no_formula(self):
        assert fingerprint_formula(MINIMAL_CELL.fingerprint) is None


# =============================================================================
# TEST: TEMPLATE FINGERPRINTS
# =============================================================================

class TestTemplateFingerprint:
    """Requirement sets collapse regardless of role order."""

    def test_role_order_does_not_matter(self):
        a = template_fingerprint("cell", [("membrane", "phospholipid", 2, 1), ("nucleoid", "dna_strand", 2, 1)])
        b = template_fingerprint("cell", [("nucleoid", "dna_strand", 2, 1), ("membrane", "phospholipid", 2, 1)])
        assert a == b
        assert a == "cell:membrane:phospholipid:2:1|nucleoid:dna_strand:2:1"

    def test_qualifier(self):
        key = template_fingerprint("polymer", [("none", "ethylene", 3, 1)], qualifier="generic")
        assert key == "polymer:generic:none:ethylene:3:1"

    def test_identical_cells_collide(self):
        clone = CellBlueprint(
            id="another_id",
            name="Renamed",
            requirements=dict(reversed(list(MINIMAL_CELL.requirements.items()))),
        )
        assert clone.fingerprint == MINIMAL_CELL.fingerprint

    def test_different_threshold_differs(self):
        changed = CellBlueprint(
            id="minimal_cell",
            name="Minimal Cell",
            requirements={
                **MINIMAL_CELL.requirements,
                "membrane": RoleRequirement("phospholipid", 3, 1),
            },
        )
        assert changed.fingerprint != MINIMAL_CELL.fingerprint
