"""
Unit tests for template registries, polymer classification and cell
requirement matching.

Run with: pytest tests/test_templates.py -v
"""

import copy
from dataclasses import replace
from types import SimpleNamespace

import pytest

from protocell.errors import ValidationError
from protocell.templates import (
    MonomerRegistry,
    PolymerType,
    TemplateRegistry,
    check_cell_viability,
    classify_polymer,
    default_cell_registry,
    default_monomer_registry,
    default_polymer_registry,
    default_stable_form_registry,
)
from protocell.templates.cells import MINIMAL_CELL, CellBlueprint, RoleRequirement
from protocell.templates.monomers import FATTY_ACID, GLUCOSE, GLYCINE, ADENINE_NUCLEOTIDE
from protocell.templates.polymers import POLYMER_TEMPLATES, TRANSPORT_PROTEIN
from protocell.templates.stable_forms import bond_signature_of

from conftest import FakePolymer


def chain(monomer, length, polymer_type):
    """Polymer stand-in whose molecules only carry a formula."""
    return SimpleNamespace(
        type=polymer_type,
        molecules=[SimpleNamespace(formula=monomer.formula) for _ in range(length)],
    )


# =============================================================================
# TEST: REGISTRY
# =============================================================================

class TestTemplateRegistry:
    """Read-only ordered registries."""

    def test_declaration_order_is_preserved(self):
        registry = default_polymer_registry()
        assert [t.id for t in registry.list_all()] == [t.id for t in POLYMER_TEMPLATES]

    def test_lookup(self):
        registry = default_polymer_registry()
        assert registry.lookup("dna_strand").name == "DNA Strand"
        assert registry.lookup("DNA_STRAND").id == "dna_strand"
        assert registry.lookup("missing") is None
        assert registry.lookup(None) is None

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            TemplateRegistry([GLYCINE, GLYCINE])

    def test_registry_is_a_mapping(self):
        registry = default_monomer_registry()
        assert len(registry) == 5
        assert "glucose" in registry
        assert registry["glucose"] is GLUCOSE

    def test_with_entries_returns_new_registry(self):
        registry = default_monomer_registry()
        custom = replace(GLYCINE, id="alanine")
        extended = registry.with_entries([custom])
        assert isinstance(extended, MonomerRegistry)
        assert len(extended) == 6
        assert len(registry) == 5

    def test_find_by_formula(self):
        monomers = default_monomer_registry()
        assert monomers.find_by_formula("C2H5NO2") is GLYCINE
        assert monomers.is_known_monomer(FATTY_ACID.formula)
        assert not monomers.is_known_monomer("H2O")
        assert [t.id for t in monomers.by_category("protein")] == ["glycine"]

    def test_stable_form_isomers_prefer_matching_bonds(self):
        forms = default_stable_form_registry()
        cyclopropane = forms.lookup("C3H6cyc")
        assert cyclopropane.name == "Cyclopropane"
        # Without bonds the first declared isomer is the default
        assert forms.find_by_formula("C3H6").name == "Propene"
        assert forms.find_by_formula("C3H6", cyclopropane.bond_signature) is cyclopropane
        assert forms.find_by_formula("C3H6", forms.lookup("C3H6").bond_signature).name == "Propene"

    def test_unmatched_bonds_fall_back_to_first_isomer(self):
        forms = default_stable_form_registry()
        ring_of_doubles = bond_signature_of({0: "C", 1: "C"}, [(0, 1, 2), (0, 1, 2)])
        assert forms.find_by_formula("C3H6", ring_of_doubles).name == "Propene"
        assert forms.find_by_formula("C9H9", ring_of_doubles) is None


# =============================================================================
# TEST: POLYMER CLASSIFICATION
# =============================================================================

class TestClassification:
    """First template in declaration order that accepts the polymer wins."""

    @pytest.mark.parametrize(
        "monomer,length,polymer_type,expected",
        [
            (FATTY_ACID, 3, PolymerType.LIPID, "phospholipid"),
            (FATTY_ACID, 2, PolymerType.LIPID, "fatty_acid"),
            (GLYCINE, 4, PolymerType.PROTEIN, "structural_protein"),
            (GLYCINE, 3, PolymerType.PROTEIN, "enzyme"),
            (ADENINE_NUCLEOTIDE, 5, PolymerType.NUCLEIC_ACID, "dna_strand"),
            (ADENINE_NUCLEOTIDE, 3, PolymerType.NUCLEIC_ACID, "rna_strand"),
            (GLUCOSE, 3, PolymerType.CARBOHYDRATE, "glycogen"),
        ],
    )
    def test_first_match(self, monomer, length, polymer_type, expected):
        result = classify_polymer(chain(monomer, length, polymer_type))
        assert result.useful
        assert result.template.id == expected

    def test_later_templates_are_shadowed(self):
        """Cellulose is never reached: glycogen accepts every glucose chain first."""
        result = classify_polymer(chain(GLUCOSE, 6, PolymerType.CARBOHYDRATE))
        assert result.template.id == "glycogen"
        assert result.role == "energy"

    def test_reordering_the_registry_changes_the_winner(self):
        reordered = TemplateRegistry(
            [TRANSPORT_PROTEIN] + [t for t in POLYMER_TEMPLATES if t.id != "transport_protein"]
        )
        result = classify_polymer(chain(GLYCINE, 3, PolymerType.PROTEIN), reordered)
        assert result.template.id == "transport_protein"
        assert result.role == "transport"

    def test_type_mismatch_is_not_useful(self):
        assert not classify_polymer(chain(GLYCINE, 4, PolymerType.LIPID)).useful

    def test_too_short_is_not_useful(self):
        assert not classify_polymer(chain(GLYCINE, 2, PolymerType.PROTEIN)).useful

    def test_mixed_monomers_are_not_useful(self):
        polymer = chain(GLYCINE, 4, PolymerType.PROTEIN)
        polymer.molecules[2] = SimpleNamespace(formula=GLUCOSE.formula)
        assert not classify_polymer(polymer).useful

    def test_essential_flag(self):
        assert classify_polymer(chain(FATTY_ACID, 3, PolymerType.LIPID)).essential
        assert not classify_polymer(chain(FATTY_ACID, 2, PolymerType.LIPID)).essential


# =============================================================================
# TEST: CELL VIABILITY
# =============================================================================

class TestViability:
    """Role coverage against the generic viability requirements."""

    def test_nothing_is_not_viable(self):
        viability = check_cell_viability([])
        assert not viability.viable
        assert {m["role"] for m in viability.missing} == {"membrane", "structure", "genetics"}

    def test_minimal_viable_set(self):
        viability = check_cell_viability([
            chain(FATTY_ACID, 3, PolymerType.LIPID),
            chain(GLYCINE, 4, PolymerType.PROTEIN),
            chain(ADENINE_NUCLEOTIDE, 4, PolymerType.NUCLEIC_ACID),
        ])
        assert viability.viable, viability.missing
        assert viability.role_counts["membrane"] == 1
        assert viability.role_counts["metabolism"] == 0


# =============================================================================
# TEST: CELL REQUIREMENTS
# =============================================================================

class TestCellRequirements:
    """Per-role filtering by declared type and minimum chain length."""

    def test_no_polymers(self):
        report = MINIMAL_CELL.check_requirements([])
        assert not report.satisfied
        assert report.progress["membrane"].have == 0
        assert report.progress["membrane"].need == 1
        assert len(report.missing) == 2

    def test_one_matching_polymer_per_role(self):
        candidates = [
            FakePolymer(PolymerType.LIPID, chain_length=2),
            FakePolymer(PolymerType.NUCLEIC_ACID, chain_length=2),
        ]
        report = MINIMAL_CELL.check_requirements(candidates)
        assert report.satisfied
        assert report.missing == []
        assert report.progress["nucleoid"].polymers == [candidates[1]]

    def test_chain_length_minimum(self):
        candidates = [
            FakePolymer(PolymerType.LIPID, chain_length=1),
            FakePolymer(PolymerType.NUCLEIC_ACID, chain_length=5),
        ]
        report = MINIMAL_CELL.check_requirements(candidates)
        assert not report.satisfied
        assert [m["role"] for m in report.missing] == ["membrane"]

    def test_type_must_match_referenced_template(self):
        candidates = [
            FakePolymer(PolymerType.PROTEIN, chain_length=9),
            FakePolymer(PolymerType.NUCLEIC_ACID, chain_length=2),
        ]
        assert not MINIMAL_CELL.check_requirements(candidates).satisfied

    def test_candidates_are_not_modified(self):
        candidates = [
            FakePolymer(PolymerType.LIPID, chain_length=2),
            FakePolymer(PolymerType.NUCLEIC_ACID, chain_length=2),
        ]
        before = copy.deepcopy(candidates)
        MINIMAL_CELL.check_requirements(candidates)
        assert candidates == before

    def test_counts_above_one(self):
        e_coli = default_cell_registry().lookup("e_coli")
        one_membrane = [
            FakePolymer(PolymerType.LIPID, chain_length=3),
            FakePolymer(PolymerType.NUCLEIC_ACID, chain_length=4),
            FakePolymer(PolymerType.PROTEIN, chain_length=3),
            FakePolymer(PolymerType.PROTEIN, chain_length=3),
        ]
        report = e_coli.check_requirements(one_membrane)
        assert not report.satisfied
        assert report.missing[0]["role"] == "membrane"
        assert report.missing[0]["have"] == 1
        assert e_coli.total_polymers_required == 5

    def test_real_polymers_use_molecule_count(self):
        lipid = chain(FATTY_ACID, 2, PolymerType.LIPID)
        dna = chain(ADENINE_NUCLEOTIDE, 2, PolymerType.NUCLEIC_ACID)
        assert MINIMAL_CELL.check_requirements([lipid, dna]).satisfied

    def test_detailed_requirements(self):
        details = {d["role"]: d for d in MINIMAL_CELL.detailed_requirements()}
        assert details["membrane"]["monomerFormula"] == FATTY_ACID.formula
        assert details["nucleoid"]["polymerType"] == "nucleic_acid"

    def test_record_round_trip(self):
        restored = CellBlueprint.from_record(MINIMAL_CELL.to_record())
        assert restored.fingerprint == MINIMAL_CELL.fingerprint
        assert restored.requirements["membrane"] == MINIMAL_CELL.requirements["membrane"]

    def test_malformed_records(self):
        with pytest.raises(ValidationError):
            CellBlueprint.from_record({"name": "no id"})
        with pytest.raises(ValidationError):
            CellBlueprint.from_record({"id": "x", "requirements": {"membrane": {"count": 1}}})
        with pytest.raises(ValidationError):
            RoleRequirement.from_record({"polymerId": "dna_strand", "count": "many"})
