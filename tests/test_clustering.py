"""
Unit tests for polymer instances and emergent-assembly detection.

Run with: pytest tests/test_clustering.py -v
"""

import numpy as np
import pytest

from protocell.assembly import (
    AssemblyDetector,
    Polymer,
    detect_assemblies,
    detect_polymer_type,
    find_assembly_groups,
)
from protocell.assembly.clustering import DEFAULT_MAX_DISTANCE, categorize, connected_groups
from protocell.catalogue import Catalogue
from protocell.templates.monomers import ADENINE_NUCLEOTIDE, GLUCOSE, GLYCINE
from protocell.templates.polymers import DNA_STRAND, PHOSPHOLIPID, PolymerType
from protocell.utils import ClusteringConfig, EngineConfig

from conftest import FakePolymer, build_form


# =============================================================================
# TEST: POLYMER
# =============================================================================

class TestPolymer:
    """Ordered molecule chains."""

    def test_type_detection_from_composition(self, graph):
        glycines = [build_form(graph, GLYCINE, offset=(i * 80, 0)) for i in range(3)]
        assert detect_polymer_type(glycines) == PolymerType.PROTEIN

        nucleotides = [build_form(graph, ADENINE_NUCLEOTIDE, offset=(i * 80, 300)) for i in range(2)]
        assert detect_polymer_type(nucleotides) == PolymerType.NUCLEIC_ACID

        sugars = [build_form(graph, GLUCOSE, offset=(i * 80, 600)) for i in range(2)]
        assert detect_polymer_type(sugars) == PolymerType.CARBOHYDRATE

        assert detect_polymer_type([]) == PolymerType.GENERIC

    def test_chain_properties(self, graph):
        molecules = [build_form(graph, GLYCINE, offset=(i * 80, 0)) for i in range(3)]
        polymer = Polymer(molecules)
        assert polymer.type == PolymerType.PROTEIN
        assert polymer.chain_length == 3
        assert polymer.sequence == "C2H5NO2-C2H5NO2-C2H5NO2"
        assert polymer.mass == pytest.approx(3 * molecules[0].mass)
        np.testing.assert_allclose(polymer.center, np.mean([m.center_of_mass for m in molecules], axis=0))
        assert all(m.polymer_id == polymer.id for m in molecules)
        assert polymer.is_stable()

    def test_declared_type_is_kept(self, graph):
        molecules = [build_form(graph, GLYCINE, offset=(i * 80, 0)) for i in range(2)]
        polymer = Polymer(molecules[:1], type=PolymerType.LIPID)
        polymer.add_molecule(molecules[1])
        assert polymer.type == PolymerType.LIPID

    def test_seal(self, graph):
        molecules = [build_form(graph, GLYCINE, offset=(i * 80, 0)) for i in range(2)]
        polymer = Polymer(molecules)
        polymer.seal()
        assert polymer.sealed
        assert polymer.cell_role == "structure"
        assert all(atom.sealed for atom in polymer.atoms())
        with pytest.raises(ValueError, match="sealed"):
            polymer.add_molecule(build_form(graph, GLYCINE, offset=(500, 0)))

    def test_remove_molecule(self, graph):
        molecules = [build_form(graph, GLYCINE, offset=(i * 80, 0)) for i in range(2)]
        polymer = Polymer(molecules)
        assert polymer.remove_molecule(molecules[0].id)
        assert molecules[0].polymer_id is None
        assert not polymer.remove_molecule("missing")
        assert not polymer.is_stable()

    def test_fingerprint_ignores_member_order(self, graph):
        a = build_form(graph, GLYCINE)
        b = build_form(graph, GLYCINE, offset=(80, 0))
        assert Polymer([a, b]).fingerprint == Polymer([b, a]).fingerprint
        assert Polymer([a, b]).fingerprint.startswith("PRO:")


# =============================================================================
# TEST: SPATIAL CLUSTERING
# =============================================================================

class TestClustering:
    """Radius-linked components of sealed, unassigned polymers."""

    def test_lipid_and_nucleic_acid_within_radius(self):
        lipid = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0))
        dna = FakePolymer(PolymerType.NUCLEIC_ACID, center=(100.0, 0.0))
        assemblies = detect_assemblies([lipid, dna])

        assert len(assemblies) == 1
        assembly = assemblies[0]
        assert assembly.membrane == [lipid]
        assert assembly.nucleoid == [dna]
        assert lipid.assembly_id == assembly.id
        assert dna.assembly_id == assembly.id
        np.testing.assert_allclose(assembly.center, [50.0, 0.0])

    def test_beyond_radius(self):
        lipid = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0))
        dna = FakePolymer(PolymerType.NUCLEIC_ACID, center=(400.0, 0.0))
        assert find_assembly_groups([lipid, dna]) == []
        assert detect_assemblies([lipid, dna]) == []
        assert lipid.assembly_id is None

    def test_radius_is_strict(self):
        lipid = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0))
        dna = FakePolymer(PolymerType.NUCLEIC_ACID, center=(DEFAULT_MAX_DISTANCE, 0.0))
        assert detect_assemblies([lipid, dna]) == []
        assert len(detect_assemblies([lipid, dna], max_distance=DEFAULT_MAX_DISTANCE + 1)) == 1

    def test_composition_gate(self):
        lipids = [FakePolymer(PolymerType.LIPID, center=(i * 10.0, 0.0)) for i in range(3)]
        assert detect_assemblies(lipids) == []

    def test_components_are_transitive(self):
        """A and C are out of range of each other but linked through B."""
        a = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0))
        b = FakePolymer(PolymerType.PROTEIN, center=(120.0, 0.0))
        c = FakePolymer(PolymerType.NUCLEIC_ACID, center=(240.0, 0.0))
        (assembly,) = detect_assemblies([a, b, c])
        assert assembly.ribosomes == [b]
        assert len(assembly.members) == 3

    def test_unsealed_and_claimed_polymers_are_skipped(self):
        lipid = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0), sealed=False)
        dna = FakePolymer(PolymerType.NUCLEIC_ACID, center=(10.0, 0.0))
        assert detect_assemblies([lipid, dna]) == []

        lipid.sealed = True
        assert len(detect_assemblies([lipid, dna])) == 1
        assert detect_assemblies([lipid, dna]) == [], "claimed polymers join no second assembly"

    def test_separate_groups_give_separate_assemblies(self):
        polymers = [
            FakePolymer(PolymerType.LIPID, center=(0.0, 0.0)),
            FakePolymer(PolymerType.NUCLEIC_ACID, center=(50.0, 0.0)),
            FakePolymer(PolymerType.LIPID, center=(1000.0, 0.0)),
            FakePolymer(PolymerType.NUCLEIC_ACID, center=(1050.0, 0.0)),
        ]
        assemblies = detect_assemblies(polymers)
        assert len(assemblies) == 2
        assert assemblies[0].id != assemblies[1].id

    def test_every_polymer_in_exactly_one_group(self):
        rng = np.random.default_rng(3)
        polymers = [
            FakePolymer(PolymerType.GENERIC, center=tuple(rng.uniform(0, 1000, size=2)))
            for _ in range(40)
        ]
        groups = connected_groups(polymers, 150.0)
        flat = [id(p) for g in groups for p in g]
        assert sorted(flat) == sorted(id(p) for p in polymers)

    def test_categorize(self):
        generic = FakePolymer(PolymerType.GENERIC)
        sugar = FakePolymer(PolymerType.CARBOHYDRATE)
        buckets = categorize([generic, sugar])
        assert buckets["other"] == [generic, sugar]
        assert buckets["membrane"] == []

    def test_with_real_polymers(self, graph):
        catalogue = Catalogue()
        lipid = catalogue.instantiate_polymer(PHOSPHOLIPID.fingerprint, graph, (0, 0))
        dna = catalogue.instantiate_polymer(DNA_STRAND.fingerprint, graph, (0, 120))
        lipid.seal()
        dna.seal()

        (assembly,) = detect_assemblies([lipid, dna])
        assert assembly.membrane == [lipid]
        assert assembly.nucleoid == [dna]

    def test_detector_radius_from_config(self, tmp_path):
        lipid = FakePolymer(PolymerType.LIPID, center=(0.0, 0.0))
        dna = FakePolymer(PolymerType.NUCLEIC_ACID, center=(300.0, 0.0))
        assert AssemblyDetector().find_groups([lipid, dna]) == []

        path = tmp_path / "engine.yaml"
        EngineConfig(clustering=ClusteringConfig(max_distance=400.0)).save(path)
        detector = AssemblyDetector.from_config(EngineConfig.load(path).clustering)
        assert detector.max_distance == 400.0
        (assembly,) = detector.detect([lipid, dna])
        assert assembly.membrane == [lipid]

    def test_detector_rejects_non_positive_radius(self):
        with pytest.raises(ValueError):
            AssemblyDetector(max_distance=0)
