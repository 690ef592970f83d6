"""
The blueprint catalogue.

The catalogue owns three fingerprint-keyed collections (molecule, polymer and
cell blueprints), seeded at construction with the static monomer, polymer and
cell templates. New structures are registered at most once per fingerprint.
Every change is written through to an optional store; a store failure is
logged and the catalogue carries on in memory only, so the in-memory state is
the authoritative session state.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from protocell.assembly.polymer import Polymer
from protocell.catalogue.blueprints import CellBlueprint, MoleculeBlueprint, PolymerBlueprint
from protocell.catalogue.store import BlueprintStore, JsonDirectoryStore
from protocell.chemistry.elements import ElementTable, default_element_table
from protocell.chemistry.fingerprint import normalize_formula, same_structure
from protocell.chemistry.structure import Molecule, StructureGraph, as_position
from protocell.chemistry.validity import check_valence, is_blueprint_valid
from protocell.errors import PersistenceError, SnapshotError, ValidationError
from protocell.templates.cells import default_cell_registry
from protocell.templates.monomers import MonomerRegistry, default_monomer_registry
from protocell.templates.polymers import (
    CellViability,
    PolymerTemplate,
    PolymerType,
    PolymerUsefulness,
    check_cell_viability,
    classify_polymer,
    default_polymer_registry,
)
from protocell.templates.registry import TemplateRegistry
from protocell.utils.config import CatalogueConfig

logger = logging.getLogger(__name__)

MOLECULES = "molecules"
POLYMERS = "polymers"
CELLS = "cells"
COLLECTIONS = (MOLECULES, POLYMERS, CELLS)

# Spacing between monomers when a polymer blueprint is instantiated
POLYMER_SPACING = 80.0

Blueprint = Union[MoleculeBlueprint, PolymerBlueprint, CellBlueprint]
Listener = Callable[[Blueprint, str], Any]


@dataclass
class CleanupReport:
    """What a cleanup pass removed."""
    invalid: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)

    @property
    def removed(self) -> int:
        return len(self.invalid) + len(self.duplicates)


@dataclass
class ImportReport:
    """Counts of blueprints added by one import."""
    molecules: int = 0
    polymers: int = 0
    cells: int = 0
    skipped: int = 0
    invalid: int = 0

    @property
    def added(self) -> int:
        return self.molecules + self.polymers + self.cells


class Catalogue:
    """
    Fingerprint-keyed blueprint catalogue.

    Args:
        store: Durable store; None keeps everything in memory.
        config: Discovery and load settings.
        monomers: Monomer templates, seeded as static molecule blueprints.
        polymers: Polymer templates, seeded as static polymer blueprints and
            used for classification.
        cells: Cell blueprints, seeded into the cell collection.
        elements: Element table for validity checks.
    """

    def __init__(
        self,
        store: Optional[BlueprintStore] = None,
        config: Optional[CatalogueConfig] = None,
        monomers: Optional[MonomerRegistry] = None,
        polymers: Optional[TemplateRegistry[PolymerTemplate]] = None,
        cells: Optional[TemplateRegistry[CellBlueprint]] = None,
        elements: Optional[ElementTable] = None,
    ):
        self.config = config or CatalogueConfig()
        self.store = store
        self.monomers = monomers if monomers is not None else default_monomer_registry()
        self.polymer_templates = polymers if polymers is not None else default_polymer_registry()
        self.cell_templates = cells if cells is not None else default_cell_registry()
        self.elements = elements or default_element_table()

        self.molecules: Dict[str, MoleculeBlueprint] = {}
        self.polymers: Dict[str, PolymerBlueprint] = {}
        self.cells: Dict[str, CellBlueprint] = {}
        self._by_id: Dict[str, Tuple[str, str]] = {}  # blueprint id -> (collection, fingerprint)

        self.auto_register_stable = self.config.auto_register_stable
        self.on_blueprint_added: Optional[Listener] = None

        self._seed()

    @classmethod
    def from_config(cls, config: CatalogueConfig, **kwargs) -> "Catalogue":
        """Catalogue backed by a ``JsonDirectoryStore`` at ``config.store_path``, if set."""
        store = JsonDirectoryStore(config.store_path) if config.store_path else None
        return cls(store=store, config=config, **kwargs)

    # =========================================================================
    # Internals
    # =========================================================================

    def _collection(self, name: str) -> Dict[str, Any]:
        return {MOLECULES: self.molecules, POLYMERS: self.polymers, CELLS: self.cells}[name]

    def _add(self, collection: str, blueprint: Blueprint) -> None:
        self._collection(collection)[blueprint.fingerprint] = blueprint
        self._by_id[blueprint.id] = (collection, blueprint.fingerprint)

    def _discard(self, collection: str, fingerprint: str) -> Optional[Blueprint]:
        blueprint = self._collection(collection).pop(fingerprint, None)
        if blueprint is not None and self._by_id.get(blueprint.id) == (collection, fingerprint):
            del self._by_id[blueprint.id]
        return blueprint

    def _seed(self) -> None:
        """Load static templates. They are kept in memory only."""
        for template in self.polymer_templates.list_all():
            self._add(POLYMERS, PolymerBlueprint.from_template(template))
        for template in self.monomers.list_all():
            blueprint = MoleculeBlueprint.from_monomer(template, self.elements)
            if blueprint.fingerprint not in self.molecules:
                self._add(MOLECULES, blueprint)
        for cell in self.cell_templates.list_all():
            if cell.fingerprint not in self.cells:
                self._add(CELLS, cell)
        logger.debug(
            f"Seeded {len(self.polymers)} polymer templates, {len(self.molecules)} monomers, "
            f"{len(self.cells)} cell blueprints"
        )

    def _degrade(self, error: Exception) -> None:
        logger.error(f"Store failure, continuing in memory only: {error}")
        self.store = None

    def _persist(self, collection: str, key: str, record: Dict[str, Any]) -> None:
        if self.store is None:
            return
        try:
            self.store.put(collection, key, record)
        except PersistenceError as e:
            self._degrade(e)

    def _unpersist(self, collection: str, key: str) -> None:
        if self.store is None:
            return
        try:
            self.store.delete(collection, key)
        except PersistenceError as e:
            self._degrade(e)

    def _molecule_key(self, fingerprint: str, graph: Any) -> Tuple[str, bool]:
        """
        Catalogue key for a structure and whether that key already holds it.

        A fingerprint held by a structure that is not isomorphic to ``graph``
        is a hash collision; the next free ``<fingerprint>:<n>`` is used.
        """
        key, n = fingerprint, 0
        while key in self.molecules:
            if same_structure(graph, self.molecules[key].bond_graph()):
                return key, True
            n += 1
            key = f"{fingerprint}:{n}"
        return key, False

    def _has_cell_id(self, cell_id: str) -> bool:
        location = self._by_id.get(cell_id)
        return location is not None and location[0] == CELLS

    @staticmethod
    def _store_key(collection: str, blueprint: Blueprint) -> str:
        return blueprint.id if collection == CELLS else blueprint.fingerprint

    def _save(self, collection: str, blueprint: Blueprint) -> None:
        self._persist(collection, self._store_key(collection, blueprint), blueprint.to_record())

    def _notify(self, blueprint: Blueprint, kind: str) -> None:
        if self.on_blueprint_added is not None:
            self.on_blueprint_added(blueprint, kind)

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self) -> int:
        """
        Read every persisted record into memory.

        Records whose fingerprint is already present (static templates, or
        entries registered this session) are skipped; malformed records are
        logged and skipped. Runs ``cleanup()`` afterwards when
        ``cleanup_on_load`` is set.

        Returns:
            Number of blueprints loaded.
        """
        if self.store is None:
            return 0

        parsers = {
            MOLECULES: MoleculeBlueprint.from_record,
            POLYMERS: PolymerBlueprint.from_record,
            CELLS: CellBlueprint.from_record,
        }
        loaded = 0
        for collection in COLLECTIONS:
            try:
                records = self.store.get_all(collection)
            except PersistenceError as e:
                self._degrade(e)
                break
            target = self._collection(collection)
            for record in records:
                try:
                    blueprint = parsers[collection](record)
                except ValidationError as e:
                    logger.warning(f"Skipping unreadable {collection} record: {e}")
                    continue
                if blueprint.fingerprint in target:
                    continue
                if collection == CELLS and self._has_cell_id(blueprint.id):
                    continue
                self._add(collection, blueprint)
                loaded += 1

        logger.info(f"Loaded {loaded} blueprints from store")
        if self.config.cleanup_on_load:
            self.cleanup()
        return loaded

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, structure: Any, name: Optional[str] = None) -> Optional[Blueprint]:
        """
        Register a molecule, polymer or cell blueprint.

        Returns:
            The new blueprint, or None when the fingerprint is already
            catalogued or the structure is not valid.
        """
        if isinstance(structure, CellBlueprint):
            return self.register_cell(structure)
        if isinstance(structure, Polymer) or hasattr(structure, "molecules"):
            return self.register_polymer(structure, name)
        return self.register_molecule(structure, name)

    def register_molecule(self, molecule: Molecule, name: Optional[str] = None) -> Optional[MoleculeBlueprint]:
        key, known = self._molecule_key(molecule.fingerprint, molecule.bond_graph())
        if known:
            return None

        symbols = {atom.id: atom.symbol for atom in molecule.atoms}
        report = check_valence(
            symbols,
            [(b.atom1_id, b.atom2_id, b.order) for b in molecule.bonds],
            self.elements,
        )
        if not report.valid:
            logger.debug(f"Not registering {molecule.formula}: {'; '.join(report.violations)}")
            return None

        if molecule.monomer_template is None:
            molecule.detect_monomer(self.monomers)

        blueprint = MoleculeBlueprint.from_molecule(molecule, name, fingerprint=key)
        self._add(MOLECULES, blueprint)
        self._save(MOLECULES, blueprint)
        self._notify(blueprint, "molecule")
        logger.info(f"Registered new molecule: {blueprint.name} ({blueprint.formula})")
        return blueprint

    def register_polymer(self, polymer: Any, name: Optional[str] = None) -> Optional[PolymerBlueprint]:
        usefulness = self.classify_polymer(polymer)
        blueprint = PolymerBlueprint.from_polymer(polymer, usefulness, name)
        if blueprint.fingerprint in self.polymers:
            return None

        self._add(POLYMERS, blueprint)
        self._save(POLYMERS, blueprint)
        self._notify(blueprint, "polymer")
        logger.info(f"Registered polymer: {blueprint.name} ({blueprint.type.value})")
        return blueprint

    def register_cell(self, cell: CellBlueprint) -> Optional[CellBlueprint]:
        if cell.fingerprint in self.cells or self._has_cell_id(cell.id):
            return None
        self._add(CELLS, cell)
        self._save(CELLS, cell)
        self._notify(cell, "cell")
        logger.info(f"Registered cell blueprint: {cell.name}")
        return cell

    def auto_discover(self, candidates: Iterable[Molecule]) -> List[MoleculeBlueprint]:
        """
        Register every candidate that is stable and not yet catalogued.

        Re-running on the same candidates registers nothing new.
        """
        if not self.auto_register_stable:
            return []
        added = []
        for molecule in candidates:
            if not molecule.is_stable() or self.find_molecule(molecule) is not None:
                continue
            blueprint = self.register_molecule(molecule)
            if blueprint is not None:
                added.append(blueprint)
        if added:
            logger.info(f"Auto-discovered {len(added)} molecules")
        return added

    # =========================================================================
    # Queries
    # =========================================================================

    def lookup(self, key: str) -> Optional[Blueprint]:
        """Blueprint by fingerprint or by blueprint id."""
        for collection in (self.molecules, self.polymers, self.cells):
            if key in collection:
                return collection[key]
        location = self._by_id.get(key)
        if location is None:
            return None
        collection, fingerprint = location
        return self._collection(collection).get(fingerprint)

    def find_molecule(self, molecule: Molecule) -> Optional[MoleculeBlueprint]:
        """Catalogued blueprint of exactly this structure, if any."""
        key, known = self._molecule_key(molecule.fingerprint, molecule.bond_graph())
        return self.molecules[key] if known else None

    def has_molecule(self, fingerprint: str) -> bool:
        return fingerprint in self.molecules

    def get_molecule(self, fingerprint: str) -> Optional[MoleculeBlueprint]:
        return self.molecules.get(fingerprint)

    def all_molecules(self) -> List[MoleculeBlueprint]:
        return list(self.molecules.values())

    def all_polymers(self) -> List[PolymerBlueprint]:
        return list(self.polymers.values())

    def all_cells(self) -> List[CellBlueprint]:
        return list(self.cells.values())

    def search(self, query: str) -> List[MoleculeBlueprint]:
        """Molecule blueprints whose name or formula contains ``query`` (any case)."""
        q = query.lower()
        return [
            bp for bp in self.molecules.values()
            if q in bp.name.lower() or q in bp.formula.lower()
        ]

    def polymers_by_type(self, polymer_type: Union[PolymerType, str]) -> List[PolymerBlueprint]:
        polymer_type = PolymerType(polymer_type)
        return [p for p in self.polymers.values() if p.type == polymer_type]

    def polymers_by_role(self, role: str) -> List[PolymerBlueprint]:
        return [p for p in self.polymers.values() if p.cell_role == role]

    def essential_polymers(self) -> List[PolymerBlueprint]:
        return [p for p in self.polymers.values() if p.essential]

    # =========================================================================
    # Monomers
    # =========================================================================

    def get_monomer(self, monomer_id: Optional[str]) -> Optional[MoleculeBlueprint]:
        """
        Molecule blueprint of a monomer, creating it from its template if it
        was removed from the catalogue.
        """
        if not monomer_id:
            return None
        wanted = monomer_id.lower()
        for blueprint in self.molecules.values():
            if blueprint.monomer_id == wanted:
                return blueprint

        template = self.monomers.lookup(wanted)
        if template is None:
            return None
        blueprint = MoleculeBlueprint.from_monomer(template, self.elements)
        self._add(MOLECULES, blueprint)
        logger.info(f"Created monomer blueprint on demand: {blueprint.name}")
        return blueprint

    def ensure_monomer_for_polymer(self, polymer: PolymerBlueprint) -> Optional[MoleculeBlueprint]:
        if not polymer.monomer_id:
            logger.warning(f"Polymer blueprint has no monomer: {polymer.name}")
            return None
        return self.get_monomer(polymer.monomer_id)

    # =========================================================================
    # Instantiation and classification
    # =========================================================================

    def instantiate_molecule(
        self,
        fingerprint: str,
        graph: StructureGraph,
        position: Any = (0.0, 0.0),
    ) -> Optional[Molecule]:
        blueprint = self.molecules.get(fingerprint)
        if blueprint is None:
            return None
        molecule = blueprint.instantiate(graph, position)
        molecule.detect_monomer(self.monomers)
        return molecule

    def instantiate_polymer(
        self,
        fingerprint: str,
        graph: StructureGraph,
        position: Any = (0.0, 0.0),
    ) -> Optional[Polymer]:
        """
        Lay out ``min_monomers`` copies of a polymer's monomer in a row.

        Returns None when the blueprint or its monomer is unknown.
        """
        blueprint = self.polymers.get(fingerprint)
        if blueprint is None:
            return None
        monomer = self.ensure_monomer_for_polymer(blueprint)
        if monomer is None:
            return None

        origin = as_position(position)
        n = blueprint.min_monomers
        molecules = []
        for i in range(n):
            offset = np.array([(i - (n - 1) / 2.0) * POLYMER_SPACING, 0.0])
            molecules.append(self.instantiate_molecule(monomer.fingerprint, graph, origin + offset))
        return Polymer(molecules, type=blueprint.type, name=blueprint.name)

    def classify_polymer(self, polymer: Any) -> PolymerUsefulness:
        return classify_polymer(polymer, self.polymer_templates, self.monomers)

    def check_cell_viability(self, polymers: Iterable[Any]) -> CellViability:
        return check_cell_viability(list(polymers), self.polymer_templates, self.monomers)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def cleanup(self) -> CleanupReport:
        """
        Purge invalid molecule blueprints and same-formula duplicates.

        Formulas are compared after normalization. Among valid entries
        sharing a formula only the latest ``created_at`` survives; a static
        monomer entry always wins its group and is never removed. Removed
        entries are deleted from the store as well.
        """
        report = CleanupReport()
        groups: Dict[str, List[MoleculeBlueprint]] = defaultdict(list)

        for fingerprint, blueprint in list(self.molecules.items()):
            if not blueprint.static and not is_blueprint_valid(blueprint, self.elements):
                report.invalid.append(fingerprint)
                logger.info(f"Removing invalid blueprint: {blueprint.formula}")
                continue
            groups[normalize_formula(blueprint.formula)].append(blueprint)

        for formula, members in groups.items():
            if len(members) < 2:
                continue
            statics = [bp for bp in members if bp.static]
            keep = statics[0] if statics else max(members, key=lambda bp: bp.created_at)
            for blueprint in members:
                if blueprint is keep or blueprint.static:
                    continue
                report.duplicates.append(blueprint.fingerprint)
                logger.info(f"Removing duplicate blueprint: {formula}")

        for fingerprint in report.invalid + report.duplicates:
            self._discard(MOLECULES, fingerprint)
            self._unpersist(MOLECULES, fingerprint)

        if report.removed:
            logger.info(f"Cleaned up {report.removed} invalid/duplicate blueprints")
        return report

    def delete_molecule(self, fingerprint: str) -> bool:
        if self._discard(MOLECULES, fingerprint) is None:
            return False
        self._unpersist(MOLECULES, fingerprint)
        return True

    def clear(self) -> None:
        """Drop every blueprint, empty the store and reseed the static templates."""
        self.molecules.clear()
        self.polymers.clear()
        self.cells.clear()
        self._by_id.clear()
        if self.store is not None:
            try:
                for collection in COLLECTIONS:
                    self.store.clear(collection)
            except PersistenceError as e:
                self._degrade(e)
        self._seed()

    # =========================================================================
    # Export / import
    # =========================================================================

    def export_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            MOLECULES: [bp.to_record() for bp in self.molecules.values()],
            POLYMERS: [bp.to_record() for bp in self.polymers.values()],
            CELLS: [bp.to_record() for bp in self.cells.values()],
            "organisms": [],
        }

    def export(self) -> str:
        """Snapshot of all collections as a JSON string."""
        return json.dumps(self.export_snapshot(), indent=2)

    def import_snapshot(self, snapshot: Union[str, bytes, Mapping[str, Any]]) -> ImportReport:
        """
        Add the blueprints of a snapshot, skipping known fingerprints.

        Molecules that fail the valence check are counted as invalid and
        neither added nor persisted. Cells whose id is already catalogued are
        skipped, so an import never replaces an existing record.

        The whole snapshot is parsed before anything is added, so a snapshot
        that fails to parse leaves the catalogue untouched.

        Raises:
            SnapshotError: If the snapshot is not valid JSON or holds a
                malformed record.
        """
        if isinstance(snapshot, (str, bytes)):
            try:
                snapshot = json.loads(snapshot)
            except ValueError as e:
                raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
        if not isinstance(snapshot, Mapping):
            raise SnapshotError("Snapshot must be a JSON object")

        parsed: List[Tuple[str, Blueprint]] = []
        parsers = (
            (MOLECULES, MoleculeBlueprint.from_record),
            (POLYMERS, PolymerBlueprint.from_record),
            (CELLS, CellBlueprint.from_record),
        )
        for collection, parse in parsers:
            records = snapshot.get(collection) or []
            if not isinstance(records, list):
                raise SnapshotError(f"Snapshot field {collection!r} must be a list")
            for record in records:
                try:
                    parsed.append((collection, parse(record)))
                except ValidationError as e:
                    raise SnapshotError(f"Bad {collection} record in snapshot: {e}") from e

        report = ImportReport()
        for collection, blueprint in parsed:
            if collection == MOLECULES:
                if not is_blueprint_valid(blueprint, self.elements):
                    logger.debug(f"Not importing unsaturated molecule: {blueprint.formula}")
                    report.invalid += 1
                    continue
                key, known = self._molecule_key(blueprint.fingerprint, blueprint.bond_graph())
                if known:
                    report.skipped += 1
                    continue
                blueprint.fingerprint = key
            elif blueprint.fingerprint in self._collection(collection) or (
                collection == CELLS and self._has_cell_id(blueprint.id)
            ):
                report.skipped += 1
                continue
            self._add(collection, blueprint)
            self._save(collection, blueprint)
            setattr(report, collection, getattr(report, collection) + 1)

        logger.info(
            f"Imported {report.molecules} molecules, {report.polymers} polymers, "
            f"{report.cells} cells ({report.skipped} already known, {report.invalid} invalid)"
        )
        return report

    def stats(self) -> Dict[str, int]:
        return {
            MOLECULES: len(self.molecules),
            POLYMERS: len(self.polymers),
            CELLS: len(self.cells),
            "static_molecules": sum(1 for bp in self.molecules.values() if bp.static),
            "discovered_polymers": sum(1 for p in self.polymers.values() if p.discovered),
        }

    def __len__(self) -> int:
        return len(self.molecules) + len(self.polymers) + len(self.cells)
