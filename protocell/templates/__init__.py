"""
Template module for Protocell.

Immutable, injectable registries of monomer, polymer, cell and stable-form
templates, together with the polymer classifier and the cell requirement
matcher.
"""

from protocell.templates.registry import TemplateRegistry
from protocell.templates.monomers import (
    MonomerRegistry,
    MonomerTemplate,
    PolymerizationType,
    default_monomer_registry,
)
from protocell.templates.polymers import (
    PolymerTemplate,
    PolymerType,
    check_cell_viability,
    classify_polymer,
    default_polymer_registry,
)
from protocell.templates.cells import (
    CellBlueprint,
    RequirementReport,
    RoleRequirement,
    default_cell_registry,
)
from protocell.templates.stable_forms import (
    StableForm,
    StableFormRegistry,
    default_stable_form_registry,
)

__all__ = [
    "TemplateRegistry",
    "MonomerRegistry",
    "MonomerTemplate",
    "PolymerizationType",
    "default_monomer_registry",
    "PolymerTemplate",
    "PolymerType",
    "check_cell_viability",
    "classify_polymer",
    "default_polymer_registry",
    "CellBlueprint",
    "RequirementReport",
    "RoleRequirement",
    "default_cell_registry",
    "StableForm",
    "StableFormRegistry",
    "default_stable_form_registry",
]
