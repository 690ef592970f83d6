"""
Assembly module for Protocell.

Polymer instances, stable-form reshaping and detection of emergent
assemblies from spatially clustered polymers.
"""

from protocell.assembly.polymer import Polymer, detect_polymer_type
from protocell.assembly.reshaping import ReshapePlan, StableFormReshaper, apply_reshape
from protocell.assembly.clustering import (
    AssemblyDetector,
    AssemblyInstance,
    can_form_assembly,
    categorize,
    detect_assemblies,
    find_assembly_groups,
)

__all__ = [
    "Polymer",
    "detect_polymer_type",
    "ReshapePlan",
    "StableFormReshaper",
    "apply_reshape",
    "AssemblyDetector",
    "AssemblyInstance",
    "can_form_assembly",
    "categorize",
    "detect_assemblies",
    "find_assembly_groups",
]
