"""
Configuration management for Protocell.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml

T = TypeVar("T", bound="Config")

_YAML_SUFFIXES = (".yaml", ".yml")


def _read_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix == ".json":
        with open(path) as f:
            data = json.load(f)
    elif path.suffix in _YAML_SUFFIXES:
        with open(path) as f:
            data = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")
    return data or {}


@dataclass
class Config:
    """
    Base configuration class with save/load functionality.

    Supports JSON and YAML formats.
    """

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, path: Union[str, Path]) -> None:
        """Save to a .json, .yaml or .yml file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()

        if path.suffix == ".json":
            with open(path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        elif path.suffix in _YAML_SUFFIXES:
            with open(path, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {path.suffix}")

    @classmethod
    def load(cls: Type[T], path: Union[str, Path]) -> T:
        return cls.from_dict(_read_file(Path(path)))

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create from a dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})

    def update(self, **kwargs) -> "Config":
        """Copy with some values replaced."""
        data = self.to_dict()
        data.update(kwargs)
        return self.__class__.from_dict(data)


@dataclass
class CatalogueConfig(Config):
    """Catalogue persistence and discovery settings."""

    # Directory for the JSON store; None keeps the catalogue in memory
    store_path: Optional[str] = None
    auto_register_stable: bool = True
    cleanup_on_load: bool = True


@dataclass
class ReshapeConfig(Config):
    """Stable-form reshaping settings."""

    position_threshold: float = 15.0  # Pixels
    assignment: str = "greedy"  # "greedy" or "optimal"

    def __post_init__(self):
        if self.assignment not in ("greedy", "optimal"):
            raise ValueError(f"Unknown assignment mode: {self.assignment}")
        if self.position_threshold < 0:
            raise ValueError("position_threshold must be non-negative")


@dataclass
class ClusteringConfig(Config):
    """Emergent-assembly detection settings."""

    max_distance: float = 150.0  # Adjacency radius between polymer centres


@dataclass
class EngineConfig(Config):
    """Full engine configuration."""

    name: str = "protocell"
    catalogue: CatalogueConfig = field(default_factory=CatalogueConfig)
    reshape: ReshapeConfig = field(default_factory=ReshapeConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "catalogue": self.catalogue.to_dict(),
            "reshape": self.reshape.to_dict(),
            "clustering": self.clustering.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        return cls(
            name=data.get("name", "protocell"),
            catalogue=CatalogueConfig.from_dict(data.get("catalogue", {})),
            reshape=ReshapeConfig.from_dict(data.get("reshape", {})),
            clustering=ClusteringConfig.from_dict(data.get("clustering", {})),
        )


def load_config(path: Union[str, Path]) -> Config:
    """Load configuration from file, detecting its type from the keys present."""
    data = _read_file(Path(path))

    if "catalogue" in data or "reshape" in data or "clustering" in data:
        return EngineConfig.from_dict(data)
    elif "store_path" in data or "auto_register_stable" in data:
        return CatalogueConfig.from_dict(data)
    elif "position_threshold" in data or "assignment" in data:
        return ReshapeConfig.from_dict(data)
    elif "max_distance" in data:
        return ClusteringConfig.from_dict(data)
    else:
        return Config.from_dict(data)


def save_config(config: Config, path: Union[str, Path]) -> None:
    config.save(path)
