"""
Utilities module for Protocell.

Contains configuration management and logging setup.
"""

from protocell.utils.config import (
    CatalogueConfig,
    ClusteringConfig,
    Config,
    EngineConfig,
    ReshapeConfig,
    load_config,
    save_config,
)
from protocell.utils.logging import JSONFormatter, setup_logging

__all__ = [
    # Config
    "CatalogueConfig",
    "ClusteringConfig",
    "Config",
    "EngineConfig",
    "ReshapeConfig",
    "load_config",
    "save_config",
    # Logging
    "JSONFormatter",
    "setup_logging",
]
