"""
Unit tests for configuration and logging utilities.

Run with: pytest tests/test_utils.py -v
"""

import json
import logging
import sys

import pytest
import yaml

from protocell.utils import (
    CatalogueConfig,
    ClusteringConfig,
    EngineConfig,
    JSONFormatter,
    ReshapeConfig,
    load_config,
    save_config,
    setup_logging,
)


# =============================================================================
# TEST: CONFIGURATION
# =============================================================================

class TestConfig:
    """Dataclass configs with JSON/YAML persistence."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.catalogue.store_path is None
        assert config.catalogue.auto_register_stable
        assert config.reshape.position_threshold == 15.0
        assert config.reshape.assignment == "greedy"
        assert config.clustering.max_distance == 150.0

    @pytest.mark.parametrize("suffix", [".json", ".yaml", ".yml"])
    def test_engine_round_trip(self, tmp_path, suffix):
        config = EngineConfig(
            name="lab",
            catalogue=CatalogueConfig(store_path="data/catalogue", cleanup_on_load=False),
            reshape=ReshapeConfig(position_threshold=8.0, assignment="optimal"),
            clustering=ClusteringConfig(max_distance=90.0),
        )
        path = tmp_path / f"engine{suffix}"
        save_config(config, path)

        loaded = load_config(path)
        assert isinstance(loaded, EngineConfig)
        assert loaded == config

    def test_yaml_is_plain(self, tmp_path):
        path = tmp_path / "engine.yaml"
        EngineConfig().save(path)
        data = yaml.safe_load(path.read_text())
        assert data["reshape"]["assignment"] == "greedy"

    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"store_path": "x"}, CatalogueConfig),
            ({"assignment": "optimal"}, ReshapeConfig),
            ({"max_distance": 10.0}, ClusteringConfig),
            ({"clustering": {"max_distance": 10.0}}, EngineConfig),
        ],
    )
    def test_type_detection(self, tmp_path, data, expected):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data))
        assert type(load_config(path)) is expected

    def test_unknown_keys_are_ignored(self):
        config = CatalogueConfig.from_dict({"store_path": "x", "colour": "blue"})
        assert config.store_path == "x"

    def test_partial_engine_dict(self):
        config = EngineConfig.from_dict({"reshape": {"position_threshold": 3.0}})
        assert config.reshape.position_threshold == 3.0
        assert config.reshape.assignment == "greedy"
        assert config.catalogue == CatalogueConfig()

    def test_update(self):
        config = ReshapeConfig().update(assignment="optimal")
        assert config.assignment == "optimal"
        assert config.position_threshold == 15.0

    def test_invalid_reshape_settings(self):
        with pytest.raises(ValueError):
            ReshapeConfig(assignment="closest")
        with pytest.raises(ValueError):
            ReshapeConfig(position_threshold=-1.0)

    def test_file_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
        with pytest.raises(ValueError, match="Unsupported"):
            CatalogueConfig().save(tmp_path / "config.toml")

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert CatalogueConfig.load(path) == CatalogueConfig()


# =============================================================================
# TEST: LOGGING
# =============================================================================

class TestLogging:
    """Package logger setup."""

    def test_setup_replaces_handlers(self):
        logger = setup_logging(level=logging.DEBUG, logger_name="protocell.test_setup")
        setup_logging(level=logging.DEBUG, logger_name="protocell.test_setup")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG

    def test_json_output(self, capsys):
        logger = setup_logging(
            json_format=True,
            extra_fields={"run": "nightly"},
            logger_name="protocell.test_json",
        )
        logging.getLogger("protocell.test_json.child").warning("Registered 3 molecules")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "Registered 3 molecules"
        assert record["level"] == "WARNING"
        assert record["logger"] == "protocell.test_json.child"
        assert record["run"] == "nightly"
        logger.handlers.clear()

    def test_formatter_includes_exceptions(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("protocell", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]
