"""Tests for settings and logging configuration."""

import logging
import pytest
from mathgraph.config.logging import get_logger, setup_logging
from mathgraph.config.settings import get_settings, reset_settings
from mathgraph.conversion.converter import convert
from mathgraph.ir.graph import VisualGraph


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    """Test default settings values."""
    settings = get_settings()
    assert settings.default_dialect == "PostgreSQL"
    assert settings.default_schema_name == "Untitled Schema"
    assert settings.strict_conversion is False
    assert get_settings() is settings


def test_environment_overrides(monkeypatch):
    """Test MATHGRAPH_ prefixed environment variables."""
    monkeypatch.setenv("MATHGRAPH_DEFAULT_SCHEMA_NAME", "Library")
    monkeypatch.setenv("MATHGRAPH_STRICT_CONVERSION", "true")
    reset_settings()

    graph = VisualGraph.model_validate(
        {"constraints": [{"id": "s", "kind": "subset", "predicatorIds": ["a"]}]}
    )
    with pytest.raises(ValueError):
        convert(graph)
    assert convert(graph, strict=False).name == "Library"


def test_logger_namespace():
    """Test that module loggers live under the mathgraph logger."""
    assert get_logger("mathgraph.sql.generator").name == "mathgraph.sql.generator"
    assert get_logger("scripts").name == "mathgraph.scripts"


def test_setup_logging_level():
    """Test that setup_logging replaces handlers and applies the level."""
    setup_logging(level="DEBUG")
    root = logging.getLogger("mathgraph")
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert root.propagate is False
    setup_logging()
