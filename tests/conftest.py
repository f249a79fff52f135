"""Shared pytest fixtures for unit, integration, and e2e tests.

This module provides:
- A fixed reference instant so due-window math is deterministic
- Classifier, report and API settings matching the shipped defaults
- Temporary directory and config file fixtures for file I/O testing
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

from vaxcheck import data_models
from vaxcheck.enums import VaccineFamily

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Provide the reference instant used for classification.

    Real-world significance:
    - A run captures "now" once and classifies every record against it
    - A fixed instant keeps day offsets exact in assertions
    """
    return NOW


@pytest.fixture
def classifier_config() -> data_models.ClassifierConfig:
    """Provide the default 14/30-day windows and family keyword rules."""
    return data_models.ClassifierConfig()


@pytest.fixture
def report_settings() -> data_models.ReportSettings:
    """Provide US date rendering in UTC so rendered dates match fixture dates."""
    return data_models.ReportSettings(locale="en_US", date_format="M/d/yyyy", timezone="UTC")


@pytest.fixture
def tmp_test_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after each test.

    Yields
    ------
    Path
        Absolute path to temporary directory (automatically deleted after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def default_config() -> Dict[str, Any]:
    """Provide a complete configuration dict mirroring config/parameters.yaml.

    Real-world significance:
    - Tests can assume this config structure is valid
    - Matches the production config schema
    """
    return {
        "due_windows": {
            "needs_attention_days": 14,
            "upcoming_days": 30,
        },
        "vaccine_families": [
            {
                "family": rule.family.value,
                "keywords": list(rule.keywords),
            }
            for rule in data_models.DEFAULT_FAMILY_RULES
        ],
        "shelterluv": {
            "base_url": "https://shelterluv.test/api/v1",
            "page_limit": 2,
            "status_type": "in custody",
            "animal_type": "Dog",
            "timeout_seconds": 5,
        },
        "report": {
            "locale": "en_US",
            "date_format": "M/d/yyyy",
            "timezone": "UTC",
        },
    }


@pytest.fixture
def config_file(tmp_test_dir: Path, default_config: Dict[str, Any]) -> Path:
    """Create a temporary parameters.yaml with the default configuration.

    Returns
    -------
    Path
        Path to created YAML config file
    """
    config_path = tmp_test_dir / "parameters.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(default_config, f)
    return config_path


@pytest.fixture
def core_families() -> tuple[VaccineFamily, ...]:
    return VaccineFamily.core()
