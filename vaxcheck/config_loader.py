"""Configuration loading utilities for the vaccine schedule check.

Provides a centralized way to load and validate the parameters.yaml
configuration file, and to turn it into the typed settings objects the
classifiers, API client and report take as arguments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from babel import Locale, UnknownLocaleError

from .data_models import (
    DEFAULT_FAMILY_RULES,
    DEFAULT_NEEDS_ATTENTION_DAYS,
    DEFAULT_UPCOMING_DAYS,
    ClassifierConfig,
    FamilyRule,
    ReportSettings,
    ShelterluvSettings,
)
from .enums import VaccineFamily

SCRIPT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = SCRIPT_DIR.parent / "config" / "parameters.yaml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and parse the parameters.yaml configuration file.

    Automatically validates the configuration after loading.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file. If not provided, uses the default
        location (config/parameters.yaml in the project root).

    Returns
    -------
    Dict[str, Any]
        Parsed and validated YAML configuration as a nested dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the configuration file is invalid YAML.
    ValueError
        If the configuration fails validation (see validate_config).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    validate_config(config)
    return config


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration for consistency and required values.

    Raises
    ------
    ValueError
        If a value is missing, mistyped or inconsistent.

    Notes
    -----
    **Validation checks:**

    - **Due windows:** both widths are non-negative numbers and
      needs_attention_days <= upcoming_days
    - **Vaccine families:** a list of {family, keywords}; family is a core
      family, each appears once, keywords is a non-empty list of strings
    - **Shelterluv:** page_limit is a positive integer, timeout_seconds is a
      positive number, base_url is a string
    - **Report:** locale, date_format and timezone are strings; timezone
      resolves with zoneinfo and locale parses with babel
    """
    windows = config.get("due_windows", {}) or {}
    needs_attention = windows.get("needs_attention_days", DEFAULT_NEEDS_ATTENTION_DAYS)
    upcoming = windows.get("upcoming_days", DEFAULT_UPCOMING_DAYS)
    for key, value in (
        ("needs_attention_days", needs_attention),
        ("upcoming_days", upcoming),
    ):
        if not _is_number(value):
            raise ValueError(
                f"due_windows.{key} must be a number, got {type(value).__name__}"
            )
        if value < 0:
            raise ValueError(f"due_windows.{key} must be non-negative, got {value}")
    if needs_attention > upcoming:
        raise ValueError(
            "due_windows.needs_attention_days must not exceed due_windows.upcoming_days "
            f"({needs_attention} > {upcoming})"
        )

    families = config.get("vaccine_families")
    if families is not None:
        if not isinstance(families, list):
            raise ValueError(
                f"vaccine_families must be a list, got {type(families).__name__}"
            )
        seen: set[VaccineFamily] = set()
        for index, entry in enumerate(families):
            if not isinstance(entry, dict):
                raise ValueError(f"vaccine_families[{index}] must be a mapping")
            try:
                family = VaccineFamily.from_string(entry.get("family"))
            except ValueError as exc:
                raise ValueError(f"vaccine_families[{index}]: {exc}") from exc
            if family is VaccineFamily.OTHER:
                raise ValueError(
                    f"vaccine_families[{index}]: 'other' is the fallback family "
                    "and cannot have keywords"
                )
            if family in seen:
                raise ValueError(
                    f"vaccine_families[{index}]: duplicate family '{family.value}'"
                )
            seen.add(family)
            keywords = entry.get("keywords")
            if (
                not isinstance(keywords, list)
                or not keywords
                or not all(isinstance(k, str) and k.strip() for k in keywords)
            ):
                raise ValueError(
                    f"vaccine_families[{index}].keywords must be a non-empty list of strings"
                )

    shelterluv = config.get("shelterluv", {}) or {}
    page_limit = shelterluv.get("page_limit", 200)
    if not isinstance(page_limit, int) or isinstance(page_limit, bool) or page_limit <= 0:
        raise ValueError(f"shelterluv.page_limit must be a positive integer, got {page_limit}")
    timeout = shelterluv.get("timeout_seconds", 30)
    if not _is_number(timeout) or timeout <= 0:
        raise ValueError(f"shelterluv.timeout_seconds must be positive, got {timeout}")
    if not isinstance(shelterluv.get("base_url", ""), str):
        raise ValueError("shelterluv.base_url must be a string")

    report = config.get("report", {}) or {}
    for key in ("locale", "date_format", "timezone"):
        if key in report and not isinstance(report[key], str):
            raise ValueError(
                f"report.{key} must be a string, got {type(report[key]).__name__}"
            )
    if "timezone" in report:
        try:
            ZoneInfo(report["timezone"])
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise ValueError(
                f"report.timezone is not a known IANA timezone: {report['timezone']}"
            ) from exc
    if "locale" in report:
        try:
            Locale.parse(report["locale"])
        except (UnknownLocaleError, ValueError) as exc:
            raise ValueError(
                f"report.locale is not a known locale: {report['locale']}"
            ) from exc


def build_classifier_config(config: Dict[str, Any]) -> ClassifierConfig:
    """Convert a loaded configuration into a ClassifierConfig.

    Missing sections fall back to the built-in defaults. Keywords are
    lower-cased so they can be matched against lower-cased product names.
    """
    windows = config.get("due_windows", {}) or {}
    families = config.get("vaccine_families")

    if families is None:
        rules = DEFAULT_FAMILY_RULES
    else:
        built: List[FamilyRule] = [
            FamilyRule(
                family=VaccineFamily.from_string(entry["family"]),
                keywords=tuple(k.strip().lower() for k in entry["keywords"]),
            )
            for entry in families
        ]
        rules = tuple(built)

    return ClassifierConfig(
        needs_attention_days=float(
            windows.get("needs_attention_days", DEFAULT_NEEDS_ATTENTION_DAYS)
        ),
        upcoming_days=float(windows.get("upcoming_days", DEFAULT_UPCOMING_DAYS)),
        family_rules=rules,
    )


def build_shelterluv_settings(config: Dict[str, Any]) -> ShelterluvSettings:
    section = config.get("shelterluv", {}) or {}
    defaults = ShelterluvSettings()
    return ShelterluvSettings(
        base_url=section.get("base_url", defaults.base_url),
        page_limit=section.get("page_limit", defaults.page_limit),
        status_type=section.get("status_type", defaults.status_type),
        animal_type=section.get("animal_type", defaults.animal_type),
        timeout_seconds=float(section.get("timeout_seconds", defaults.timeout_seconds)),
    )


def build_report_settings(config: Dict[str, Any]) -> ReportSettings:
    section = config.get("report", {}) or {}
    defaults = ReportSettings()
    return ReportSettings(
        locale=section.get("locale", defaults.locale),
        date_format=section.get("date_format", defaults.date_format),
        timezone=section.get("timezone", defaults.timezone),
    )
