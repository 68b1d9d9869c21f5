"""YAML loader for the config subsystem.

The whole service is configured from one YAML file whose top-level keys map
onto the sections of :class:`~pcr_history.config.models.AppConfig`. Sections
may be omitted; pydantic fills in the defaults.
"""
from __future__ import annotations

from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError as PydanticValidationError

from pcr_history.core.errors import ConfigurationError

from .models import AppConfig

_DEFAULT_CONFIG_PATH = Path("config") / "pcr.yml"


def _read_yaml(path: Path) -> Mapping:
    """Read a YAML file and return a mapping (empty dict if file is blank)."""

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"YAML root must be a mapping in {path}")
    return data


def load_app_config(path: Path | str = _DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load ``pcr.yml`` (storage, market, aggregation, sentiment, telemetry).

    Raises :class:`ConfigurationError` for a missing file, broken YAML or a
    schema violation; the pydantic error is chained as the cause.
    """

    data = _read_yaml(Path(path))
    try:
        return AppConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid config in {path}: {exc}") from exc
