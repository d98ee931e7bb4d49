"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. config/config.yaml  -- static indexing defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

The YAML file groups settings into sections purely for readability; the
section names are ignored and every leaf key must match a
:class:`~total_recall.config.settings.Settings` field.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from total_recall.config.settings import Settings
from total_recall.utils.errors import ConfigurationError
from total_recall.utils.logging import get_logger

logger = get_logger(__name__)


def load_settings(path: str = "config/config.yaml", validate: bool = True) -> Settings:
    """Build :class:`Settings` from YAML defaults, .env and the environment.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
              an error; the code defaults apply.
        validate: When True, raise ``ConfigurationError`` listing every
                  missing required value.

    Returns:
        The resolved, validated settings.
    """
    try:
        settings = Settings()
        yaml_values = {
            key: value
            for key, value in _flatten(_read_yaml(Path(path))).items()
            # Anything set from env or .env is already in model_fields_set.
            if key not in settings.model_fields_set
        }
        if yaml_values:
            settings = Settings(**yaml_values)
            logger.debug("yaml_config_applied", path=path, keys=sorted(yaml_values))
    except ValidationError as exc:
        invalid = [".".join(str(p) for p in err["loc"]).upper() for err in exc.errors()]
        raise ConfigurationError(
            message="Invalid configuration values: " + ", ".join(invalid),
            missing=invalid,
        ) from exc

    if validate:
        settings.validate_required()
    return settings


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _flatten(config: dict[str, Any]) -> dict[str, Any]:
    """Collapse one level of sections into a flat ``{field: value}`` dict.

    Unknown keys are dropped with a warning so a typo in the YAML does not
    silently look like a setting.
    """
    flat: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value

    known = set(Settings.model_fields)
    unknown = sorted(set(flat) - known)
    if unknown:
        logger.warning("yaml_config_unknown_keys", keys=unknown)
    return {key: value for key, value in flat.items() if key in known}
