"""
Settings loader — reads .plopctl.yml into a typed settings model.

Settings are optional: a project without ``.plopctl.yml`` runs on
defaults.  Values are resolved in precedence order:

    CLI flag  >  PLOPCTL_* env var  >  .plopctl.yml  >  default
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = ".plopctl.yml"

ENV_NODE = "PLOPCTL_NODE"
ENV_TIMEOUT = "PLOPCTL_TIMEOUT"


class ConfigError(Exception):
    """Raised when the settings file is invalid or unreadable."""


class PlopSettings(BaseModel):
    """Runtime settings for engine invocation."""

    node: str | None = None
    timeout_s: int = Field(default=120, ge=1, le=3600)
    poll_interval_s: float = Field(default=5.0, gt=0)


def load_settings(
    root: Path | None = None,
    *,
    node: str | None = None,
    env: dict[str, str] | None = None,
) -> PlopSettings:
    """Load settings for a project root.

    Args:
        root: Project root holding ``.plopctl.yml`` (default: cwd).
        node: Explicit interpreter path (CLI flag), overrides everything.
        env: Environment mapping (default: ``os.environ``).

    Returns:
        Validated PlopSettings.

    Raises:
        ConfigError: If the file exists but is not valid.
    """
    env = os.environ if env is None else env
    path = (root or Path.cwd()) / SETTINGS_FILE
    data: dict = {}

    if path.is_file():
        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {path}, got {type(loaded).__name__}"
            )

        # The YAML may nest everything under a "plopctl" key or be flat
        data = loaded.get("plopctl", loaded) if "plopctl" in loaded else loaded
        if not isinstance(data, dict):
            raise ConfigError(f"Expected 'plopctl' to be a mapping in {path}")

    data = dict(data)
    if env.get(ENV_NODE):
        data["node"] = env[ENV_NODE]
    if env.get(ENV_TIMEOUT):
        data["timeout_s"] = env[ENV_TIMEOUT]
    if node:
        data["node"] = node

    try:
        settings = PlopSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid plopctl settings: {e}") from e

    logger.debug("Settings resolved: %s", settings.model_dump())
    return settings
