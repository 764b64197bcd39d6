"""Site settings loading."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from app.directory.models import SiteSettings

logger = logging.getLogger(__name__)


def load_site_settings(settings_path: str | Path) -> SiteSettings:
    """
    Load site copy from a YAML file, falling back to the built-in defaults.

    Args:
        settings_path: Path to a YAML mapping of camelCase setting keys

    Raises:
        yaml.YAMLError: If the file is not valid YAML
        ValidationError: If the file holds unexpected values
    """
    path = Path(settings_path)
    if not path.exists():
        logger.debug(f"Site settings file not found, using defaults: {settings_path}")
        return SiteSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parse error in {path}: {e}")
        raise

    if not data:
        logger.warning(f"Empty site settings file: {path}")
        return SiteSettings()

    try:
        site = SiteSettings.model_validate(data)
    except ValidationError as e:
        logger.error(f"Validation error in {path}: {e}")
        raise
    logger.info(f"Site settings loaded from {path}")
    return site
