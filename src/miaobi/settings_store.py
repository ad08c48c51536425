"""Local persistence of provider settings."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from miaobi.config import AISettings, get_settings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "ai_settings"


def _store_path(path: Optional[Path]) -> Path:
    return path or get_settings().settings_path


def load_ai_settings(
    path: Optional[Path] = None,
    defaults: Optional[AISettings] = None,
) -> AISettings:
    """Load persisted provider settings.

    The stored value is untrusted: a missing file, unreadable JSON or a
    value that does not validate as AISettings all yield the defaults.

    Args:
        path: Settings file (default from configuration)
        defaults: Value returned when nothing usable is stored
    """
    store = _store_path(path)
    fallback = defaults or get_settings().default_ai_settings()

    if not store.exists():
        return fallback

    try:
        raw = json.loads(store.read_text(encoding="utf-8"))
        return AISettings.model_validate(raw[SETTINGS_KEY])
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
        logger.warning("Ignoring unusable settings in %s: %s", store, e)
        return fallback


def save_ai_settings(settings: AISettings, path: Optional[Path] = None) -> Path:
    """Persist provider settings, keeping other entries in the file."""
    store = _store_path(path)

    data: dict = {}
    if store.exists():
        try:
            existing = json.loads(store.read_text(encoding="utf-8"))
            if isinstance(existing, dict):
                data = existing
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Overwriting unreadable settings file %s: %s", store, e)

    data[SETTINGS_KEY] = settings.model_dump(mode="json")
    store.parent.mkdir(parents=True, exist_ok=True)
    store.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.debug("Saved provider settings to %s", store)
    return store
