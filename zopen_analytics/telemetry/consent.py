"""Consent gate: is telemetry allowed for this invocation?"""
from __future__ import annotations

import json
import logging

from zopen_analytics.config import REINIT_COMMAND, Settings
from zopen_analytics.errors import ConfigCorruptError

logger = logging.getLogger(__name__)


def is_collecting(settings: Settings) -> bool:
    """Return True when usage statistics may be recorded and sent.

    config.json must exist and carry a boolean ``is_collecting_stats``;
    anything else raises ConfigCorruptError rather than guessing a default.
    Before a profile exists (no analytics ledger configured yet) consent is
    treated as granted so the bootstrap profile can be registered.
    """
    config_path = settings.config_path
    if not config_path.is_file():
        raise ConfigCorruptError(
            f"{config_path} does not exist. This should not occur",
            "Please report an issue",
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Failed to read %s: %s", config_path, e)
        raise ConfigCorruptError(
            f"{config_path} is corrupted",
            f"Please re-initialize your file system using {REINIT_COMMAND}",
        ) from e

    flag = cfg.get("is_collecting_stats") if isinstance(cfg, dict) else None
    if not isinstance(flag, bool):
        raise ConfigCorruptError(
            f"{config_path} is corrupted: is_collecting_stats is not a boolean",
            f"Please re-initialize your file system using {REINIT_COMMAND}",
        )

    if flag:
        return True
    if settings.analytics_json is None:
        logger.debug("No analytics ledger configured yet; treating as first run")
        return True
    return False
