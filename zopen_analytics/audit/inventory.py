"""Enumerate the active, auditable packages under the zopen install root."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from zopen_analytics.models import PackageDescriptor

logger = logging.getLogger(__name__)

ACTIVE_MARKER = ".active"
METADATA_NAME = "metadata.json"


def list_active_packages(root: Path) -> list[PackageDescriptor]:
    """Return one descriptor per active package, in name order.

    Only symlinks directly under ``root`` count. A package whose home lacks
    the active marker or a metadata.json with a release is left out of the
    audit; that is logged at INFO (visible with --verbose) and is not an error.
    """
    root = Path(root)
    try:
        names = sorted(os.listdir(root))
    except OSError as e:
        logger.warning("Cannot read install root %s: %s", root, e)
        return []

    packages: list[PackageDescriptor] = []
    for name in names:
        link = root / name
        if not link.is_symlink():
            continue

        home = link.resolve()
        if not home.is_dir():
            logger.info("Skipping %s: %s does not resolve to a package home", name, link)
            continue
        if not (home / ACTIVE_MARKER).exists():
            logger.info("Skipping %s: not active", name)
            continue

        release = read_release(home / METADATA_NAME)
        if release is None:
            logger.info("Skipping %s: no release identifier in %s", name, home / METADATA_NAME)
            continue

        packages.append(PackageDescriptor(name=name, home=home, release=release))

    logger.debug("Found %d active packages under %s", len(packages), root)
    return packages


def read_release(metadata_path: Path) -> str | None:
    """Release identifier from metadata.json (``product.release``, else ``release``)."""
    try:
        with open(metadata_path, "r", encoding="utf-8") as f:
            metadata = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Unreadable metadata %s: %s", metadata_path, e)
        return None
    if not isinstance(metadata, dict):
        return None

    product = metadata.get("product")
    release = product.get("release") if isinstance(product, dict) else None
    if release is None:
        release = metadata.get("release")
    if isinstance(release, str) and release:
        return release
    return None
