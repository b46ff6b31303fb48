"""Merge a submitted document into the certsuite configuration file."""

import logging
from pathlib import Path
from typing import Any

import yaml

from certweb.forms import DEFAULT_LAYOUT, FormLayout, to_certsuite_config
from certweb.models import ConfigurationDocument

logger = logging.getLogger(__name__)


def merge_config(
    existing: dict[str, Any],
    document: ConfigurationDocument,
    layout: FormLayout = DEFAULT_LAYOUT,
) -> dict[str, Any]:
    """Overlay the document on an existing configuration.

    Keys the form does not manage are kept. Nested sections (such as
    ``connectAPIConfig``) are merged key by key.
    """
    merged = dict(existing)
    for key, value in to_certsuite_config(document, layout).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def write_certsuite_config(
    path: str | Path,
    document: ConfigurationDocument,
    layout: FormLayout = DEFAULT_LAYOUT,
) -> dict[str, Any]:
    """Update the configuration file at ``path`` and return its new content."""
    path = Path(path)
    existing: dict[str, Any] = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            existing = yaml.safe_load(f) or {}

    merged = merge_config(existing, document, layout)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(merged, f, sort_keys=False, default_flow_style=False)
    logger.info("Wrote certsuite configuration to %s", path)
    return merged
