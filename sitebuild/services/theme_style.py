"""Side-channel writer for the theme style entry.

The styling build step reads ``style.json`` directly from disk, outside the
page/props cache, so the first ``ThemeStyle`` entry is serialized on its own.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from sitebuild.errors import MissingMetadataError, StyleFileWriteError
from sitebuild.models.entry import THEME_STYLE_MODEL
from sitebuild.services.projector import read_metadata

logger = logging.getLogger(__name__)

STYLE_FILENAME = "style.json"


def find_theme_style(entries: Iterable[Any]) -> Optional[Any]:
    """Return the first ``ThemeStyle`` entry, ignoring entries without metadata."""
    for entry in entries:
        try:
            metadata = read_metadata(entry)
        except MissingMetadataError:
            continue
        if metadata.model_name == THEME_STYLE_MODEL:
            return entry
    return None


def write_theme_style(entries: Iterable[Any], data_dir: Path) -> Optional[Path]:
    """Write the first ``ThemeStyle`` entry to ``<data_dir>/style.json``.

    Returns the written path, or *None* when *entries* hold no theme style.

    Raises:
        StyleFileWriteError: if the directory or file cannot be written.
    """
    style = find_theme_style(entries)
    if style is None:
        logger.info("No %s entry found; %s not written", THEME_STYLE_MODEL, STYLE_FILENAME)
        return None

    target = Path(data_dir) / STYLE_FILENAME
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(style, indent=4, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise StyleFileWriteError(f"Cannot write {target}: {exc}") from exc

    logger.info("Wrote theme style to %s", target)
    return target
