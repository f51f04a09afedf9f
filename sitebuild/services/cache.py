"""Cache artifact for the static-site build.

The cache holds the raw CMS objects alongside their projection so the site
build can start without the CMS, and so an offline rebuild can re-project
the objects without fetching them again.  Serialization is deterministic:
the same objects always produce the same bytes.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from sitebuild.errors import CacheError
from sitebuild.models.site_data import CacheFile, SiteData

logger = logging.getLogger(__name__)


def content_digest(objects: List[Dict[str, Any]]) -> str:
    """Return the SHA-256 hex digest of the canonical JSON form of *objects*."""
    canonical = json.dumps(objects, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def serialize_cache(objects: List[Dict[str, Any]], site_data: SiteData) -> str:
    cache = CacheFile(
        digest=content_digest(objects),
        objects=objects,
        pages=site_data.pages,
        props=site_data.props,
    )
    return json.dumps(cache.model_dump(), indent=2, ensure_ascii=False) + "\n"


def write_cache(path: Path, objects: List[Dict[str, Any]], site_data: SiteData) -> bool:
    """Write the cache file, returning *False* when it is already up to date.

    Raises:
        CacheError: if the file cannot be written.
    """
    path = Path(path)
    text = serialize_cache(objects, site_data)
    try:
        if path.is_file() and path.read_text(encoding="utf-8") == text:
            logger.info("Cache %s is unchanged", path)
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise CacheError(f"Cannot write cache {path}: {exc}") from exc

    logger.info("Wrote cache %s (%d pages)", path, len(site_data.pages))
    return True


def load_cache(path: Path) -> CacheFile:
    """Read and validate the cache file at *path*.

    Raises:
        CacheError: if the file is missing, not JSON, or not a cache file.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CacheError(f"Cache {path} does not exist") from exc
    except (OSError, ValueError) as exc:
        raise CacheError(f"Cannot read cache {path}: {exc}") from exc

    try:
        return CacheFile.model_validate(raw)
    except ValidationError as exc:
        raise CacheError(f"Cache {path} is malformed: {exc}") from exc
