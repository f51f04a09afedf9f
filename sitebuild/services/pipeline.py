"""Build pipeline: content source -> theme style side-channel -> projector -> cache."""

import logging
from typing import Any, Dict, List, Optional, Protocol

from sitebuild.config import BuildSettings
from sitebuild.errors import StyleFileWriteError
from sitebuild.models.site_data import BuildResult
from sitebuild.services.cache import load_cache, write_cache
from sitebuild.services.contentful import ContentfulSource
from sitebuild.services.projector import project
from sitebuild.services.theme_style import write_theme_style

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def fetch_entries(self) -> List[Dict[str, Any]]: ...


def load_objects(
    settings: BuildSettings, source: Optional[ContentSource] = None
) -> List[Dict[str, Any]]:
    """Return the CMS objects for this build.

    In offline mode the objects stored in the cache are reused; otherwise
    they are fetched from *source* (Contentful by default).

    Raises:
        CacheError: offline mode without a usable cache.
        ConfigurationError: missing Contentful credentials.
        ContentSourceError: the fetch failed.
    """
    if settings.offline:
        cache = load_cache(settings.cache_path)
        logger.info("Offline build: reusing %d cached objects", len(cache.objects))
        return cache.objects

    if source is None:
        source = ContentfulSource(settings.contentful)
    return source.fetch_entries()


def build_site(settings: BuildSettings, source: Optional[ContentSource] = None) -> BuildResult:
    """Run one build and return its summary.

    A failure to write the theme style file is recorded in the result and
    does not stop the page cache from being written.
    """
    objects = load_objects(settings, source)

    style_path = None
    style_error = None
    try:
        written = write_theme_style(objects, settings.data_dir)
        style_path = str(written) if written else None
    except StyleFileWriteError as exc:
        logger.error("Theme style step failed: %s", exc)
        style_error = str(exc)

    site_data = project(objects)
    cache_written = write_cache(settings.cache_path, objects, site_data)

    return BuildResult(
        pages=len(site_data.pages),
        objects=len(objects),
        has_site_config=site_data.props.site is not None,
        cache_written=cache_written,
        style_path=style_path,
        style_error=style_error,
    )
