import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from sitebuild.config import BuildSettings, get_settings
from sitebuild.errors import CacheError
from sitebuild.models.entry import METADATA_KEY
from sitebuild.models.site_data import CacheFile, SiteProps
from sitebuild.services.cache import load_cache
from sitebuild.services.url_paths import normalise_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _load(settings: BuildSettings) -> CacheFile:
    """Load the cache and propagate errors as HTTP exceptions."""
    try:
        return load_cache(settings.cache_path)
    except CacheError as exc:
        logger.warning("Site data unavailable: %s", exc)
        raise HTTPException(
            status_code=503,
            detail=f"Site data is not available ({exc}). Run `sitebuild build` first.",
        )


@router.get("/props", response_model=SiteProps, summary="Props shared by every page")
def read_props(settings: BuildSettings = Depends(get_settings)) -> SiteProps:
    return _load(settings).props


@router.get("/pages", response_model=List[Dict[str, Any]], summary="All page records")
def read_pages(settings: BuildSettings = Depends(get_settings)) -> List[Dict[str, Any]]:
    return _load(settings).pages


@router.get(
    "/pages/by-path",
    response_model=Dict[str, Any],
    summary="Look up one page by its URL path",
)
def read_page(
    url_path: str = Query(..., description="Page URL path, e.g. `/blog/my-post`."),
    settings: BuildSettings = Depends(get_settings),
) -> Dict[str, Any]:
    """Return the page whose ``urlPath`` matches *url_path* (trailing slash ignored)."""
    wanted = normalise_path(url_path)
    for page in _load(settings).pages:
        if page.get(METADATA_KEY, {}).get("urlPath") == wanted:
            return page
    raise HTTPException(status_code=404, detail=f"No page at {wanted}.")
