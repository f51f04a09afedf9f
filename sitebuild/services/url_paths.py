"""URL path derivation for page entries and the CSS classes derived from it.

Every :class:`~sitebuild.models.entry.PageModel` has a *URL strategy*: a
callable receiving the entry mapping and returning its ``/``-rooted URL path.
The defaults follow the starter content schema, where pages and post feeds
are addressed by their ``slug`` field and posts live under ``/blog``.
Callers can override individual strategies without touching the others.
"""

import re
import unicodedata
from typing import Any, Callable, Dict, List, Mapping, Optional

from sitebuild.errors import MissingMetadataError
from sitebuild.models.entry import PageModel

UrlStrategy = Callable[[Mapping[str, Any]], str]

SLUG_FIELD = "slug"
POSTS_PREFIX = "/blog"

# Class emitted for the root page, which has no path segments
HOME_CSS_CLASS = "home"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalise_path(path: str) -> str:
    """Return *path* rooted at ``/`` with empty segments and trailing slash removed."""
    segments = [segment for segment in path.split("/") if segment.strip()]
    return "/" + "/".join(segment.strip() for segment in segments)


def _slug(entry: Mapping[str, Any], allow_empty: bool) -> str:
    slug = entry.get(SLUG_FIELD)
    if not isinstance(slug, str):
        raise MissingMetadataError(f"entry has no '{SLUG_FIELD}' field")
    if not allow_empty and not slug.strip("/ "):
        raise MissingMetadataError(f"entry has an empty '{SLUG_FIELD}' field")
    return slug


def page_url(entry: Mapping[str, Any]) -> str:
    """URL of a generic page or post feed: its slug as a rooted path."""
    return normalise_path(_slug(entry, allow_empty=True))


def post_url(entry: Mapping[str, Any]) -> str:
    """URL of a blog post: its slug under :data:`POSTS_PREFIX`."""
    path = normalise_path(_slug(entry, allow_empty=False))
    if path == POSTS_PREFIX or path.startswith(POSTS_PREFIX + "/"):
        return path
    return POSTS_PREFIX + path


URL_STRATEGIES: Dict[PageModel, UrlStrategy] = {
    PageModel.PAGE: page_url,
    PageModel.POST_FEED: page_url,
    PageModel.POST: post_url,
}

_unmapped = set(PageModel) - set(URL_STRATEGIES)
if _unmapped:
    raise RuntimeError(f"No URL strategy for page models: {sorted(m.value for m in _unmapped)}")


def resolve_strategies(
    overrides: Optional[Mapping[Any, UrlStrategy]] = None,
) -> Dict[PageModel, UrlStrategy]:
    """Return the default strategy table with *overrides* applied.

    Override keys may be :class:`PageModel` members or their string values.

    Raises:
        ValueError: if an override key is not a page model tag.
    """
    strategies = dict(URL_STRATEGIES)
    for key, strategy in (overrides or {}).items():
        strategies[PageModel(key)] = strategy
    return strategies


def css_classes_from_url_path(url_path: str) -> List[str]:
    """Return one sanitised class token per path segment of *url_path*.

    Tokens are lowercased ASCII with every run of other characters replaced
    by a hyphen.  The root path yields ``["home"]``.
    """
    classes: List[str] = []
    for segment in url_path.split("/"):
        token = unicodedata.normalize("NFKD", segment)
        token = token.encode("ascii", "ignore").decode("ascii")
        token = _NON_ALNUM.sub("-", token.lower()).strip("-")
        if token:
            classes.append(token)
    return classes or [HOME_CSS_CLASS]
