"""Content projector: reshapes a flat list of CMS entries into site data.

The projector is a pure function of its input.  It never mutates the entries
it receives, and malformed entries are skipped with a warning so the build
still produces every page it can interpret.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from sitebuild.errors import MissingMetadataError
from sitebuild.models.entry import CONFIG_MODEL, METADATA_KEY, EntryMetadata, PageModel
from sitebuild.models.site_data import SiteData, SiteProps
from sitebuild.services.url_paths import (
    UrlStrategy,
    css_classes_from_url_path,
    resolve_strategies,
)

logger = logging.getLogger(__name__)

_PAGE_MODELS = {model.value for model in PageModel}


def read_metadata(entry: Any) -> EntryMetadata:
    """Return the validated ``__metadata`` record of *entry*.

    Raises:
        MissingMetadataError: if *entry* is not a mapping or its metadata
            lacks a non-empty ``id`` or ``modelName``.
    """
    if not isinstance(entry, Mapping):
        raise MissingMetadataError(f"entry is a {type(entry).__name__}, not a mapping")
    raw = entry.get(METADATA_KEY)
    if not isinstance(raw, Mapping):
        raise MissingMetadataError(f"entry has no '{METADATA_KEY}' record")
    try:
        return EntryMetadata.model_validate(dict(raw))
    except ValidationError as exc:
        entry_id = raw.get("id") if isinstance(raw.get("id"), str) else ""
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        raise MissingMetadataError(f"invalid metadata ({fields})", entry_id=entry_id) from exc


_Valid = List[Tuple[EntryMetadata, Mapping[str, Any]]]


def _valid_entries(entries: Iterable[Any]) -> _Valid:
    """Pair each entry with its metadata, logging and skipping malformed entries."""
    valid: _Valid = []
    for index, entry in enumerate(entries):
        try:
            valid.append((read_metadata(entry), entry))
        except MissingMetadataError as exc:
            logger.warning("Skipping entry #%d: %s", index, exc)
    return valid


def _find_config(valid: _Valid) -> Optional[Dict[str, Any]]:
    for metadata, entry in valid:
        if metadata.model_name == CONFIG_MODEL:
            return copy.deepcopy(dict(entry))
    logger.warning("No %s entry found; pages will render without site config", CONFIG_MODEL)
    return None


def _to_page(
    metadata: EntryMetadata,
    entry: Mapping[str, Any],
    strategy: UrlStrategy,
) -> Dict[str, Any]:
    url_path = strategy(entry)
    if not isinstance(url_path, str) or not url_path.startswith("/"):
        raise MissingMetadataError(
            f"URL strategy returned {url_path!r}, expected a '/'-rooted path",
            entry_id=metadata.id,
        )
    rest = {key: copy.deepcopy(value) for key, value in entry.items() if key != METADATA_KEY}
    return {
        METADATA_KEY: {
            **copy.deepcopy(dict(entry[METADATA_KEY])),
            "modelName": metadata.model_name,
            "urlPath": url_path,
            "pageCssClasses": css_classes_from_url_path(url_path),
        },
        **rest,
    }


def _build_pages(
    valid: _Valid,
    strategies: Optional[Mapping[Any, UrlStrategy]],
) -> List[Dict[str, Any]]:
    table = resolve_strategies(strategies)
    pages: List[Dict[str, Any]] = []
    for metadata, entry in valid:
        if metadata.model_name not in _PAGE_MODELS:
            continue
        try:
            pages.append(_to_page(metadata, entry, table[PageModel(metadata.model_name)]))
        except Exception as exc:
            # URL strategies are pluggable; any failure skips only this entry
            logger.warning("Skipping %s entry %s: %s", metadata.model_name, metadata.id, exc)
    return pages


def select_site_config(entries: Iterable[Any]) -> Optional[Dict[str, Any]]:
    """Return a copy of the first ``Config`` entry, or *None* when there is none."""
    return _find_config(_valid_entries(entries))


def select_pages(
    entries: Iterable[Any],
    strategies: Optional[Mapping[Any, UrlStrategy]] = None,
) -> List[Dict[str, Any]]:
    """Return page records for every page-model entry, in input order.

    Each record is a copy of the entry whose ``__metadata`` gains ``urlPath``
    and ``pageCssClasses``.  *strategies* overrides the URL rule of
    individual page models.
    """
    return _build_pages(_valid_entries(entries), strategies)


def project(
    entries: Iterable[Any],
    strategies: Optional[Mapping[Any, UrlStrategy]] = None,
) -> SiteData:
    """Project *entries* into the ``{pages, props}`` consumed by the site build."""
    snapshot = list(entries)
    valid = _valid_entries(snapshot)
    pages = _build_pages(valid, strategies)
    site = _find_config(valid)
    logger.info("Projected %d pages from %d entries", len(pages), len(snapshot))
    return SiteData(pages=pages, props=SiteProps(site=site))
