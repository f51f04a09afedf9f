"""Contentful content source.

Reads every entry and asset of a space through the Content Delivery API (or
the Preview API for drafts), flattens them into CMS entries carrying a
``__metadata`` record, and resolves links between them.  The result is the
flat entry list consumed by the projector.
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

import httpx

from sitebuild.config import ContentfulSettings
from sitebuild.errors import ContentSourceError, MissingMetadataError
from sitebuild.models.entry import METADATA_KEY

logger = logging.getLogger(__name__)

SOURCE_NAME = "sourcebit-source-contentful"
ASSET_MODEL = "__asset"

_RESOURCES = ("entries", "assets")

_Index = Dict[Tuple[str, str], Dict[str, Any]]


class ContentfulSource:
    """Single-pass reader for one Contentful space and environment.

    *client* is used as-is when given, which lets callers supply a transport;
    otherwise a client is created per :meth:`fetch_entries` call.
    """

    def __init__(
        self, settings: ContentfulSettings, client: Optional[httpx.Client] = None
    ) -> None:
        settings.require_credentials()
        self.settings = settings
        self._client = client

    @property
    def base_url(self) -> str:
        s = self.settings
        return f"https://{s.host}/spaces/{s.space_id}/environments/{s.environment}"

    def fetch_entries(self) -> List[Dict[str, Any]]:
        """Return all entries and assets as normalised, link-resolved objects.

        Raises:
            ContentSourceError: on any HTTP error or malformed payload.
        """
        if self._client is not None:
            raw = {resource: self._fetch_all(self._client, resource) for resource in _RESOURCES}
        else:
            with httpx.Client(timeout=self.settings.timeout) as client:
                raw = {resource: self._fetch_all(client, resource) for resource in _RESOURCES}

        entries = _normalise_all(raw["entries"], _normalise_entry)
        assets = _normalise_all(raw["assets"], _normalise_asset)
        logger.info(
            "Fetched %d entries and %d assets from %s",
            len(entries),
            len(assets),
            self.settings.host,
        )
        return resolve_links(entries + assets, self.settings.flatten_asset_urls)

    def _fetch_all(self, client: httpx.Client, resource: str) -> List[Dict[str, Any]]:
        """Fetch every item of *resource*, following ``skip``/``limit`` pagination."""
        items: List[Dict[str, Any]] = []
        url = f"{self.base_url}/{resource}"
        headers = {"Authorization": f"Bearer {self.settings.token}"}
        skip = 0

        while True:
            try:
                resp = client.get(
                    url,
                    params={"limit": self.settings.page_size, "skip": skip, "include": 0},
                    headers=headers,
                )
                resp.raise_for_status()
                payload = resp.json()
            except httpx.HTTPStatusError as exc:
                raise ContentSourceError(
                    f"Contentful returned HTTP {exc.response.status_code} for {resource}"
                ) from exc
            except httpx.HTTPError as exc:
                raise ContentSourceError(
                    f"Error fetching {resource} from Contentful: {exc}"
                ) from exc
            except ValueError as exc:
                raise ContentSourceError(
                    f"Contentful returned invalid JSON for {resource}"
                ) from exc

            page = payload.get("items") if isinstance(payload, dict) else None
            if not isinstance(page, list):
                raise ContentSourceError(f"Contentful response for {resource} has no items")
            items.extend(page)

            total = payload.get("total", 0)
            if not isinstance(total, int) or isinstance(total, bool):
                raise ContentSourceError(
                    f"Contentful response for {resource} has no valid total"
                )
            skip += len(page)
            if not page or skip >= total:
                break

        return items


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def _metadata(item: Dict[str, Any], model_name: Optional[str]) -> Dict[str, Any]:
    sys = item.get("sys") if isinstance(item, dict) else None
    if not isinstance(sys, dict) or not sys.get("id") or not model_name:
        raise MissingMetadataError(
            f"Contentful item without id or content type: {item!r:.200}"
        )
    return {
        "id": sys["id"],
        "modelName": model_name,
        "createdAt": sys.get("createdAt"),
        "updatedAt": sys.get("updatedAt"),
        "source": SOURCE_NAME,
    }


def _normalise_all(
    items: List[Any], normalise: Callable[[Any], Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Normalise *items*, logging and skipping the ones that cannot be interpreted."""
    objects: List[Dict[str, Any]] = []
    for item in items:
        try:
            objects.append(normalise(item))
        except MissingMetadataError as exc:
            logger.warning("Skipping Contentful item: %s", exc)
    return objects


def _normalise_entry(item: Dict[str, Any]) -> Dict[str, Any]:
    try:
        model_name = item["sys"]["contentType"]["sys"]["id"]
    except (KeyError, TypeError):
        model_name = None
    metadata = _metadata(item, model_name)
    fields = item.get("fields") or {}
    if not isinstance(fields, dict):
        raise MissingMetadataError(f"Contentful entry {metadata['id']} has malformed fields")
    return {METADATA_KEY: metadata, **fields}


def _normalise_asset(item: Dict[str, Any]) -> Dict[str, Any]:
    metadata = _metadata(item, ASSET_MODEL)
    fields = dict(item.get("fields") or {})
    file_info = fields.pop("file", None) or {}
    return {
        METADATA_KEY: metadata,
        **fields,
        "url": _absolute_url(file_info.get("url", "")),
        "contentType": file_info.get("contentType"),
    }


def _absolute_url(url: str) -> str:
    """Contentful serves protocol-relative asset URLs; pin them to https."""
    return f"https:{url}" if url.startswith("//") else url


# ---------------------------------------------------------------------------
# Link resolution
# ---------------------------------------------------------------------------

def _link_target(value: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    sys = value.get("sys")
    if isinstance(sys, dict) and sys.get("type") == "Link" and set(value) == {"sys"}:
        return sys.get("linkType", ""), sys.get("id", "")
    return None


def _resolve(value: Any, index: _Index, ancestors: FrozenSet[str], flatten: bool) -> Any:
    if isinstance(value, list):
        return [_resolve(v, index, ancestors, flatten) for v in value]
    if not isinstance(value, dict):
        return value

    target_key = _link_target(value)
    if target_key is None:
        return {k: _resolve(v, index, ancestors, flatten) for k, v in value.items()}

    link_type, target_id = target_key
    target = index.get(target_key)
    # Unknown targets (unpublished, deleted) and cycles keep the raw link
    if target is None or target_id in ancestors:
        return value
    if link_type == "Asset" and flatten:
        return target["url"]
    return _resolve_object(target, index, ancestors | {target_id}, flatten)


def _resolve_object(
    obj: Dict[str, Any], index: _Index, ancestors: FrozenSet[str], flatten: bool
) -> Dict[str, Any]:
    resolved = {
        k: _resolve(v, index, ancestors, flatten) for k, v in obj.items() if k != METADATA_KEY
    }
    return {METADATA_KEY: dict(obj[METADATA_KEY]), **resolved}


def resolve_links(
    objects: List[Dict[str, Any]], flatten_asset_urls: bool = True
) -> List[Dict[str, Any]]:
    """Replace Contentful ``Link`` objects with the objects they point to.

    Links to assets become the asset's URL when *flatten_asset_urls* is set.
    A link back to an object already being resolved is left as-is.
    """
    index: _Index = {}
    for obj in objects:
        meta = obj[METADATA_KEY]
        link_type = "Asset" if meta["modelName"] == ASSET_MODEL else "Entry"
        index[(link_type, meta["id"])] = obj

    return [
        _resolve_object(obj, index, frozenset({obj[METADATA_KEY]["id"]}), flatten_asset_urls)
        for obj in objects
    ]
