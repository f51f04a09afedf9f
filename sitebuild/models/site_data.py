from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SiteProps(BaseModel):
    """Props merged into every page by the static-site generator."""

    site: Optional[Dict[str, Any]] = None


class SiteData(BaseModel):
    pages: List[Dict[str, Any]]
    props: SiteProps = Field(default_factory=SiteProps)


class CacheFile(BaseModel):
    """On-disk cache artifact: raw objects plus their projection."""

    digest: str
    objects: List[Dict[str, Any]]
    pages: List[Dict[str, Any]]
    props: SiteProps


class BuildResult(BaseModel):
    """Summary of one build invocation, used for logging and the CLI exit code."""

    pages: int
    objects: int
    has_site_config: bool
    cache_written: bool
    style_path: Optional[str] = None
    style_error: Optional[str] = None
