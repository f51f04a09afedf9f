from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ProjectRequest(BaseModel):
    entries: List[Any] = Field(
        ...,
        max_length=5000,
        description="Flat list of CMS entries, each carrying a `__metadata` record.",
    )
    """Entries are kept as raw values so malformed ones can be skipped
    individually instead of failing request validation."""


class ProjectResponse(BaseModel):
    pages: List[Dict[str, Any]]
    props: Dict[str, Any]
