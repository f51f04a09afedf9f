from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Key under which every CMS entry carries its metadata record
METADATA_KEY = "__metadata"

CONFIG_MODEL = "Config"
THEME_STYLE_MODEL = "ThemeStyle"


class PageModel(str, Enum):
    """Model tags of the entries that become site pages."""

    PAGE = "PageLayout"
    POST_FEED = "PostFeedLayout"
    POST = "PostLayout"


class EntryMetadata(BaseModel):
    """The ``__metadata`` record attached to every CMS entry.

    Only ``id`` and ``modelName`` are required; anything else the content
    source adds (timestamps, source name, ...) is preserved as extra fields.
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    id: str = Field(min_length=1)
    model_name: str = Field(alias="modelName", min_length=1)
