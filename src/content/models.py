"""Content domain models: pure Pydantic v2 data types.

These models describe the *shape* of every entity kind on the portfolio
site.  Content rules (lengths, formats, bilingual completeness) live in
``folio.validation`` so that every violation can be reported in one pass
instead of stopping at the first failed constraint.

Python attributes are snake_case; the persisted and exported JSON uses the
camelCase aliases the admin UI has always written.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model, field_validator
from pydantic.alias_generators import to_camel


class EntityKind(StrEnum):
    """The eight content kinds managed by the store."""

    HERO = "heroContent"
    ABOUT = "aboutContent"
    SERVICES = "services"
    PROJECTS = "projects"
    BLOG_POSTS = "blogPosts"
    CONTACT_MESSAGES = "contactMessages"
    CONTACT_INFO = "contactInfo"
    SYSTEM_SETTINGS = "systemSettings"


class BlogStatus(StrEnum):
    """Lifecycle status of a blog post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class Language(StrEnum):
    VI = "vi"
    EN = "en"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class ContentModel(BaseModel):
    """Base for every persisted entity: camelCase aliases, no unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-compatible camelCase shape used on disk."""
        return self.model_dump(mode="json", by_alias=True)


class Bilingual(ContentModel):
    """A Vietnamese/English text pair."""

    vi: str = ""
    en: str = ""

    def get(self, language: Language | str) -> str:
        """Return the text for ``language``, falling back to the other side."""
        text = self.vi if language == Language.VI else self.en
        return text or self.vi or self.en


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive timestamps (older exports, hand-edited files) are taken as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _coerce_bilingual(value: Any) -> Any:
    # Older documents stored some bilingual fields as a single string.
    if isinstance(value, str):
        return {"vi": value, "en": value}
    return value


class HeroContent(ContentModel):
    greeting: Bilingual
    name: Bilingual
    title: Bilingual
    subtitle: Bilingual
    cta_text: Bilingual
    cta_link: str

    @field_validator("greeting", "name", "title", "subtitle", "cta_text", mode="before")
    @classmethod
    def _accept_plain_text(cls, value: Any) -> Any:
        return _coerce_bilingual(value)


class AboutContent(ContentModel):
    description: Bilingual
    experience: Bilingual
    profile_image: str = ""


class Service(ContentModel):
    id: str = ""
    title: Bilingual
    description: Bilingual
    icon: str
    color: str
    bg_color: str
    order: int = 0


class Project(ContentModel):
    id: str = ""
    title: Bilingual
    description: Bilingual
    image: str
    images: list[str] = Field(default_factory=list)
    link: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    category: str
    featured: bool = False
    order: int = 0


class BlogPost(ContentModel):
    id: str = ""
    title: Bilingual
    content: Bilingual
    excerpt: Bilingual
    thumbnail: str = ""
    status: BlogStatus = BlogStatus.DRAFT
    publish_date: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("publish_date")
    @classmethod
    def _publish_date_in_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class ContactMessage(ContentModel):
    id: str = ""
    name: str
    email: str
    message: str
    timestamp: datetime
    read: bool = False

    @field_validator("timestamp")
    @classmethod
    def _timestamp_in_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ContactInfo(ContentModel):
    email: str
    phone: str = ""
    github: str = ""
    linkedin: str = ""


class SystemSettings(ContentModel):
    default_language: Language = Language.VI
    default_theme: Theme = Theme.DARK
    color_palette: list[str] = Field(default_factory=list)
    maintenance_mode: bool = False


# ── Partial (patch) models ──────────────────────────────────────

class BilingualPatch(ContentModel):
    """Either side of a bilingual pair may be patched on its own."""

    vi: Optional[str] = None
    en: Optional[str] = None


def _partial_model(model: type[ContentModel]) -> type[ContentModel]:
    """Build a patch type from ``model`` with every field optional.

    Bilingual fields accept a :class:`BilingualPatch` so that a single
    language can be edited without resending the other one.
    """
    fields: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        annotation = info.annotation
        if annotation is Bilingual:
            annotation = BilingualPatch | str
        fields[name] = (Optional[annotation], None)
    return create_model(f"{model.__name__}Patch", __base__=ContentModel, **fields)


HeroContentPatch = _partial_model(HeroContent)
AboutContentPatch = _partial_model(AboutContent)
ServicePatch = _partial_model(Service)
ProjectPatch = _partial_model(Project)
BlogPostPatch = _partial_model(BlogPost)
ContactMessagePatch = _partial_model(ContactMessage)
ContactInfoPatch = _partial_model(ContactInfo)
SystemSettingsPatch = _partial_model(SystemSettings)
