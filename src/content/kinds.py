"""Registry describing how each entity kind is stored and shaped."""

from __future__ import annotations

from dataclasses import dataclass

from folio.content.models import (
    AboutContent,
    AboutContentPatch,
    BlogPost,
    BlogPostPatch,
    ContactInfo,
    ContactInfoPatch,
    ContactMessage,
    ContactMessagePatch,
    ContentModel,
    EntityKind,
    HeroContent,
    HeroContentPatch,
    Project,
    ProjectPatch,
    Service,
    ServicePatch,
    SystemSettings,
    SystemSettingsPatch,
)

BACKUP_MARKER = "_backup_"


@dataclass(frozen=True)
class KindSpec:
    """Static facts about one entity kind."""

    kind: EntityKind
    storage_key: str
    model: type[ContentModel]
    patch_model: type[ContentModel]
    collection: bool = False
    ordered: bool = False


KINDS: dict[EntityKind, KindSpec] = {
    spec.kind: spec
    for spec in (
        KindSpec(EntityKind.HERO, "admin_hero_content", HeroContent, HeroContentPatch),
        KindSpec(EntityKind.ABOUT, "admin_about_content", AboutContent, AboutContentPatch),
        KindSpec(
            EntityKind.SERVICES,
            "admin_services",
            Service,
            ServicePatch,
            collection=True,
            ordered=True,
        ),
        KindSpec(
            EntityKind.PROJECTS,
            "admin_projects",
            Project,
            ProjectPatch,
            collection=True,
            ordered=True,
        ),
        KindSpec(
            EntityKind.BLOG_POSTS, "admin_blog_posts", BlogPost, BlogPostPatch, collection=True
        ),
        KindSpec(
            EntityKind.CONTACT_MESSAGES,
            "admin_contact_messages",
            ContactMessage,
            ContactMessagePatch,
            collection=True,
        ),
        KindSpec(EntityKind.CONTACT_INFO, "admin_contact_info", ContactInfo, ContactInfoPatch),
        KindSpec(
            EntityKind.SYSTEM_SETTINGS,
            "admin_system_settings",
            SystemSettings,
            SystemSettingsPatch,
        ),
    )
}

_BY_STORAGE_KEY = {spec.storage_key: spec.kind for spec in KINDS.values()}


def spec_for(kind: EntityKind | str) -> KindSpec:
    """Return the spec for ``kind``; raises ValueError for unknown kinds."""
    return KINDS[EntityKind(kind)]


def kind_for_key(key: str) -> EntityKind | None:
    """Map a storage key back to its kind; backup keys and strangers map to None."""
    return _BY_STORAGE_KEY.get(key)


def is_backup_key(key: str) -> bool:
    return BACKUP_MARKER in key
