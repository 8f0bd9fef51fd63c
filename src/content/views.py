"""Read-only public render surface.

``SiteView`` holds the snapshot the public site renders from.  It
subscribes to every kind and refreshes the affected part whenever the
store publishes a change, so the public pages never reload storage
themselves.  Admin live preview can overlay unsaved values per kind.
"""

from __future__ import annotations

import logging
from typing import Any

from folio.content.kinds import KINDS, spec_for
from folio.content.models import (
    Bilingual,
    BlogPost,
    BlogStatus,
    ContentModel,
    EntityKind,
    Language,
    Project,
    Service,
)
from folio.content.notifier import ChangeEvent, Subscription
from folio.content.store import ContentStore

logger = logging.getLogger(__name__)


class SiteView:
    """Public, change-following view over a :class:`ContentStore`."""

    def __init__(self, store: ContentStore) -> None:
        self._store = store
        self._snapshot: dict[EntityKind, Any] = {}
        self._preview: dict[EntityKind, Any] = {}
        self.refreshes = 0
        for kind in KINDS:
            self._load(kind)
        self._subscription: Subscription = store.notifier.subscribe(None, self._on_change)

    def close(self) -> None:
        self._subscription.unsubscribe()

    def _load(self, kind: EntityKind) -> None:
        if spec_for(kind).collection:
            self._snapshot[kind] = self._store.list(kind)
        else:
            self._snapshot[kind] = self._store.get(kind)

    def _on_change(self, event: ChangeEvent) -> None:
        self._load(event.kind)
        self.refreshes += 1
        logger.debug("Site view refreshed %s after %s", event.kind, event.operation)

    def _current(self, kind: EntityKind) -> Any:
        return self._preview.get(kind, self._snapshot[kind])

    # ── Preview ──────────────────────────────────────────────────

    def set_preview(self, kind: EntityKind | str, value: ContentModel | list[ContentModel]) -> None:
        self._preview[EntityKind(kind)] = value

    def clear_preview(self) -> None:
        self._preview.clear()

    @property
    def previewing(self) -> bool:
        return bool(self._preview)

    # ── Rendering helpers ────────────────────────────────────────

    @property
    def language(self) -> Language:
        return self._current(EntityKind.SYSTEM_SETTINGS).default_language

    @property
    def maintenance(self) -> bool:
        return self._current(EntityKind.SYSTEM_SETTINGS).maintenance_mode

    def translate(self, pair: Bilingual, language: Language | str | None = None) -> str:
        """Pick ``language`` (the site default when omitted), falling back to the other side."""
        return pair.get(language or self.language)

    def content(self, kind: EntityKind | str) -> Any:
        return self._current(EntityKind(kind))

    def published_posts(self) -> list[BlogPost]:
        """Published posts, newest first.  Hidden entirely in maintenance mode."""
        if self.maintenance:
            return []
        posts = [
            post for post in self._current(EntityKind.BLOG_POSTS)
            if post.status == BlogStatus.PUBLISHED
        ]
        return sorted(posts, key=lambda post: post.publish_date, reverse=True)

    def ordered_services(self) -> list[Service]:
        return sorted(self._current(EntityKind.SERVICES), key=lambda service: service.order)

    def ordered_projects(self) -> list[Project]:
        return sorted(self._current(EntityKind.PROJECTS), key=lambda project: project.order)

    def featured_projects(self) -> list[Project]:
        return [project for project in self.ordered_projects() if project.featured]
