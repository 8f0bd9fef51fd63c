"""Pure validation and sanitization for every entity kind.

``validate`` never touches storage, so it is safe to call speculatively
(live preview) as well as on the write path.
"""

from collections.abc import Callable
from typing import Any

from folio.content.models import EntityKind
from folio.validation.about import validate_about
from folio.validation.blog import validate_blog_post
from folio.validation.common import ValidationOptions, ValidationResult
from folio.validation.contact import validate_contact_info, validate_contact_message
from folio.validation.hero import validate_hero
from folio.validation.project import validate_project
from folio.validation.service import validate_service
from folio.validation.settings import validate_system_settings

Validator = Callable[[Any, ValidationOptions | None], ValidationResult]

VALIDATORS: dict[EntityKind, Validator] = {
    EntityKind.HERO: validate_hero,
    EntityKind.ABOUT: validate_about,
    EntityKind.SERVICES: validate_service,
    EntityKind.PROJECTS: validate_project,
    EntityKind.BLOG_POSTS: validate_blog_post,
    EntityKind.CONTACT_MESSAGES: validate_contact_message,
    EntityKind.CONTACT_INFO: validate_contact_info,
    EntityKind.SYSTEM_SETTINGS: validate_system_settings,
}


def validate(
    kind: EntityKind | str, candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    """Validate one entity value (a single item for collection kinds)."""
    return VALIDATORS[EntityKind(kind)](candidate, options)


__all__ = [
    "VALIDATORS",
    "ValidationOptions",
    "ValidationResult",
    "validate",
]
