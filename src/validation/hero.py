"""Hero section rules."""

from __future__ import annotations

from typing import Any

from folio.content.models import HeroContent
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_bilingual,
    check_text,
    clean_line,
    coerce,
    is_link,
)

HERO_LIMITS = {
    "greeting": 50,
    "name": 30,
    "title": 100,
    "subtitle": 200,
    "ctaText": 30,
    "ctaLink": 200,
}


def validate_hero(candidate: Any, options: ValidationOptions | None = None) -> ValidationResult:
    hero, shape_errors = coerce(HeroContent, candidate)
    if hero is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    greeting = check_bilingual(
        errors, "greeting", hero.greeting, label="greeting", max_length=HERO_LIMITS["greeting"]
    )
    name = check_bilingual(errors, "name", hero.name, label="name", max_length=HERO_LIMITS["name"])
    title = check_bilingual(
        errors, "title", hero.title, label="title", max_length=HERO_LIMITS["title"]
    )
    subtitle = check_bilingual(
        errors, "subtitle", hero.subtitle, label="subtitle", max_length=HERO_LIMITS["subtitle"]
    )
    cta_text = check_bilingual(
        errors, "ctaText", hero.cta_text, label="CTA text", max_length=HERO_LIMITS["ctaText"]
    )

    cta_link = clean_line(hero.cta_link)
    check_text(errors, "ctaLink", cta_link, label="CTA link", max_length=HERO_LIMITS["ctaLink"])
    if cta_link and "ctaLink" not in errors.as_dict() and not is_link(cta_link):
        errors.add("ctaLink", "CTA link must be a valid URL, relative path, or anchor link")

    return errors.result(
        HeroContent(
            greeting=greeting,
            name=name,
            title=title,
            subtitle=subtitle,
            cta_text=cta_text,
            cta_link=cta_link,
        )
    )
