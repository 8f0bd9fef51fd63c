"""Blog post rules, including the draft/published consistency check."""

from __future__ import annotations

from typing import Any

from folio.content.models import Bilingual, BlogPost, BlogStatus
from folio.validation.common import (
    LANGUAGE_LABELS,
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_bilingual,
    clean_line,
    clean_reference,
    coerce,
    image_reference_error,
)

MAX_TITLE_LENGTH = 255
MAX_CONTENT_LENGTH = 50_000
MAX_EXCERPT_LENGTH = 500
MAX_TAG_LENGTH = 50


def _check_markdown(errors: FieldErrors, content: Bilingual) -> None:
    for language in ("vi", "en"):
        text = getattr(content, language)
        if text.count("[") != text.count("]"):
            errors.add(
                f"content.{language}",
                f"{LANGUAGE_LABELS[language]} content has unmatched square brackets "
                "in markdown links/images",
            )


def _clean_tags(errors: FieldErrors, tags: list[str]) -> list[str]:
    cleaned: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        tag = clean_line(tag)
        if not tag or tag.lower() in seen:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            errors.add("tags", f"Each tag must be {MAX_TAG_LENGTH} characters or less")
        seen.add(tag.lower())
        cleaned.append(tag)
    return cleaned


def validate_blog_post(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    options = options or ValidationOptions()
    post, shape_errors = coerce(BlogPost, candidate)
    if post is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    title = check_bilingual(errors, "title", post.title, label="title", max_length=MAX_TITLE_LENGTH)
    content = check_bilingual(
        errors,
        "content",
        post.content,
        label="content",
        max_length=MAX_CONTENT_LENGTH,
        multiline=True,
    )
    _check_markdown(errors, content)
    excerpt = check_bilingual(
        errors,
        "excerpt",
        post.excerpt,
        label="excerpt",
        max_length=MAX_EXCERPT_LENGTH,
        multiline=True,
    )

    thumbnail = clean_reference(post.thumbnail)
    if thumbnail:
        problem = image_reference_error(thumbnail, options)
        if problem:
            errors.add("thumbnail", problem)

    if not errors.broken("status"):
        if post.status == BlogStatus.PUBLISHED and post.publish_date is None:
            errors.add("publishDate", "Published posts must have a publish date")
        elif post.status == BlogStatus.DRAFT and post.publish_date is not None:
            errors.add("publishDate", "Draft posts cannot have a publish date")

    tags = _clean_tags(errors, post.tags)

    return errors.result(
        post.model_copy(
            update={
                "title": title,
                "content": content,
                "excerpt": excerpt,
                "thumbnail": thumbnail,
                "tags": tags,
            }
        )
    )
