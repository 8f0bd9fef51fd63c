"""Portfolio project rules."""

from __future__ import annotations

from typing import Any

from folio.content.models import Project
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_bilingual,
    check_text,
    clean_line,
    clean_reference,
    coerce,
    is_http_url,
)
from folio.validation.service import check_order

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 50
MAX_TECHNOLOGY_LENGTH = 50


def _check_technologies(errors: FieldErrors, technologies: list[str]) -> list[str]:
    cleaned = [clean_line(tech) for tech in technologies]
    if not cleaned:
        errors.add("technologies", "At least one technology is required")
        return cleaned
    for index, tech in enumerate(cleaned):
        if not tech:
            errors.add(f"technologies.{index}", "Technology cannot be empty")
        elif len(tech) > MAX_TECHNOLOGY_LENGTH:
            errors.add(
                f"technologies.{index}",
                f"Technology must be {MAX_TECHNOLOGY_LENGTH} characters or less",
            )
    lowered = [tech.lower() for tech in cleaned]
    if len(set(lowered)) != len(lowered):
        errors.add("technologies", "Technologies must not contain duplicates")
    return cleaned


def validate_project(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    project, shape_errors = coerce(Project, candidate)
    if project is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    title = check_bilingual(
        errors, "title", project.title, label="title", max_length=MAX_TITLE_LENGTH
    )
    description = check_bilingual(
        errors,
        "description",
        project.description,
        label="description",
        max_length=MAX_DESCRIPTION_LENGTH,
        multiline=True,
    )

    image = clean_reference(project.image)
    if not image:
        errors.add("image", "Main image is required")

    images = [clean_reference(ref) for ref in project.images]
    for index, ref in enumerate(images):
        if not ref:
            errors.add(f"images.{index}", "Gallery image reference cannot be empty")

    link = clean_reference(project.link) or None
    if link is not None and not is_http_url(link):
        errors.add("link", "Link must be a valid URL")

    technologies = _check_technologies(errors, project.technologies)
    category = clean_line(project.category)
    check_text(errors, "category", category, label="Category", max_length=MAX_CATEGORY_LENGTH)
    check_order(errors, project.order)

    return errors.result(
        project.model_copy(
            update={
                "title": title,
                "description": description,
                "image": image,
                "images": images,
                "link": link,
                "technologies": technologies,
                "category": category,
            }
        )
    )
