"""Service card rules."""

from __future__ import annotations

from typing import Any

from folio.content.models import Service
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_bilingual,
    check_text,
    clean_line,
    coerce,
    is_hex_color,
)

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 300
MAX_ICON_LENGTH = 50


def check_order(errors: FieldErrors, order: int) -> None:
    # Explicit ordering intent is never clamped.
    if order < 0:
        errors.add("order", "Order must be 0 or greater")


def check_color(errors: FieldErrors, field: str, value: str, label: str) -> str:
    color = value.strip().upper()
    if not color:
        errors.add(field, f"{label} is required")
    elif not is_hex_color(color):
        errors.add(field, f"{label} must be a valid hex color code (e.g., #FF6B6B or #FFF)")
    return color


def validate_service(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    service, shape_errors = coerce(Service, candidate)
    if service is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    title = check_bilingual(
        errors, "title", service.title, label="title", max_length=MAX_TITLE_LENGTH
    )
    description = check_bilingual(
        errors,
        "description",
        service.description,
        label="description",
        max_length=MAX_DESCRIPTION_LENGTH,
        multiline=True,
    )
    icon = clean_line(service.icon)
    check_text(errors, "icon", icon, label="Icon", max_length=MAX_ICON_LENGTH)
    color = check_color(errors, "color", service.color, "Color")
    bg_color = check_color(errors, "bgColor", service.bg_color, "Background color")
    check_order(errors, service.order)

    return errors.result(
        service.model_copy(
            update={
                "title": title,
                "description": description,
                "icon": icon,
                "color": color,
                "bg_color": bg_color,
            }
        )
    )
