"""System settings rules."""

from __future__ import annotations

from typing import Any

from folio.content.models import SystemSettings
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    coerce,
    is_hex_color,
)

MIN_COLORS = 4
MAX_COLORS = 16


def validate_system_settings(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    settings, shape_errors = coerce(SystemSettings, candidate)
    if settings is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    palette = [color.strip().upper() for color in settings.color_palette]

    if len(palette) < MIN_COLORS:
        errors.add("colorPalette", f"Color palette must contain at least {MIN_COLORS} colors")
    elif len(palette) > MAX_COLORS:
        errors.add("colorPalette", f"Color palette cannot contain more than {MAX_COLORS} colors")

    for index, color in enumerate(palette):
        if not is_hex_color(color, allow_short=False):
            errors.add(
                f"colorPalette.{index}",
                f'Color "{settings.color_palette[index]}" is not a valid hex color',
            )

    if len(set(palette)) != len(palette):
        errors.add("colorPalette", "Color palette contains duplicate colors")

    return errors.result(settings.model_copy(update={"color_palette": palette}))
