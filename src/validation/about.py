"""About section rules.

The profile image is an opaque reference produced by the upload
collaborator; only its form is checked here, never the image bytes.
"""

from __future__ import annotations

from typing import Any

from folio.content.models import AboutContent
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_bilingual,
    clean_reference,
    coerce,
    image_reference_error,
)

MAX_DESCRIPTION_LENGTH = 500
MIN_DESCRIPTION_LENGTH = 10
MAX_EXPERIENCE_LENGTH = 300
MIN_EXPERIENCE_LENGTH = 5


def validate_about(candidate: Any, options: ValidationOptions | None = None) -> ValidationResult:
    options = options or ValidationOptions()
    about, shape_errors = coerce(AboutContent, candidate)
    if about is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    description = check_bilingual(
        errors,
        "description",
        about.description,
        label="description",
        max_length=MAX_DESCRIPTION_LENGTH,
        min_length=MIN_DESCRIPTION_LENGTH,
        multiline=True,
    )
    experience = check_bilingual(
        errors,
        "experience",
        about.experience,
        label="experience",
        max_length=MAX_EXPERIENCE_LENGTH,
        min_length=MIN_EXPERIENCE_LENGTH,
        multiline=True,
    )

    profile_image = clean_reference(about.profile_image)
    if not profile_image:
        if options.require_image:
            errors.add("profileImage", "Profile image is required")
    else:
        problem = image_reference_error(profile_image, options)
        if problem:
            errors.add("profileImage", problem)

    return errors.result(
        AboutContent(description=description, experience=experience, profile_image=profile_image)
    )
