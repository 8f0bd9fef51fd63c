"""Contact message and contact info rules."""

from __future__ import annotations

import re
from typing import Any

from folio.content.models import ContactInfo, ContactMessage
from folio.validation.common import (
    FieldErrors,
    ValidationOptions,
    ValidationResult,
    check_text,
    clean_line,
    clean_reference,
    clean_text,
    coerce,
    host_matches,
    is_email,
)

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 5000
MAX_PHONE_LENGTH = 20
MAX_PROFILE_URL_LENGTH = 255

_PHONE = re.compile(r"^\+?[0-9\s\-()]{10,}$")


def _check_email(errors: FieldErrors, value: str) -> str:
    email = clean_line(value)
    check_text(errors, "email", email, label="Email", max_length=MAX_EMAIL_LENGTH)
    if email and "email" not in errors.as_dict() and not is_email(email):
        errors.add("email", "Email must be a valid email address")
    return email


def validate_contact_message(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    message, shape_errors = coerce(ContactMessage, candidate)
    if message is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    name = clean_line(message.name)
    check_text(errors, "name", name, label="Name", max_length=MAX_NAME_LENGTH)
    email = _check_email(errors, message.email)
    body = clean_text(message.message)
    check_text(errors, "message", body, label="Message", max_length=MAX_MESSAGE_LENGTH)

    return errors.result(message.model_copy(update={"name": name, "email": email, "message": body}))


def _check_profile(errors: FieldErrors, field: str, value: str, domain: str, label: str) -> str:
    url = clean_reference(value)
    if not url:
        return url
    if len(url) > MAX_PROFILE_URL_LENGTH:
        errors.add(field, f"{label} must be {MAX_PROFILE_URL_LENGTH} characters or less")
    elif not host_matches(url, domain):
        errors.add(field, f"{label} must be a valid URL on {domain}")
    return url


def validate_contact_info(
    candidate: Any, options: ValidationOptions | None = None
) -> ValidationResult:
    info, shape_errors = coerce(ContactInfo, candidate)
    if info is None:
        return ValidationResult.failed(shape_errors)

    errors = FieldErrors(shape_errors)
    email = _check_email(errors, info.email)

    phone = clean_line(info.phone)
    if phone:
        if len(phone) > MAX_PHONE_LENGTH:
            errors.add("phone", f"Phone number must be {MAX_PHONE_LENGTH} characters or less")
        elif not _PHONE.match(phone):
            errors.add("phone", "Phone number must contain at least 10 digits")

    github = _check_profile(errors, "github", info.github, "github.com", "GitHub")
    linkedin = _check_profile(errors, "linkedin", info.linkedin, "linkedin.com", "LinkedIn")

    return errors.result(
        ContactInfo(email=email, phone=phone, github=github, linkedin=linkedin)
    )
