"""Shared sanitizers, format checks and the validation result type."""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from folio.content.models import Bilingual, ContentModel

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

_CONTROL_CHARS = re.compile(r"[\u0000-\u0008\u000B-\u001F\u007F-\u009F]")
_LINE_CONTROL_CHARS = re.compile(r"[\u0000-\u001F\u007F-\u009F]")
_TAG = re.compile(r"<[^>]*>")
_DANGEROUS_BLOCK = re.compile(
    r"<(script|style|iframe|object|embed|form)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_DANGEROUS_TAG = re.compile(
    r"</?(script|style|iframe|object|embed|form|input)\b[^>]*>", re.IGNORECASE
)
_EVENT_HANDLER = re.compile(r"\son\w+\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s>]+)", re.IGNORECASE)
_JS_SCHEME = re.compile(r"javascript\s*:", re.IGNORECASE)
_HEX_COLOR = re.compile(r"^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})$")
_HEX_COLOR_LONG = re.compile(r"^#[0-9A-Fa-f]{6}$")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_DATA_URL = re.compile(r"^data:([A-Za-z0-9][A-Za-z0-9/+.\-]*);base64,([A-Za-z0-9+/]+=*)$")

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)

LANGUAGE_LABELS = {"vi": "Vietnamese", "en": "English"}

# Stand-in values for required fields whose submitted value failed to coerce.
_PLACEHOLDERS: dict[Any, Any] = {
    str: "",
    Bilingual: {"vi": "", "en": ""},
    datetime: datetime(1970, 1, 1, tzinfo=UTC),
}


class ValidationOptions(BaseModel):
    """Policy knobs that change how strict a validator is."""

    require_image: bool = True
    max_image_bytes: int = 5 * 1024 * 1024
    allowed_image_types: tuple[str, ...] = ALLOWED_IMAGE_TYPES


class ValidationResult(BaseModel):
    """Outcome of a validation pass.

    Either ``valid`` with a ``sanitized`` value, or not valid with
    ``errors`` keyed by wire field name.
    """

    model_config = {"arbitrary_types_allowed": True}

    valid: bool
    sanitized: Any = None
    errors: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def ok(cls, sanitized: Any) -> ValidationResult:
        return cls(valid=True, sanitized=sanitized)

    @classmethod
    def failed(cls, errors: dict[str, str]) -> ValidationResult:
        return cls(valid=False, errors=errors)


class FieldErrors:
    """Collects the first error per field so that one pass reports everything.

    Fields named in ``shape_errors`` failed to coerce; content errors for
    them are dropped because they would describe a stand-in value.
    """

    def __init__(self, shape_errors: dict[str, str] | None = None) -> None:
        self._errors: dict[str, str] = dict(shape_errors or {})
        self._broken = {field.split(".")[0] for field in self._errors}

    def add(self, field: str, message: str) -> None:
        if self.broken(field):
            return
        self._errors.setdefault(field, message)

    def broken(self, field: str) -> bool:
        return field.split(".")[0] in self._broken

    def __bool__(self) -> bool:
        return bool(self._errors)

    def as_dict(self) -> dict[str, str]:
        return dict(self._errors)

    def result(self, sanitized: Any) -> ValidationResult:
        if self._errors:
            return ValidationResult.failed(self.as_dict())
        return ValidationResult.ok(sanitized)


# ── Sanitizers ──────────────────────────────────────────────────

def clean_line(value: str) -> str:
    """Sanitize single-line text: no markup, no control chars, single spaces."""
    previous = None
    while value != previous:
        previous = value
        value = _DANGEROUS_BLOCK.sub("", value)
        value = _TAG.sub("", value)
        value = _LINE_CONTROL_CHARS.sub("", value)
    return re.sub(r"\s+", " ", value).strip()


def clean_text(value: str) -> str:
    """Sanitize free text (markdown allowed) by removing unsafe markup only."""
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    # Removing one match can splice a new one together, so repeat until stable.
    previous = None
    while value != previous:
        previous = value
        value = _DANGEROUS_BLOCK.sub("", value)
        value = _DANGEROUS_TAG.sub("", value)
        value = _EVENT_HANDLER.sub("", value)
        value = _JS_SCHEME.sub("", value)
        value = _CONTROL_CHARS.sub("", value)
    return value.strip()


def clean_reference(value: str | None) -> str:
    """Stored references (URLs, paths, data URLs) are only trimmed."""
    return (value or "").strip()


# ── Format checks ───────────────────────────────────────────────

def is_hex_color(value: str, *, allow_short: bool = True) -> bool:
    pattern = _HEX_COLOR if allow_short else _HEX_COLOR_LONG
    return bool(pattern.match(value))


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in value


def is_link(value: str) -> bool:
    """Anchor (``#id``), site path (``/path``) or an absolute URL with a scheme."""
    if value.startswith(("#", "/")):
        return len(value) > 1
    if not _SCHEME.match(value):
        return False
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https"):
        return bool(parsed.netloc)
    return bool(value.split(":", 1)[1])


def is_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def host_matches(url: str, domain: str) -> bool:
    """True when ``url`` is an http(s) URL on ``domain`` or one of its subdomains."""
    if not is_http_url(url):
        return False
    host = (urlparse(url).hostname or "").lower()
    return host == domain or host.endswith("." + domain)


def image_reference_error(value: str, options: ValidationOptions) -> str | None:
    """Return an error message when ``value`` is not a usable image reference."""
    if value.startswith("data:"):
        match = _DATA_URL.match(value)
        if match is None:
            return "Invalid image format"
        mime, payload = match.groups()
        if mime not in options.allowed_image_types:
            return f"Image type not supported. Use: {', '.join(options.allowed_image_types)}"
        try:
            size = len(base64.b64decode(payload, validate=True))
        except binascii.Error:
            return "Invalid image format"
        if size > options.max_image_bytes:
            limit = options.max_image_bytes / (1024 * 1024)
            return f"Image size too large. Maximum size is {limit:g}MB"
        return None
    if value.startswith("/") or is_http_url(value):
        return None
    return "Image must be a valid URL, site path or data URL"


# ── Field checks ────────────────────────────────────────────────

def check_text(
    errors: FieldErrors,
    field: str,
    value: str,
    *,
    label: str,
    max_length: int,
    min_length: int = 0,
    required: bool = True,
) -> None:
    if not value:
        if required:
            errors.add(field, f"{label} is required")
        return
    if len(value) > max_length:
        errors.add(field, f"{label} must be {max_length} characters or less")
    elif len(value) < min_length:
        errors.add(field, f"{label} must be at least {min_length} characters long")


def check_bilingual(
    errors: FieldErrors,
    field: str,
    pair: Bilingual,
    *,
    label: str,
    max_length: int,
    min_length: int = 0,
    multiline: bool = False,
) -> Bilingual:
    """Sanitize and check both sides of ``pair``; return the sanitized pair."""
    clean = clean_text if multiline else clean_line
    sanitized = Bilingual(vi=clean(pair.vi), en=clean(pair.en))
    for language in ("vi", "en"):
        check_text(
            errors,
            f"{field}.{language}",
            getattr(sanitized, language),
            label=f"{LANGUAGE_LABELS[language]} {label}",
            max_length=max_length,
            min_length=min_length,
        )
    return sanitized


def _shape_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, error["msg"])
    return errors


def _placeholder(info: FieldInfo) -> Any:
    if not info.is_required():
        return info.get_default(call_default_factory=True)
    return _PLACEHOLDERS.get(info.annotation)


def _stand_in(
    model: type[ContentModel], candidate: Mapping[str, Any], errors: dict[str, str]
) -> ContentModel | None:
    """Rebuild ``candidate`` with neutral values in the broken fields.

    The other fields keep their submitted values, so their content rules can
    still run in the same pass.
    """
    fields = {info.alias or name: (name, info) for name, info in model.model_fields.items()}
    data = dict(candidate)
    for key in {field.split(".")[0] for field in errors}:
        name, info = fields.get(key, (key, None))
        data.pop(key, None)
        data.pop(name, None)
        if info is None:
            continue
        value = _placeholder(info)
        if value is None and info.is_required():
            return None
        data[key] = value
    try:
        return model.model_validate(data)
    except PydanticValidationError:
        return None


def coerce(
    model: type[ContentModel], candidate: Any
) -> tuple[ContentModel | None, dict[str, str]]:
    """Coerce ``candidate`` into ``model``, mapping shape errors to field errors.

    When some fields fail to coerce, the returned model holds neutral values
    in their place and the shape errors come back alongside it.  The model
    is None only when the candidate is unusable as a whole.
    """
    if isinstance(candidate, BaseModel):
        candidate = candidate.model_dump(by_alias=True)
    try:
        return model.model_validate(candidate), {}
    except PydanticValidationError as exc:
        errors = _shape_errors(exc)
    if not isinstance(candidate, Mapping):
        return None, errors
    return _stand_in(model, candidate, errors), errors
