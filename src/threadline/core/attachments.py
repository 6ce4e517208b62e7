"""Attachment classification and locator resolution — pure functions, no I/O."""

from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass

from threadline.core.ids import generate_key_prefix

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Preview kinds
# ---------------------------------------------------------------------------

KIND_IMAGE = "image"
KIND_DOCUMENT = "pdf"
KIND_OPAQUE = "other"

PREVIEW_KINDS: frozenset[str] = frozenset({KIND_IMAGE, KIND_DOCUMENT, KIND_OPAQUE})

_IMAGE_NAME_RE = re.compile(r"\.(png|jpe?g|gif|webp|bmp|svg)$")
_IMAGE_SOURCE_RE = re.compile(r"\.(png|jpe?g|gif|webp|bmp|svg)(\?|#|$)")
_PDF_SOURCE_RE = re.compile(r"\.pdf(\?|#|$)")

_INLINE_PREFIXES = ("data:", "blob:")
_ABSOLUTE_URL_PREFIXES = ("http://", "https://")
_RELATIVE_PATH_PREFIXES = ("./", "../")


@dataclass(frozen=True)
class Attachment:
    """A file reference attached to a comment.

    Producers disagree on which fields they fill in: staged uploads carry a
    ``preview_url``, stored comments carry a ``storage_key``, and legacy
    records may have neither a content type nor a useful file name.
    """

    file_name: str = ""
    storage_key: str = ""
    content_type: str = ""
    preview_url: str = ""
    id: str = ""
    notes: str = ""

    @property
    def kind(self) -> str:
        return classify(self.content_type, self.file_name, self.preview_url, self.storage_key)

    @property
    def locator(self) -> str:
        return resolve_locator(self.preview_url, self.storage_key)

    @property
    def display_name(self) -> str:
        """Name shown next to the file affordance."""
        return self.file_name or self.storage_key or "file"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "storage_key": self.storage_key,
            "content_type": self.content_type,
            "preview_url": self.preview_url,
            "notes": self.notes,
        }

    def to_wire(self) -> dict:
        """Serialize to the API's camelCase request shape."""
        return {
            "fileName": self.file_name,
            "fileKey": self.storage_key,
            "contentType": self.content_type,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Attachment:
        """Build from an API payload (camelCase) or a ``to_dict`` result."""
        return cls(
            file_name=_field(d, "fileName", "file_name"),
            storage_key=_field(d, "fileKey", "storage_key"),
            content_type=_field(d, "contentType", "content_type"),
            preview_url=_field(d, "previewUrl", "preview_url"),
            id=_field(d, "id"),
            notes=_field(d, "notes"),
        )


def _field(d: dict, *keys: str) -> str:
    """Return the first present key of *d* as a trimmed string."""
    for key in keys:
        value = d.get(key)
        if value is not None:
            return str(value).strip()
    return ""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def content_kind(content_type: str | None) -> str:
    """Classify by declared MIME type alone."""
    normalized = (content_type or "").strip().lower()
    if normalized.startswith("image/"):
        return KIND_IMAGE
    if normalized == "application/pdf" or "pdf" in normalized:
        return KIND_DOCUMENT
    return KIND_OPAQUE


def classify(
    content_type: str | None,
    file_name: str | None,
    preview_url: str | None,
    storage_key: str | None,
) -> str:
    """Return the preview kind for an attachment.

    Checks run in order and the first match wins: declared content type,
    then the file name's extension, then the locator text (inline payload
    header or a URL/path extension). Anything unmatched is opaque.
    """
    by_content_type = content_kind(content_type)
    if by_content_type != KIND_OPAQUE:
        return by_content_type

    normalized_name = (file_name or "").strip().lower()
    if _IMAGE_NAME_RE.search(normalized_name):
        return KIND_IMAGE
    if normalized_name.endswith(".pdf"):
        return KIND_DOCUMENT

    source = f"{preview_url or ''} {storage_key or ''}".strip().lower()
    if source.startswith("data:application/pdf"):
        return KIND_DOCUMENT
    if source.startswith("data:image/"):
        return KIND_IMAGE
    if _IMAGE_SOURCE_RE.search(source):
        return KIND_IMAGE
    if _PDF_SOURCE_RE.search(source):
        return KIND_DOCUMENT

    return KIND_OPAQUE


# ---------------------------------------------------------------------------
# Locators
# ---------------------------------------------------------------------------


def is_inline_payload(value: str | None) -> bool:
    """Return ``True`` if *value* is a ``data:`` URL."""
    return (value or "").strip().startswith("data:")


def resolve_locator(preview_url: str | None, storage_key: str | None) -> str:
    """Return a dereferenceable locator for an attachment, or ``""``.

    A preview URL always wins. A storage key is used verbatim when it is
    already an inline payload, an absolute URL, or an absolute/explicitly
    relative path. A bare key that looks like a path becomes root-relative.
    Anything else has no safe locator.
    """
    normalized_preview = (preview_url or "").strip()
    if normalized_preview:
        return normalized_preview

    key = (storage_key or "").strip()
    if key.startswith(_INLINE_PREFIXES) or key.startswith(_ABSOLUTE_URL_PREFIXES):
        return key
    if key.startswith("/") or key.startswith(_RELATIVE_PATH_PREFIXES):
        return key
    if "/" in key and not any(ch.isspace() for ch in key):
        return "/" + key.lstrip("/")

    if key:
        logger.debug("No locator derivable from storage key %r", key)
    return ""


# ---------------------------------------------------------------------------
# Storage keys
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")
_KEY_UNSAFE_RE = re.compile(r"[^a-z0-9._-]")


def normalize_file_name_for_key(file_name: str | None) -> str:
    """Lowercase *file_name* and reduce it to ``[a-z0-9._-]``.

    Whitespace runs become a single hyphen; other characters are dropped.
    """
    normalized = (file_name or "").strip().lower()
    normalized = _WHITESPACE_RE.sub("-", normalized)
    return _KEY_UNSAFE_RE.sub("", normalized)


def generate_storage_key(file_name: str | None) -> str:
    """Generate a unique storage key, suffixed with the normalized file name.

    Examples::

        >>> generate_storage_key("Q3 Report.pdf")  # doctest: +SKIP
        '01J9Z3K8R5V2F7X1B4N6M0C8QW-q3-report.pdf'
    """
    normalized = normalize_file_name_for_key(file_name)
    prefix = generate_key_prefix()
    return f"{prefix}-{normalized}" if normalized else prefix


def guess_content_type(file_name: str | None) -> str:
    """Guess a MIME type from *file_name*; ``""`` when unknown."""
    guessed, _ = mimetypes.guess_type((file_name or "").strip())
    return guessed or ""
