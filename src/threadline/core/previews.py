"""Inline payload (``data:`` URL) encoding and decoding — pure functions, no I/O."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from urllib.parse import unquote_to_bytes

DEFAULT_MIME_TYPE = "application/octet-stream"


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Decode a ``data:`` URL into ``(mime_type, payload)``.

    ``;base64`` payloads are base64-decoded (whitespace ignored, missing
    padding tolerated, invalid characters rejected); anything else is
    percent-decoded.

    Raises ``ValueError`` if *value* is not a well-formed data URL.
    """
    text = (value or "").strip()
    if not text.startswith("data:"):
        raise ValueError("Not a data URL.")
    separator = text.find(",")
    if separator < 0:
        raise ValueError("Data URL has no payload separator.")

    header = text[len("data:"):separator]
    raw = text[separator + 1:]
    mime_type = header.split(";")[0].strip() or DEFAULT_MIME_TYPE

    if ";base64" in header.lower():
        compact = "".join(raw.split())
        if len(compact) % 4 == 1:
            raise ValueError("Invalid base64 payload length.")
        compact += "=" * (-len(compact) % 4)
        try:
            payload = base64.b64decode(compact, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    else:
        payload = unquote_to_bytes(raw)

    return mime_type, payload


def build_data_url(data: bytes, content_type: str | None = None) -> str:
    """Encode *data* as a base64 ``data:`` URL."""
    mime_type = (content_type or "").strip() or DEFAULT_MIME_TYPE
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def suffix_for(mime_type: str) -> str:
    """Return a file suffix for *mime_type* (e.g. ``.png``), or ``""``."""
    return mimetypes.guess_extension(mime_type.split(";")[0].strip().lower()) or ""
