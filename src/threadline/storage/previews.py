"""Transient preview handles for inline attachment payloads.

An inline ``data:`` payload cannot be opened directly by most viewers, so
it is decoded into a short-lived local file.  Whoever asks for the
preview owns that file and must release it exactly once, either by
leaving an ``open_preview`` block or by calling ``release_preview``.
Nothing here tracks handles on the caller's behalf.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from urllib.parse import unquote, urlparse

from threadline.core.attachments import is_inline_payload
from threadline.core.previews import decode_data_url, suffix_for
from threadline.storage.fs import write_temp_file

logger = logging.getLogger(__name__)

PREVIEW_PREFIX = "threadline-preview-"


class PreviewHandle:
    """An openable preview URL plus the local resource behind it, if any.

    Pass-through handles (for locators that were already openable) own no
    resource; closing them is a no-op.
    """

    def __init__(self, url: str, *, content_type: str = "", path: Path | None = None) -> None:
        self.url = url
        self.content_type = content_type
        self.path = path
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_local(self) -> bool:
        """True if the handle owns a decoded local file."""
        return self.path is not None

    def read_bytes(self) -> bytes:
        """Return the decoded payload.

        Raises ``ValueError`` on a closed or pass-through handle.
        """
        if self._closed:
            raise ValueError("Preview handle is closed.")
        if self.path is None:
            raise ValueError(f"No local payload behind {self.url!r}.")
        return self.path.read_bytes()

    def close(self) -> None:
        """Release the local resource.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self.path is not None:
            _unlink(self.path)

    def __enter__(self) -> PreviewHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<PreviewHandle {self.url!r} ({state})>"


def open_preview(locator: str, *, directory: Path | None = None) -> PreviewHandle:
    """Acquire an openable handle for *locator*.

    Inline payloads are decoded into a local file; everything else is
    passed through unchanged.  If the payload cannot be decoded or written,
    the handle falls back to the original locator.

    Usage::

        with open_preview(attachment.locator) as preview:
            viewer.show(preview.url)
    """
    if not is_inline_payload(locator):
        return PreviewHandle(locator)

    try:
        mime_type, payload = decode_data_url(locator)
        path = write_temp_file(
            payload,
            directory=directory,
            prefix=PREVIEW_PREFIX,
            suffix=suffix_for(mime_type),
        )
    except (ValueError, OSError) as e:
        logger.debug("Inline preview not decodable, using it as-is: %s", e)
        return PreviewHandle(locator)

    return PreviewHandle(path.as_uri(), content_type=mime_type, path=path)


def to_openable_url(locator: str, *, directory: Path | None = None) -> str:
    """Return a URL a viewer can open for *locator*.

    For inline payloads this creates a local file that the caller must
    later release with :func:`release_preview`.  Never raises.
    """
    return open_preview(locator, directory=directory).url


def release_preview(url: str, *, directory: Path | None = None) -> None:
    """Remove a preview file created by :func:`to_openable_url`.

    Pass the same *directory* the preview was created in.  Only files
    directly inside it (the system temp dir by default) with the preview
    prefix are removed; other URLs are ignored, as are repeat calls.
    """
    path = _owned_path(url, directory)
    if path is not None:
        _unlink(path)


def _owned_path(url: str, directory: Path | None) -> Path | None:
    if not (url or "").startswith("file:"):
        return None
    path = Path(unquote(urlparse(url).path))
    if not path.name.startswith(PREVIEW_PREFIX):
        return None
    allowed = Path(directory or tempfile.gettempdir()).resolve()
    if path.parent.resolve() != allowed:
        logger.debug("Not releasing %s: outside preview directory %s", path, allowed)
        return None
    return path


def _unlink(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove preview file %s: %s", path, e)
