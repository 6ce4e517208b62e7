"""Comment records and display helpers — pure functions, no I/O.

Comments arrive from the API as loosely shaped dicts.  ``Comment.from_dict``
is the single place that maps the wire shape onto the immutable record the
rest of the package works with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from threadline.core.attachments import Attachment

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Author kinds
# ---------------------------------------------------------------------------

AUTHOR_STAFF = "staff"
AUTHOR_CLIENT = "client"

AUTHOR_KINDS: frozenset[str] = frozenset({AUTHOR_STAFF, AUTHOR_CLIENT})


def normalize_author_kind(author_type: str | None) -> str:
    """Map a raw ``authorType`` onto one of :data:`AUTHOR_KINDS`.

    Only ``"client"`` (case-insensitive) is the counter-party; everything
    else, including a missing value, is staff.
    """
    if (author_type or "").strip().lower() == AUTHOR_CLIENT:
        return AUTHOR_CLIENT
    return AUTHOR_STAFF


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(value: object) -> float:
    """Return *value* as a POSIX timestamp for ordering.

    Accepts ISO 8601 strings (``Z`` suffix allowed) and ``datetime``
    objects.  Naive values are taken as UTC.  Anything unparseable sorts
    as the earliest possible time (``0.0``).
    """
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value or "").strip()
        if not raw:
            return 0.0
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            logger.debug("Unparseable timestamp %r sorts as earliest", value)
            return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return dt.timestamp()
    except (OverflowError, OSError, ValueError):
        return 0.0


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Comment:
    """One comment in a discussion, exactly as received.

    ``parent_id`` is a free-form foreign key: it may be empty, point at
    itself, point at a comment outside the current set, or take part in
    a cycle.  Nothing here validates it.
    """

    id: str
    body: str = ""
    parent_id: str = ""
    author_name: str = ""
    author_kind: str = AUTHOR_STAFF
    created_at: str = ""
    attachments: tuple[Attachment, ...] = ()

    # Display-only extras
    author_avatar: str = ""
    user_id: str = ""
    client_id: str = ""
    discussion_id: str = ""

    extra: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_root(self) -> bool:
        """True if the comment declares no parent (or names itself)."""
        return not self.parent_id or self.parent_id == self.id

    @property
    def is_client(self) -> bool:
        return self.author_kind == AUTHOR_CLIENT

    @property
    def created_ts(self) -> float:
        return parse_timestamp(self.created_at)

    def to_dict(self) -> dict:
        """Serialize to a dict for JSON output."""
        d: dict = {
            "id": self.id,
            "parent_id": self.parent_id or None,
            "author_name": self.author_name,
            "author_kind": self.author_kind,
            "body": self.body,
            "created_at": self.created_at,
            "attachments": [a.to_dict() for a in self.attachments],
        }
        if self.author_avatar:
            d["author_avatar"] = self.author_avatar
        if self.user_id:
            d["user_id"] = self.user_id
        if self.client_id:
            d["client_id"] = self.client_id
        if self.discussion_id:
            d["discussion_id"] = self.discussion_id
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Comment:
        """Build from an API payload (camelCase) or a ``to_dict`` result.

        Unknown keys are captured in ``extra``.
        """
        known = {
            "id", "parentCommentId", "parent_id", "authorName", "author_name",
            "authorType", "author_kind", "authorAvatar", "author_avatar",
            "comment", "body", "files", "attachments", "created", "created_at",
            "userId", "user_id", "clientId", "client_id",
            "serviceRequestId", "taskId", "discussion_id",
        }
        raw_files = _first(d, "files", "attachments")
        if not isinstance(raw_files, list):
            raw_files = []
        attachments = tuple(Attachment.from_dict(f) for f in raw_files if isinstance(f, dict))
        raw_kind = _first(d, "authorType", "author_kind")
        return cls(
            id=_text(_first(d, "id")),
            body=_text(_first(d, "comment", "body"), strip=False),
            parent_id=_text(_first(d, "parentCommentId", "parent_id")),
            author_name=_text(_first(d, "authorName", "author_name")),
            author_kind=normalize_author_kind(None if raw_kind is None else str(raw_kind)),
            created_at=_text(_first(d, "created", "created_at")),
            attachments=attachments,
            author_avatar=_text(_first(d, "authorAvatar", "author_avatar")),
            user_id=_text(_first(d, "userId", "user_id")),
            client_id=_text(_first(d, "clientId", "client_id")),
            discussion_id=_text(_first(d, "serviceRequestId", "taskId", "discussion_id")),
            extra={k: v for k, v in d.items() if k not in known},
        )


def _first(d: dict, *keys: str) -> object:
    for key in keys:
        if d.get(key) is not None:
            return d[key]
    return None


def _text(value: object, *, strip: bool = True) -> str:
    if value is None:
        return ""
    text = str(value)
    return text.strip() if strip else text


@dataclass(frozen=True)
class CommentView:
    """A comment positioned in a rendered thread.

    Attribute access falls through to the wrapped comment, so a view can
    be rendered anywhere a :class:`Comment` can.
    """

    comment: Comment
    depth: int = 0

    def __getattr__(self, name: str):
        if name == "comment":
            raise AttributeError(name)
        return getattr(self.comment, name)

    def to_dict(self) -> dict:
        d = self.comment.to_dict()
        d["depth"] = self.depth
        return d


def parse_discussion(payload: object) -> list[Comment]:
    """Extract comments from a discussion payload.

    Accepts a bare list, ``{"comments": [...]}``, or either of those wrapped
    in ``{"data": ...}``.  Non-dict entries are skipped.
    """
    if isinstance(payload, dict):
        if "data" in payload:
            return parse_discussion(payload["data"])
        payload = payload.get("comments", [])
    if not isinstance(payload, list):
        return []
    return [Comment.from_dict(item) for item in payload if isinstance(item, dict)]


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def author_initial(author_name: str | None) -> str:
    """Return the uppercased first letter of the author's first word, or ``?``."""
    normalized = (author_name or "").strip()
    if not normalized:
        return "?"
    first_word = normalized.split()[0]
    return first_word[0].upper()


def can_client_delete(comment: Comment, current_client_id: str | None) -> bool:
    """Return ``True`` if the signed-in client may delete *comment*.

    Ownership is decided by ``client_id`` when both sides have one;
    otherwise any client-authored comment counts as the client's own.
    """
    comment_client = comment.client_id.strip()
    current = (current_client_id or "").strip()
    if comment_client and current:
        return comment_client == current
    return comment.is_client


def truncate(value: str | None, max_length: int) -> str:
    """Trim *value* and shorten it to *max_length* characters with an ellipsis."""
    if not value:
        return ""
    normalized = value.strip()
    if len(normalized) <= max_length:
        return normalized
    return normalized[: max(0, max_length - 1)] + "…"
