"""Reply drafts: normalization, validation, and staging of local uploads.

A draft is owned by the composer until it is submitted or cancelled.
Unlike the render path, these functions do raise ``ValueError`` so the
composer can tell the user what is wrong before anything is sent.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from threadline.core.attachments import (
    KIND_OPAQUE,
    Attachment,
    classify,
    generate_storage_key,
    guess_content_type,
    normalize_file_name_for_key,
)
from threadline.core.comments import Comment
from threadline.core.ids import generate_draft_id, validate_id
from threadline.core.previews import build_data_url
from threadline.core.threads import find_comment


@dataclass(frozen=True)
class CommentDraft:
    """A reply being composed, before it becomes a :class:`Comment`."""

    body: str = ""
    parent_id: str = ""
    attachments: tuple[Attachment, ...] = ()
    draft_id: str = field(default_factory=generate_draft_id)

    @property
    def is_reply(self) -> bool:
        return bool(self.parent_id.strip())


# ---------------------------------------------------------------------------
# Normalization & validation
# ---------------------------------------------------------------------------


def normalize_attachments(attachments: Iterable[Attachment]) -> tuple[Attachment, ...]:
    """Trim every field and drop attachments with neither a name nor a key."""
    normalized = []
    for a in attachments:
        trimmed = Attachment(
            file_name=a.file_name.strip(),
            storage_key=a.storage_key.strip(),
            content_type=a.content_type.strip(),
            preview_url=a.preview_url.strip(),
            id=a.id.strip(),
            notes=a.notes.strip(),
        )
        if trimmed.file_name or trimmed.storage_key:
            normalized.append(trimmed)
    return tuple(normalized)


def normalize_draft(draft: CommentDraft) -> CommentDraft:
    """Return *draft* with its body, parent ID, and attachments trimmed."""
    return replace(
        draft,
        body=draft.body.strip(),
        parent_id=draft.parent_id.strip(),
        attachments=normalize_attachments(draft.attachments),
    )


def validate_comment_body(body: str) -> str:
    """Validate and normalize a comment body.

    Strips whitespace and rejects empty/whitespace-only bodies.
    Returns the stripped body on success.
    Raises ``ValueError`` if the body is empty or whitespace-only.
    """
    if not isinstance(body, str) or not body.strip():
        raise ValueError("Comment body must be a non-empty string.")
    return body.strip()


def validate_draft(draft: CommentDraft) -> CommentDraft:
    """Normalize *draft* and check that it can be sent.

    Every comment needs a message, even when files are attached.
    Raises ``ValueError`` on an empty body or a malformed draft ID.
    """
    if not validate_id(draft.draft_id, "draft"):
        raise ValueError(f"Invalid draft ID: {draft.draft_id!r}")
    normalized = normalize_draft(draft)
    validate_comment_body(normalized.body)
    return normalized


def validate_reply_target(comments: Iterable[Comment], parent_id: str | None) -> Comment | None:
    """Resolve the comment a draft replies to.

    Returns ``None`` for a top-level draft and the parent comment for a
    reply.  Replies to replies are allowed.
    Raises ``ValueError`` if *parent_id* is set but not in the discussion.
    """
    wanted = (parent_id or "").strip()
    if not wanted:
        return None
    parent = find_comment(comments, wanted)
    if parent is None:
        raise ValueError(f"Comment {wanted} not found.")
    return parent


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


def stage_upload(file_name: str, data: bytes, content_type: str | None = None) -> Attachment:
    """Turn a locally picked file into a staged attachment.

    The attachment gets a freshly generated storage key.  Images and
    documents also get an inline preview so they can be viewed before
    upload; opaque files get none.
    """
    name = (file_name or "").strip()
    resolved_type = (content_type or "").strip() or guess_content_type(name)
    preview_url = ""
    if classify(resolved_type, name, "", "") != KIND_OPAQUE:
        preview_url = build_data_url(data, resolved_type)
    return Attachment(
        file_name=name,
        storage_key=generate_storage_key(name),
        content_type=resolved_type,
        preview_url=preview_url,
    )


def finalize_attachment(attachment: Attachment) -> Attachment:
    """Pick the storage key that is sent on submit.

    Preference: the inline preview, then the existing key, then a fresh
    key derived from the file name.
    """
    key = (
        attachment.preview_url.strip()
        or attachment.storage_key.strip()
        or generate_storage_key(normalize_file_name_for_key(attachment.file_name))
    )
    return replace(attachment, storage_key=key)


def draft_to_payload(draft: CommentDraft) -> dict:
    """Serialize a validated draft to the API's submission shape."""
    normalized = normalize_draft(draft)
    return {
        "parentCommentId": normalized.parent_id,
        "comment": normalized.body,
        "files": [a.to_wire() for a in normalized.attachments],
    }
