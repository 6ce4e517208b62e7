"""Thread reconstruction: reply ordering and depth — pure functions, no I/O.

Parent links are free-form foreign keys filled in by client input, so
nothing here trusts the graph shape.  Every walk is guarded by a visited
set, and every input comment comes out exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from threadline.core.comments import Comment, CommentView, parse_timestamp

logger = logging.getLogger(__name__)

ROOT_NEWEST_FIRST = "newest_first"
ROOT_OLDEST_FIRST = "oldest_first"

ROOT_ORDERS: tuple[str, ...] = (ROOT_NEWEST_FIRST, ROOT_OLDEST_FIRST)

DEFAULT_INDENT_STEP_PX = 20
DEFAULT_MAX_INDENT_DEPTH = 3


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


def index_comments(comments: Iterable[Comment]) -> dict[str, Comment]:
    """Return ``{id: comment}``.  On duplicate IDs the first occurrence wins."""
    by_id: dict[str, Comment] = {}
    for comment in comments:
        by_id.setdefault(comment.id, comment)
    return by_id


def find_comment(comments: Iterable[Comment], comment_id: str | None) -> Comment | None:
    """Return the comment with *comment_id*, or ``None``."""
    wanted = (comment_id or "").strip()
    if not wanted:
        return None
    for comment in comments:
        if comment.id == wanted:
            return comment
    return None


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def order_comments(
    comments: Iterable[Comment],
    *,
    root_order: str = ROOT_NEWEST_FIRST,
) -> list[CommentView]:
    """Order a flat discussion for linear, indented rendering.

    Root comments (no parent, a self-reference, or a parent missing from
    the set) are sorted newest first; replies are sorted oldest first under
    their parent and emitted depth-first right after it.  Comments that sit
    on a parent cycle are never reached from a root: they are appended
    afterwards as extra top-level entries (depth 0), newest first, with any
    replies hanging off them nested as usual.
    """
    items = list(comments)
    if len(items) <= 1:
        return [CommentView(c, 0) for c in items]

    newest_first = root_order != ROOT_OLDEST_FIRST
    timestamps = [parse_timestamp(c.created_at) for c in items]

    # Positions, not IDs, identify nodes so duplicate IDs still come out.
    position_by_id: dict[str, int] = {}
    for pos, comment in enumerate(items):
        position_by_id.setdefault(comment.id, pos)

    parent_of: list[int | None] = []
    roots: list[int] = []
    children: dict[int, list[int]] = {}
    for pos, comment in enumerate(items):
        parent_id = comment.parent_id.strip()
        parent_pos = position_by_id.get(parent_id) if parent_id else None
        if parent_pos is None or parent_id == comment.id:
            if parent_id and parent_id != comment.id:
                logger.debug(
                    "Comment %s replies to missing %s; treating as root", comment.id, parent_id
                )
            parent_of.append(None)
            roots.append(pos)
            continue
        parent_of.append(parent_pos)
        children.setdefault(parent_pos, []).append(pos)

    roots.sort(key=lambda p: timestamps[p], reverse=newest_first)
    for group in children.values():
        group.sort(key=lambda p: timestamps[p])

    ordered: list[CommentView] = []
    visited: set[int] = set()

    def emit(start: int, skip: frozenset[int] | set[int] = frozenset()) -> None:
        stack = [(start, 0)]
        while stack:
            pos, depth = stack.pop()
            if pos in visited:
                continue
            visited.add(pos)
            ordered.append(CommentView(items[pos], depth))
            kids = [k for k in children.get(pos, ()) if k not in skip]
            for kid in reversed(kids):
                stack.append((kid, depth + 1))

    for root in roots:
        emit(root)

    if len(visited) < len(items):
        remaining = [p for p in range(len(items)) if p not in visited]
        on_cycle = _cycle_members(remaining, parent_of)
        logger.debug(
            "Breaking parent cycles: %d of %d unreached comments are on a cycle",
            len(on_cycle),
            len(remaining),
        )
        for pos in sorted(on_cycle, key=lambda p: timestamps[p], reverse=newest_first):
            emit(pos, skip=on_cycle)
        # Anything still unreached is emitted flat so the output stays complete.
        for pos in sorted(remaining, key=lambda p: timestamps[p], reverse=newest_first):
            emit(pos, skip=on_cycle)

    return ordered


def _cycle_members(positions: list[int], parent_of: list[int | None]) -> set[int]:
    """Return the positions among *positions* that lie on a parent cycle."""
    members: set[int] = set()
    settled: set[int] = set()
    for start in positions:
        path: list[int] = []
        on_path: dict[int, int] = {}
        node: int | None = start
        while node is not None and node not in settled and node not in on_path:
            on_path[node] = len(path)
            path.append(node)
            node = parent_of[node]
        if node is not None and node in on_path:
            members.update(path[on_path[node]:])
        settled.update(path)
    return members


def thread_comments(comments: Iterable[Comment]) -> list[CommentView]:
    """Chronological threading used by the task-comment panel.

    Only comments with an empty parent ID are roots.  Every level, roots
    included, reads oldest first with ties broken by ID.  Comments never
    reached from a root (orphans, self-references, cycles) are appended
    at depth 0 in input order.
    """
    items = list(comments)
    if not items:
        return []

    by_parent: dict[str, list[int]] = {}
    for pos, comment in enumerate(items):
        by_parent.setdefault(comment.parent_id.strip(), []).append(pos)
    for group in by_parent.values():
        group.sort(key=lambda p: (parse_timestamp(items[p].created_at), items[p].id))

    ordered: list[CommentView] = []
    visited_ids: set[str] = set()
    emitted: set[int] = set()
    stack = [(pos, 0) for pos in reversed(by_parent.get("", []))]
    while stack:
        pos, depth = stack.pop()
        comment = items[pos]
        if comment.id in visited_ids:
            continue
        visited_ids.add(comment.id)
        emitted.add(pos)
        ordered.append(CommentView(comment, depth))
        for kid in reversed(by_parent.get(comment.id, [])):
            stack.append((kid, depth + 1))

    for pos, comment in enumerate(items):
        if pos not in emitted:
            ordered.append(CommentView(comment, 0))
    return ordered


def nest_comments(views: Iterable[CommentView]) -> list[dict]:
    """Turn an ordered, depth-annotated sequence into nested reply trees.

    Each node is ``{"comment": CommentView, "depth": int, "replies": [...]}``.
    The input must be in the contiguous order :func:`order_comments` emits.
    """
    top_level: list[dict] = []
    stack: list[dict] = []
    for view in views:
        node = {"comment": view, "depth": view.depth, "replies": []}
        while stack and stack[-1]["depth"] >= view.depth:
            stack.pop()
        if stack:
            stack[-1]["replies"].append(node)
        else:
            top_level.append(node)
        stack.append(node)
    return top_level


# ---------------------------------------------------------------------------
# Depth
# ---------------------------------------------------------------------------


def reply_depth(comment: Comment, comments_by_id: Mapping[str, Comment]) -> int:
    """Count parent hops from *comment* up to its nearest root.

    The walk stops at an empty parent, a parent missing from the index, or
    an ID already seen on this walk.  When the walk closes a cycle, the
    first comment on the cycle counts as the root, so cycle members are at
    depth 0 and their replies count up from there.
    """
    chain = [comment.id]
    seen = {comment.id: 0}
    parent_id = comment.parent_id.strip()

    while parent_id:
        if parent_id in seen:
            return seen[parent_id]
        parent = comments_by_id.get(parent_id)
        if parent is None:
            break
        seen[parent_id] = len(chain)
        chain.append(parent_id)
        parent_id = parent.parent_id.strip()

    return len(chain) - 1


def indent_px(
    depth: int,
    *,
    max_depth: int = DEFAULT_MAX_INDENT_DEPTH,
    step_px: int = DEFAULT_INDENT_STEP_PX,
) -> int:
    """Return the left margin, in pixels, for a reply at *depth*."""
    return min(max(depth, 0), max(max_depth, 0)) * step_px
