"""Discussion display commands: thread, depth."""

from __future__ import annotations

import click

from threadline.cli.helpers import (
    json_envelope,
    load_project_config,
    output_error,
    output_result,
    read_discussion_or_exit,
)
from threadline.cli.main import cli
from threadline.core.comments import CommentView
from threadline.core.config import (
    VARIANT_ADMIN,
    VARIANT_PORTAL,
    VARIANTS,
    get_indent_step,
    get_max_indent_depth,
    get_root_order,
)
from threadline.core.threads import (
    index_comments,
    indent_px,
    order_comments,
    reply_depth,
    thread_comments,
)


# ---------------------------------------------------------------------------
# threadline thread
# ---------------------------------------------------------------------------


@cli.command("thread")
@click.argument("discussion_file", type=click.Path(dir_okay=False))
@click.option(
    "--variant",
    type=click.Choice(VARIANTS),
    default=VARIANT_PORTAL,
    show_default=True,
    help="portal: newest threads first; admin: fully chronological.",
)
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.option("--quiet", is_flag=True, help="Print one comment ID per line.")
def thread_cmd(discussion_file: str, variant: str, output_json: bool, quiet: bool) -> None:
    """Display a discussion export as an indented reply thread."""
    is_json = output_json
    config = load_project_config(is_json)
    comments = read_discussion_or_exit(discussion_file, is_json)

    if variant == VARIANT_ADMIN:
        views = thread_comments(comments)
    else:
        views = order_comments(comments, root_order=get_root_order(config))

    max_depth = get_max_indent_depth(config, variant)
    step = get_indent_step(config)

    if is_json:
        data = []
        for view in views:
            item = view.to_dict()
            item["indent_px"] = indent_px(view.depth, max_depth=max_depth, step_px=step)
            for entry, attachment in zip(item["attachments"], view.attachments):
                entry["kind"] = attachment.kind
                entry["locator"] = attachment.locator
            data.append(item)
        click.echo(json_envelope(True, data=data))
        return

    if quiet:
        for view in views:
            click.echo(view.id)
        return

    if not views:
        click.echo("No comments.")
        return

    for i, view in enumerate(views):
        if i:
            click.echo("")
        _print_view(view, level=min(view.depth, max_depth))


def _print_view(view: CommentView, level: int) -> None:
    """Render a single comment, indented two spaces per reply level."""
    prefix = "  " * level
    author = view.author_name or "?"
    created_at = view.created_at or "?"

    badges = ""
    if view.is_client:
        badges += " [client]"
    if view.depth > level:
        badges += f" [depth {view.depth}]"

    click.echo(f"{prefix}[{view.id}] {author} ({created_at}){badges}")
    for line in view.body.splitlines():
        click.echo(f"{prefix}  {line}")
    for attachment in view.attachments:
        locator = attachment.locator or "(no preview)"
        click.echo(f"{prefix}  + {attachment.display_name} [{attachment.kind}] {locator}")


# ---------------------------------------------------------------------------
# threadline depth
# ---------------------------------------------------------------------------


@cli.command("depth")
@click.argument("discussion_file", type=click.Path(dir_okay=False))
@click.argument("comment_id")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def depth_cmd(discussion_file: str, comment_id: str, output_json: bool) -> None:
    """Print the reply depth of one comment."""
    is_json = output_json
    config = load_project_config(is_json)
    comments = read_discussion_or_exit(discussion_file, is_json)

    by_id = index_comments(comments)
    comment = by_id.get(comment_id.strip())
    if comment is None:
        output_error(f"Comment {comment_id} not found.", "NOT_FOUND", is_json)

    depth = reply_depth(comment, by_id)
    margin = indent_px(
        depth,
        max_depth=get_max_indent_depth(config),
        step_px=get_indent_step(config),
    )
    output_result(
        data={"id": comment.id, "depth": depth, "indent_px": margin},
        human_message=f"{comment.id}: depth {depth} ({margin}px)",
        quiet_value=str(depth),
        is_json=is_json,
        is_quiet=False,
    )
