"""Attachment commands: classify, preview, stage."""

from __future__ import annotations

from pathlib import Path

import click

from threadline.cli.helpers import load_project_config, output_error, output_result
from threadline.cli.main import cli
from threadline.core.attachments import Attachment, is_inline_payload
from threadline.core.config import get_preview_directory
from threadline.core.drafts import stage_upload
from threadline.storage.previews import open_preview


# ---------------------------------------------------------------------------
# threadline classify
# ---------------------------------------------------------------------------


@cli.command("classify")
@click.option("--content-type", default="", help="Declared MIME type.")
@click.option("--file-name", default="", help="Display file name.")
@click.option("--preview-url", default="", help="Inline preview payload or URL.")
@click.option("--storage-key", default="", help="Opaque storage key.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def classify_cmd(
    content_type: str,
    file_name: str,
    preview_url: str,
    storage_key: str,
    output_json: bool,
) -> None:
    """Print the preview kind and locator for an attachment."""
    attachment = Attachment(
        file_name=file_name.strip(),
        storage_key=storage_key.strip(),
        content_type=content_type.strip(),
        preview_url=preview_url.strip(),
    )
    kind = attachment.kind
    locator = attachment.locator
    output_result(
        data={"kind": kind, "locator": locator},
        human_message=f"{kind}\t{locator or '(no preview)'}",
        quiet_value=kind,
        is_json=output_json,
        is_quiet=False,
    )


# ---------------------------------------------------------------------------
# threadline preview
# ---------------------------------------------------------------------------


@cli.command("preview")
@click.argument("locator")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def preview_cmd(locator: str, output_json: bool) -> None:
    """Decode an inline payload to a local file and print where it went.

    The file is left in place for the caller to open; other locators are
    echoed back unchanged.
    """
    is_json = output_json
    config = load_project_config(is_json)
    directory = get_preview_directory(config)

    if directory is not None and not Path(directory).is_dir():
        output_error(f"Preview directory does not exist: {directory}", "NOT_FOUND", is_json)

    handle = open_preview(locator, directory=Path(directory) if directory else None)
    decoded = handle.is_local
    if is_inline_payload(locator) and not decoded:
        click.echo("Warning: inline payload could not be decoded.", err=True)

    output_result(
        data={
            "url": handle.url,
            "path": str(handle.path) if handle.path else None,
            "content_type": handle.content_type or None,
            "decoded": decoded,
        },
        human_message=str(handle.path) if handle.path else handle.url,
        quiet_value=handle.url,
        is_json=is_json,
        is_quiet=False,
    )


# ---------------------------------------------------------------------------
# threadline stage
# ---------------------------------------------------------------------------


@cli.command("stage")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--content-type", default=None, help="MIME type (guessed from the name if omitted).")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def stage_cmd(source: str, content_type: str | None, output_json: bool) -> None:
    """Stage a local file as a comment attachment."""
    is_json = output_json
    src_path = Path(source)
    try:
        data = src_path.read_bytes()
    except OSError as e:
        output_error(f"Cannot read {source}: {e.strerror or e}", "READ_ERROR", is_json)

    attachment = stage_upload(src_path.name, data, content_type)
    wire = attachment.to_wire()
    wire["previewUrl"] = attachment.preview_url
    output_result(
        data=wire,
        human_message=(
            f"Staged {attachment.file_name} as {attachment.storage_key} "
            f"({attachment.content_type or 'unknown type'}, {attachment.kind})"
        ),
        quiet_value=attachment.storage_key,
        is_json=is_json,
        is_quiet=False,
    )
