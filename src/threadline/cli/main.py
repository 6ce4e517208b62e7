"""CLI entry point and commands."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from threadline.core.config import default_config, serialize_config, validate_config
from threadline.core.threads import ROOT_ORDERS
from threadline.storage.fs import CONFIG_FILE, THREADLINE_DIR, atomic_write, ensure_threadline_dir

_LOG_FORMAT = "%(levelname)s: %(message)s"


@click.group()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Log recoveries from malformed data to stderr (-v info, -vv debug).",
)
def cli(verbose: int) -> None:
    """Threadline: threaded-discussion ordering and attachment previews."""
    if verbose:
        level = logging.DEBUG if verbose > 1 else logging.INFO
        logging.basicConfig(level=level, format=_LOG_FORMAT)


@cli.command()
@click.option(
    "--path",
    "target_path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Directory to initialize Threadline in (defaults to current directory).",
)
@click.option(
    "--root-order",
    type=click.Choice(ROOT_ORDERS),
    default=None,
    help="Order of top-level comments (default: newest_first).",
)
@click.option(
    "--max-indent-depth",
    type=click.IntRange(min=0),
    default=None,
    help="Deepest reply level that still gets extra indentation.",
)
def init(target_path: str, root_order: str | None, max_indent_depth: int | None) -> None:
    """Write a default .threadline/config.json."""
    root = Path(target_path)
    threadline_dir = root / THREADLINE_DIR
    config_path = threadline_dir / CONFIG_FILE

    # Idempotency: an existing config is never overwritten
    if config_path.is_file():
        click.echo(f"Threadline already initialized in {THREADLINE_DIR}/")
        return

    if threadline_dir.exists() and not threadline_dir.is_dir():
        raise click.ClickException(
            f"Cannot initialize: '{THREADLINE_DIR}' exists but is not a directory. "
            "Remove it and try again."
        )

    config: dict = dict(default_config())
    if root_order:
        config["root_order"] = root_order
    if max_indent_depth is not None:
        config["display"]["max_indent_depth"] = max_indent_depth

    errors = validate_config(config)
    if errors:
        raise click.ClickException("; ".join(errors))

    try:
        ensure_threadline_dir(root)
        atomic_write(config_path, serialize_config(config))
    except PermissionError:
        raise click.ClickException(f"Permission denied: cannot create {THREADLINE_DIR}/ in {root}")
    except OSError as e:
        raise click.ClickException(f"Failed to initialize Threadline: {e}")

    click.echo(f"Threadline initialized in {THREADLINE_DIR}/")
    click.echo(f"Root order: {config['root_order']}")


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from threadline.cli import thread_cmds as _thread_cmds  # noqa: E402, F401
from threadline.cli import attachment_cmds as _attachment_cmds  # noqa: E402, F401

if __name__ == "__main__":
    cli()
