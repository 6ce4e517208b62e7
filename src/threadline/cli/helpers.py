"""Shared CLI helpers and output utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import click

from threadline.core.comments import Comment, parse_discussion
from threadline.core.config import default_config, load_config, merge_config, validate_config
from threadline.storage.fs import CONFIG_FILE, THREADLINE_DIR, ThreadlineRootError, find_root


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    """Build an error object for the JSON envelope."""
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(
    *,
    data: object,
    human_message: str,
    quiet_value: str,
    is_json: bool,
    is_quiet: bool,
) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    elif is_quiet:
        click.echo(quiet_value)
    else:
        click.echo(human_message)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def load_project_config(is_json: bool = False) -> dict:
    """Load the project's config.json, or the defaults when there is no project.

    Exits with an error if THREADLINE_ROOT is invalid or the config is malformed.
    """
    try:
        root = find_root()
    except ThreadlineRootError as e:
        output_error(str(e), "NOT_INITIALIZED", is_json)
    if root is None:
        return dict(default_config())

    config_path = root / THREADLINE_DIR / CONFIG_FILE
    if not config_path.is_file():
        return dict(default_config())

    try:
        raw = load_config(config_path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        output_error(f"Cannot read {config_path}: {e}", "INVALID_CONFIG", is_json)

    errors = validate_config(raw)
    if errors:
        output_error("; ".join(errors), "INVALID_CONFIG", is_json)
    return merge_config(raw)


# ---------------------------------------------------------------------------
# Discussion input
# ---------------------------------------------------------------------------


def read_discussion_or_exit(path: str, is_json: bool) -> list[Comment]:
    """Read a discussion export (JSON) and return its comments, or exit with an error."""
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        output_error(f"Cannot read {path}: {e.strerror or e}", "READ_ERROR", is_json)

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        output_error(f"Invalid JSON in {path}: {e}", "INVALID_JSON", is_json)

    return parse_discussion(payload)
