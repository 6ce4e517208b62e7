"""Default config generation and validation."""

from __future__ import annotations

import copy
import json
from typing import TypedDict

from threadline.core.threads import (
    DEFAULT_INDENT_STEP_PX,
    DEFAULT_MAX_INDENT_DEPTH,
    ROOT_NEWEST_FIRST,
    ROOT_ORDERS,
)

VARIANT_PORTAL = "portal"
VARIANT_ADMIN = "admin"

VARIANTS: tuple[str, ...] = (VARIANT_PORTAL, VARIANT_ADMIN)


class DisplayConfig(TypedDict, total=False):
    max_indent_depth: int
    admin_max_indent_depth: int
    indent_step_px: int


class PreviewConfig(TypedDict, total=False):
    directory: str | None


class ThreadlineConfig(TypedDict, total=False):
    schema_version: int
    root_order: str
    display: DisplayConfig
    preview: PreviewConfig


def default_config() -> ThreadlineConfig:
    """Return the default Threadline configuration.

    The returned dict, when serialized with
    ``json.dumps(data, sort_keys=True, indent=2) + "\\n"``,
    produces the canonical default config.json.
    """
    return {
        "schema_version": 1,
        "root_order": ROOT_NEWEST_FIRST,
        "display": {
            "max_indent_depth": DEFAULT_MAX_INDENT_DEPTH,
            "admin_max_indent_depth": 6,
            "indent_step_px": DEFAULT_INDENT_STEP_PX,
        },
        "preview": {
            "directory": None,
        },
    }


def serialize_config(config: ThreadlineConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def load_config(raw: str) -> dict:
    """Parse a JSON config string and return the config dict.

    This is a pure function (no I/O).  The CLI layer reads the file
    and passes the raw string here.
    """
    return json.loads(raw)


def merge_config(overrides: dict) -> dict:
    """Return the defaults with *overrides* deep-merged on top."""
    merged: dict = copy.deepcopy(dict(default_config()))
    _deep_merge(merged, overrides)
    return merged


def _deep_merge(base: dict, overrides: dict) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def validate_config(config: dict) -> list[str]:
    """Return a list of problems with *config*; empty when it is valid."""
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config must be a JSON object."]

    root_order = config.get("root_order", ROOT_NEWEST_FIRST)
    if root_order not in ROOT_ORDERS:
        errors.append(
            f"Invalid root_order: '{root_order}'. Expected one of: {', '.join(ROOT_ORDERS)}."
        )

    display = config.get("display", {})
    if not isinstance(display, dict):
        errors.append("'display' must be an object.")
    else:
        for key in ("max_indent_depth", "admin_max_indent_depth", "indent_step_px"):
            if key not in display:
                continue
            value = display[key]
            # bool is an int subclass; reject it explicitly.
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(f"display.{key} must be a non-negative integer.")

    preview = config.get("preview", {})
    if not isinstance(preview, dict):
        errors.append("'preview' must be an object.")
    else:
        directory = preview.get("directory")
        if directory is not None and not isinstance(directory, str):
            errors.append("preview.directory must be a string or null.")

    return errors


def get_root_order(config: dict) -> str:
    """Return the configured root order, falling back to newest first."""
    root_order = config.get("root_order", ROOT_NEWEST_FIRST)
    return root_order if root_order in ROOT_ORDERS else ROOT_NEWEST_FIRST


def get_max_indent_depth(config: dict, variant: str = VARIANT_PORTAL) -> int:
    """Return the indentation cap for *variant* (``portal`` or ``admin``)."""
    display = config.get("display", {})
    if variant == VARIANT_ADMIN:
        return display.get("admin_max_indent_depth", 6)
    return display.get("max_indent_depth", DEFAULT_MAX_INDENT_DEPTH)


def get_indent_step(config: dict) -> int:
    """Return the per-level indentation step in pixels."""
    return config.get("display", {}).get("indent_step_px", DEFAULT_INDENT_STEP_PX)


def get_preview_directory(config: dict) -> str | None:
    """Return the configured preview directory, or ``None`` for the system temp dir."""
    return config.get("preview", {}).get("directory")
