"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    """Return a temporary directory with .threadline/ already initialized."""
    from threadline.core.config import default_config, serialize_config
    from threadline.storage.fs import CONFIG_FILE, atomic_write, ensure_threadline_dir

    threadline_dir = ensure_threadline_dir(tmp_path)
    atomic_write(threadline_dir / CONFIG_FILE, serialize_config(default_config()))
    return tmp_path


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def cli_env(project_root: Path) -> dict[str, str]:
    """Return env dict with THREADLINE_ROOT pointing to project_root."""
    return {"THREADLINE_ROOT": str(project_root)}


@pytest.fixture()
def invoke(cli_runner: CliRunner, cli_env: dict[str, str]):
    """Return a helper that invokes CLI commands with the right environment.

    Usage::

        result = invoke("thread", "comments.json")
    """
    from threadline.cli.main import cli

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=cli_env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.output)
        return parsed, result.exit_code

    return _invoke_json


@pytest.fixture()
def write_discussion(tmp_path: Path):
    """Factory fixture: write a discussion export and return its path.

    Usage::

        path = write_discussion([{"id": "c1", "comment": "hi"}])
    """

    def _write(payload: object, name: str = "discussion.json") -> str:
        path = tmp_path / name
        path.write_text(json.dumps(payload))
        return str(path)

    return _write
