"""Tests for the `threadline init` CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from threadline.cli.main import cli
from threadline.core.config import default_config, serialize_config


class TestInitConfig:
    """threadline init writes a valid, deterministic config.json."""

    def test_writes_default_config(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])
        assert result.exit_code == 0

        config_path = tmp_path / ".threadline" / "config.json"
        assert config_path.read_text() == serialize_config(default_config())

    def test_prints_success_message(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])
        assert "Threadline initialized in .threadline/" in result.output
        assert "Root order: newest_first" in result.output

    def test_root_order_option(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["init", "--path", str(tmp_path), "--root-order", "oldest_first"]
        )
        assert result.exit_code == 0

        config = json.loads((tmp_path / ".threadline" / "config.json").read_text())
        assert config["root_order"] == "oldest_first"

    def test_invalid_root_order_rejected(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path), "--root-order", "random"])
        assert result.exit_code != 0
        assert not (tmp_path / ".threadline").exists()

    def test_max_indent_depth_option(self, tmp_path: Path) -> None:
        runner = CliRunner()
        runner.invoke(cli, ["init", "--path", str(tmp_path), "--max-indent-depth", "5"])

        config = json.loads((tmp_path / ".threadline" / "config.json").read_text())
        assert config["display"]["max_indent_depth"] == 5
        assert config["display"]["admin_max_indent_depth"] == 6

    def test_negative_indent_depth_rejected(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path), "--max-indent-depth", "-1"])
        assert result.exit_code != 0


class TestInitIdempotency:
    def test_second_init_keeps_config(self, tmp_path: Path) -> None:
        runner = CliRunner()
        runner.invoke(cli, ["init", "--path", str(tmp_path), "--root-order", "oldest_first"])
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code == 0
        assert "already initialized" in result.output
        config = json.loads((tmp_path / ".threadline" / "config.json").read_text())
        assert config["root_order"] == "oldest_first"

    def test_existing_dir_without_config(self, tmp_path: Path) -> None:
        (tmp_path / ".threadline").mkdir()
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code == 0
        assert (tmp_path / ".threadline" / "config.json").is_file()


class TestInitErrors:
    def test_threadline_is_a_file(self, tmp_path: Path) -> None:
        (tmp_path / ".threadline").write_text("oops")
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])

        assert result.exit_code != 0
        assert "not a directory" in result.output

    def test_missing_path(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["init", "--path", str(tmp_path / "nope")])
        assert result.exit_code != 0
