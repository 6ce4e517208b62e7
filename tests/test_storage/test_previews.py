"""Tests for threadline.storage.previews — transient preview handles."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from threadline.storage.previews import (
    PREVIEW_PREFIX,
    PreviewHandle,
    open_preview,
    release_preview,
    to_openable_url,
)

PNG_URL = "data:image/png;base64,iVBORw0KGgo="
PNG_BYTES = b"\x89PNG\r\n\x1a\n"


class TestOpenPreview:
    def test_decodes_inline_payload(self, tmp_path: Path) -> None:
        with open_preview(PNG_URL, directory=tmp_path) as handle:
            assert handle.is_local
            assert handle.content_type == "image/png"
            assert handle.path.name.startswith(PREVIEW_PREFIX)
            assert handle.path.suffix == ".png"
            assert handle.url == handle.path.as_uri()
            assert handle.read_bytes() == PNG_BYTES
        assert handle.closed
        assert not handle.path.exists()

    def test_released_on_error(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            with open_preview(PNG_URL, directory=tmp_path) as handle:
                raise RuntimeError("viewer crashed")
        assert handle.closed
        assert list(tmp_path.iterdir()) == []

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        handle = open_preview(PNG_URL, directory=tmp_path)
        handle.close()
        handle.close()
        assert handle.closed

    def test_read_after_close_raises(self, tmp_path: Path) -> None:
        handle = open_preview(PNG_URL, directory=tmp_path)
        handle.close()
        with pytest.raises(ValueError, match="closed"):
            handle.read_bytes()

    @pytest.mark.parametrize(
        "locator",
        ["https://cdn.example.com/a.png", "/uploads/a.png", "blob:https://app/1", ""],
    )
    def test_non_inline_passes_through(self, locator: str, tmp_path: Path) -> None:
        with open_preview(locator, directory=tmp_path) as handle:
            assert handle.url == locator
            assert not handle.is_local
            with pytest.raises(ValueError):
                handle.read_bytes()
        assert list(tmp_path.iterdir()) == []

    def test_undecodable_payload_falls_back(self, tmp_path: Path) -> None:
        broken = "data:image/png;base64,@@@"
        handle = open_preview(broken, directory=tmp_path)
        assert handle.url == broken
        assert not handle.is_local

    def test_write_failure_falls_back(self, tmp_path: Path) -> None:
        handle = open_preview(PNG_URL, directory=tmp_path / "missing")
        assert handle.url == PNG_URL

    def test_repr(self, tmp_path: Path) -> None:
        handle = PreviewHandle("https://x")
        assert "open" in repr(handle)
        handle.close()
        assert "closed" in repr(handle)


class TestToOpenableUrl:
    def test_inline_becomes_file_url(self, tmp_path: Path) -> None:
        url = to_openable_url(PNG_URL, directory=tmp_path)
        assert url.startswith("file:")
        files = list(tmp_path.iterdir())
        assert len(files) == 1
        assert files[0].read_bytes() == PNG_BYTES

        release_preview(url, directory=tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_other_locators_unchanged(self) -> None:
        assert to_openable_url("/uploads/x") == "/uploads/x"

    def test_never_raises(self, tmp_path: Path) -> None:
        assert to_openable_url("data:text/plain;base64,%%%", directory=tmp_path) == (
            "data:text/plain;base64,%%%"
        )

    def test_directory_with_spaces(self, tmp_path: Path) -> None:
        spaced = tmp_path / "with space"
        spaced.mkdir()
        url = to_openable_url("data:text/plain,hi", directory=spaced)
        assert len(list(spaced.iterdir())) == 1
        release_preview(url, directory=spaced)
        assert list(spaced.iterdir()) == []


class TestReleasePreview:
    def test_ignores_foreign_urls(self, tmp_path: Path) -> None:
        other = tmp_path / "keep.txt"
        other.write_text("x")
        release_preview(other.as_uri(), directory=tmp_path)
        release_preview("https://cdn.example.com/x.png")
        release_preview("")
        assert other.exists()

    def test_release_twice(self, tmp_path: Path) -> None:
        url = to_openable_url(PNG_URL, directory=tmp_path)
        release_preview(url, directory=tmp_path)
        release_preview(url, directory=tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_unlink_error_is_logged(self, tmp_path: Path, caplog) -> None:
        url = to_openable_url(PNG_URL, directory=tmp_path)
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            release_preview(url, directory=tmp_path)
        assert "Could not remove preview file" in caplog.text
        release_preview(url, directory=tmp_path)

    def test_prefixed_file_outside_directory_kept(self, tmp_path: Path) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        previews = tmp_path / "previews"
        previews.mkdir()
        victim = elsewhere / f"{PREVIEW_PREFIX}important.txt"
        victim.write_text("keep me")

        release_preview(victim.as_uri(), directory=previews)
        release_preview(victim.as_uri())
        assert victim.exists()

    def test_wrong_directory_keeps_preview(self, tmp_path: Path) -> None:
        url = to_openable_url(PNG_URL, directory=tmp_path)
        other = tmp_path / "other"
        other.mkdir()

        release_preview(url, directory=other)
        assert len([p for p in tmp_path.iterdir() if p.is_file()]) == 1
        release_preview(url, directory=tmp_path)
        assert [p for p in tmp_path.iterdir() if p.is_file()] == []

    def test_default_directory_is_system_temp(self) -> None:
        url = to_openable_url(PNG_URL)
        path = Path(url.removeprefix("file://"))
        assert path.exists()
        release_preview(url)
        assert not path.exists()
