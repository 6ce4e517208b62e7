"""Tests for core ids module -- generation and validation."""

from __future__ import annotations

from threadline.core.ids import generate_draft_id, generate_key_prefix, is_ulid, validate_id

# A valid 26-char Crockford Base32 ULID for reuse in tests.
_VALID_ULID = "01H0ABC0DEF000000000000000"  # 26 chars


class TestGeneration:
    def test_key_prefix_is_bare_ulid(self) -> None:
        assert is_ulid(generate_key_prefix())

    def test_draft_id(self) -> None:
        assert validate_id(generate_draft_id(), "draft") is True

    def test_unique(self) -> None:
        assert len({generate_key_prefix() for _ in range(50)}) == 50


class TestIsUlid:
    def test_valid(self) -> None:
        assert is_ulid(_VALID_ULID)
        assert is_ulid(_VALID_ULID.lower())

    def test_wrong_length(self) -> None:
        assert not is_ulid(_VALID_ULID[:-1])
        assert not is_ulid(_VALID_ULID + "0")

    def test_excluded_letters(self) -> None:
        for letter in "ILOU":
            assert not is_ulid(_VALID_ULID[:-1] + letter)

    def test_non_string(self) -> None:
        assert not is_ulid(None)  # type: ignore[arg-type]


class TestValidateId:
    def test_happy_path(self) -> None:
        assert validate_id(f"draft_{_VALID_ULID}", "draft") is True

    def test_wrong_prefix(self) -> None:
        assert validate_id(f"draft_{_VALID_ULID}", "key") is False

    def test_no_underscore(self) -> None:
        assert validate_id(_VALID_ULID, "draft") is False

    def test_empty_string(self) -> None:
        assert validate_id("", "draft") is False

    def test_non_string_input(self) -> None:
        assert validate_id(123, "draft") is False  # type: ignore[arg-type]

    def test_prefix_with_underscore(self) -> None:
        # Split on the first underscore only, so "my_draft" never matches.
        assert validate_id(f"my_draft_{_VALID_ULID}", "my_draft") is False
