"""Tests for argument-string helpers (utils/arguments.py)."""

from __future__ import annotations

import pytest

from ytd_audio.utils.arguments import join_arguments, quote, split_arguments


class TestQuote:
    @pytest.mark.parametrize("value", ["plain", "--flag", "https://x.y/watch?v=1"])
    def test_simple_values_untouched(self, value: str) -> None:
        assert quote(value) == value

    def test_empty_value_is_quoted(self) -> None:
        assert quote("") == '""'

    def test_spaces_are_quoted(self) -> None:
        assert quote("my file.mp3", posix=True) == '"my file.mp3"'

    def test_embedded_double_quote_escaped(self) -> None:
        assert quote('say "hi"', posix=True) == '"say \\"hi\\""'

    def test_backslashes_escaped_only_for_posix(self) -> None:
        assert quote("C:\\My Music", posix=True) == '"C:\\\\My Music"'
        assert quote("C:\\My Music", posix=False) == '"C:\\My Music"'


class TestSplitArguments:
    @pytest.mark.parametrize("arguments", [None, ""])
    def test_empty(self, arguments: str | None) -> None:
        assert split_arguments(arguments) == []

    def test_posix_round_trip(self) -> None:
        tricky = 'dir with "quotes" and \\ slash'
        assert split_arguments(f"-P {quote(tricky, posix=True)} x", posix=True) == [
            "-P", tricky, "x",
        ]

    def test_windows_paths_keep_backslashes(self) -> None:
        path = "C:\\Users\\me\\My Music"
        assert split_arguments(f"-P {quote(path, posix=False)}", posix=False) == ["-P", path]


class TestJoinArguments:
    def test_skips_empty_parts(self) -> None:
        assert join_arguments("", "-x", "", "--newline") == "-x --newline"
