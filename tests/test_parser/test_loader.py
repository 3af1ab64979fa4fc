"""Tests for restify.parser.loader."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from restify.exceptions import SourceLoadError
from restify.exit_codes import EXIT_SOURCE_ERROR
from restify.parser.loader import STDIN_UNIT, load_source

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


class TestLoadFromFile:
    """Test loading source text from disk."""

    def test_loads_fixture(self) -> None:
        path = str(FIXTURES_DIR / "users.rest")
        text, unit = load_source(path)
        assert unit == path
        assert "[pub Users:" in text

    def test_any_extension_is_accepted(self, tmp_path: Path) -> None:
        source = tmp_path / "api.txt"
        source.write_text('[A: { GET "/a" => {} }]', encoding="utf-8")
        text, _ = load_source(str(source))
        assert text.startswith("[A:")

    def test_missing_file(self, tmp_path: Path) -> None:
        missing = tmp_path / "nope.rest"
        with pytest.raises(SourceLoadError, match="Source file not found") as exc_info:
            load_source(str(missing))
        assert exc_info.value.exit_code == EXIT_SOURCE_ERROR

    def test_directory_is_not_a_source(self, tmp_path: Path) -> None:
        with pytest.raises(SourceLoadError, match="Source file not found"):
            load_source(str(tmp_path))

    def test_whitespace_only_file(self, tmp_path: Path) -> None:
        source = tmp_path / "blank.rest"
        source.write_text("  \n\t\n", encoding="utf-8")
        with pytest.raises(SourceLoadError, match="Source file is empty"):
            load_source(str(source))

    def test_undecodable_file(self, tmp_path: Path) -> None:
        source = tmp_path / "binary.rest"
        source.write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(SourceLoadError, match="Failed to read source file"):
            load_source(str(source))


class TestLoadFromStdin:
    """Test loading source text from standard input."""

    def test_reads_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO('[A: { GET "/a" => {} }]'))
        text, unit = load_source("-")
        assert unit == STDIN_UNIT == "<stdin>"
        assert text.startswith("[A:")

    def test_empty_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        with pytest.raises(SourceLoadError, match="No input received from stdin"):
            load_source("-")
