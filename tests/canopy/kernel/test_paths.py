from __future__ import annotations

import pytest

from canopy.kernel.paths import (
    ParsedPath,
    dirname,
    is_absolute,
    join_path,
    normalize,
    parse_path,
    resolve_path,
    to_posix,
)


class TestResolvePath:
    def test_relative_is_joined_and_normalized(self) -> None:
        assert resolve_path("/proj", "src/../lib") == "/proj/lib"

    def test_absolute_bypasses_base(self) -> None:
        assert resolve_path("/proj", "/etc") == "/etc"

    def test_drive_path_bypasses_base(self) -> None:
        assert resolve_path("/proj", "C:/data") == "C:/data"

    @pytest.mark.parametrize("missing", [None, ""])
    def test_missing_input_resolves_to_base(self, missing: str | None) -> None:
        assert resolve_path("/proj", missing) == "/proj"

    def test_relative_base(self) -> None:
        assert resolve_path(".", "src") == "src"


class TestPathHelpers:
    def test_is_absolute(self) -> None:
        assert is_absolute("/x")
        assert is_absolute("C:/x")
        assert is_absolute("C:\\x")
        assert not is_absolute("x/y")
        assert not is_absolute("C:")

    def test_to_posix(self) -> None:
        assert to_posix("a\\b\\c") == "a/b/c"

    def test_normalize(self) -> None:
        assert normalize("") == "."
        assert normalize("a//b/./c/") == "a/b/c"
        assert normalize("/a/b/../c") == "/a/c"

    def test_join_path(self) -> None:
        assert join_path("a", "./b/", "c") == "a/b/c"
        assert join_path("/proj", "", "src") == "/proj/src"
        assert join_path() == "."

    def test_dirname(self) -> None:
        assert dirname("a") == "."
        assert dirname("/a") == "/"
        assert dirname("/proj/src/") == "/proj"
        assert dirname("src/lib/util.ts") == "src/lib"


class TestParsePath:
    def test_absolute_file(self) -> None:
        assert parse_path("/proj/src/index.test.ts") == ParsedPath(
            root="/", dir="/proj/src", base="index.test.ts", ext=".ts", name="index.test"
        )

    def test_dotfile_has_no_extension(self) -> None:
        parsed = parse_path(".gitignore")
        assert parsed.ext == ""
        assert parsed.name == ".gitignore"
        assert parsed.root == ""

    def test_trailing_slash_is_ignored(self) -> None:
        assert parse_path("/proj/src/").base == "src"

    def test_root_only(self) -> None:
        parsed = parse_path("/")
        assert parsed.root == "/"
        assert parsed.base == ""

    def test_drive_root(self) -> None:
        parsed = parse_path("C:/data/file.txt")
        assert parsed.root == "C:/"
        assert parsed.base == "file.txt"
