from __future__ import annotations

from canopy.kernel.domain.nodes import DirectoryNode, FileNode, TreeNode
from canopy.kernel.traversal import (
    contains_match,
    find_all_files,
    find_directory,
    find_file,
    traverse,
)


def file_node(path: str) -> FileNode:
    name = path.rsplit("/", 1)[-1]
    ext = name[name.rfind(".") :] if "." in name else ""
    return FileNode(name=name, path=path, depth=path.count("/") + 1, base=name, ext=ext)


def sample() -> list[TreeNode]:
    return [
        DirectoryNode(
            name="src",
            path="src",
            depth=1,
            children=[
                file_node("src/a.ts"),
                DirectoryNode(
                    name="lib", path="src/lib", depth=2, children=[file_node("src/lib/b.ts")]
                ),
            ],
        ),
        file_node("README.md"),
    ]


class TestTraverse:
    def test_pre_order(self) -> None:
        nodes = [
            DirectoryNode(
                name="src",
                path="src",
                depth=1,
                children=[file_node("src/a.ts"), file_node("src/b.ts")],
            )
        ]
        assert [node.path for node in traverse(nodes)] == ["src", "src/a.ts", "src/b.ts"]

    def test_siblings_after_subtree(self) -> None:
        assert [node.path for node in traverse(sample())] == [
            "src",
            "src/a.ts",
            "src/lib",
            "src/lib/b.ts",
            "README.md",
        ]

    def test_restartable(self) -> None:
        nodes = sample()
        assert list(traverse(nodes)) == list(traverse(nodes))

    def test_empty(self) -> None:
        assert list(traverse([])) == []


class TestFinders:
    def test_find_file_returns_first_in_order(self) -> None:
        found = find_file(sample(), lambda node: node.ext == ".ts")
        assert found is not None
        assert found.path == "src/a.ts"

    def test_find_file_none(self) -> None:
        assert find_file(sample(), lambda node: node.ext == ".py") is None

    def test_find_directory(self) -> None:
        found = find_directory(sample(), lambda node: node.name == "lib")
        assert found is not None
        assert found.path == "src/lib"
        assert find_directory(sample(), lambda node: node.name == "nope") is None

    def test_find_all_files(self) -> None:
        paths = [node.path for node in find_all_files(sample(), lambda node: node.ext == ".ts")]
        assert paths == ["src/a.ts", "src/lib/b.ts"]

    def test_contains_match_short_circuits(self) -> None:
        seen: list[str] = []

        def predicate(node: TreeNode) -> bool:
            seen.append(node.path)
            return node.name == "a.ts"

        assert contains_match(sample(), predicate)
        assert seen == ["src", "src/a.ts"]

    def test_contains_match_directory_searches_children(self) -> None:
        src = sample()[0]
        assert isinstance(src, DirectoryNode)
        assert not contains_match(src, lambda node: node.name == "src")
        assert contains_match(src, lambda node: node.name == "b.ts")
