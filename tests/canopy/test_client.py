from __future__ import annotations

from pathlib import Path

import pytest

from canopy.client import Canopy, create_canopy
from canopy.drivers.storage.memory import MemoryStorage
from canopy.kernel.config import CanopyConfig, LoggingConfig
from canopy.kernel.domain.nodes import DirectoryNode, FileNode
from canopy.kernel.exceptions import ValidationError
from canopy.kernel.traversal import traverse

STRUCTURE = {
    "src": {
        "index.ts": "export {}",
        "index.test.ts": "test()",
        "lib": {"util.ts": "x"},
    },
    "node_modules": {"dep": {"index.js": "module.exports = 1"}},
    "README.md": "# hi",
    "package.json": '{"name": "proj"}',
}


@pytest.fixture()
def fs(storage: MemoryStorage) -> Canopy:
    return Canopy(storage, root="/proj")


async def hydrated(fs: Canopy) -> Canopy:
    await fs.hydrate(STRUCTURE)
    return fs


class TestFilePrimitives:
    @pytest.mark.asyncio()
    async def test_read_content_types(self, fs: Canopy) -> None:
        await hydrated(fs)
        assert await fs.read("README.md") == "# hi"
        assert await fs.read("package.json", "json") == {"name": "proj"}
        assert await fs.read("README.md", "bytes") == b"# hi"
        assert await fs.read("README.md", "base64") == "IyBoaQ=="
        assert await fs.read("missing.txt") is None

    @pytest.mark.asyncio()
    async def test_paths_resolve_against_root(self, fs: Canopy, storage: MemoryStorage) -> None:
        await fs.write("notes/todo.txt", "later")
        assert await storage.read_text("/proj/notes/todo.txt") == "later"
        assert fs.resolve_path() == "/proj"
        assert fs.resolve_path("/abs/x") == "/abs/x"
        assert fs.root == "/proj"

    @pytest.mark.asyncio()
    async def test_copy_and_move_dispatch(self, fs: Canopy) -> None:
        await hydrated(fs)
        await fs.copy("README.md", "docs/README.md")
        await fs.copy("src/lib", "vendor/lib")
        assert await fs.read("docs/README.md") == "# hi"
        assert await fs.read("vendor/lib/util.ts") == "x"

        await fs.move("package.json", "config/package.json")
        await fs.move("vendor", "third_party")
        assert await fs.read("package.json") is None
        assert await fs.read("config/package.json", "json") == {"name": "proj"}
        assert await fs.read("third_party/lib/util.ts") == "x"

    @pytest.mark.asyncio()
    async def test_delete(self, fs: Canopy) -> None:
        await hydrated(fs)
        assert await fs.delete("README.md") is True
        assert await fs.delete("src") is True
        assert await fs.delete("src") is False
        assert [entry.name for entry in await fs.list()] == ["node_modules", "package.json"]


class TestTrees:
    @pytest.mark.asyncio()
    async def test_tree_with_include_and_ignore(self, fs: Canopy) -> None:
        await hydrated(fs)
        tree = await fs.tree(
            "src",
            include=lambda e: e.is_directory or e.name.endswith(".ts"),
            ignore=["*.test.ts"],
        )
        assert [node.path for node in traverse(tree.children)] == [
            "index.ts",
            "lib",
            "lib/util.ts",
        ]

    @pytest.mark.asyncio()
    async def test_filter_and_include_conflict(self, fs: Canopy) -> None:
        with pytest.raises(ValidationError, match="not both"):
            await fs.tree(filter=["*.md"], ignore=["*.ts"])

    @pytest.mark.asyncio()
    async def test_directory_returns_children(self, fs: Canopy) -> None:
        await hydrated(fs)
        nodes = await fs.directory(filter=["node_modules"])
        assert [node.name for node in nodes] == ["src", "README.md", "package.json"]
        assert all(node.depth == 1 for node in nodes)

    @pytest.mark.asyncio()
    async def test_files_apply_default_ignore(self, fs: Canopy) -> None:
        await hydrated(fs)
        paths = [node.path async for node in fs.files()]
        assert "node_modules/dep/index.js" not in paths
        assert paths == [
            "src/index.ts",
            "src/index.test.ts",
            "src/lib/util.ts",
            "README.md",
            "package.json",
        ]

    @pytest.mark.asyncio()
    async def test_explicit_filter_replaces_default_ignore(self, fs: Canopy) -> None:
        await hydrated(fs)
        paths = [node.path async for node in fs.files(filter=["src"])]
        assert "node_modules/dep/index.js" in paths

    @pytest.mark.asyncio()
    async def test_files_with_transform(self, fs: Canopy) -> None:
        await hydrated(fs)
        sizes = {
            node.path: node.content async for node in fs.files("src/lib", content=len_content)
        }
        assert sizes == {"util.ts": 1}

    @pytest.mark.asyncio()
    async def test_walk(self, fs: Canopy) -> None:
        await hydrated(fs)
        paths = [path async for path, _ in fs.walk("src", ignore=["lib"])]
        assert paths == ["/proj/src/index.ts", "/proj/src/index.test.ts"]

    @pytest.mark.asyncio()
    async def test_file(self, fs: Canopy) -> None:
        await hydrated(fs)
        node = await fs.file("src/lib/util.ts")
        assert isinstance(node, FileNode)
        assert node.content == "x"
        assert await fs.file("src/lib") is None

    @pytest.mark.asyncio()
    async def test_hydrate_built_tree_elsewhere(self, fs: Canopy) -> None:
        await hydrated(fs)
        tree = await fs.tree("src")
        await fs.hydrate(tree, "/copy")
        copied = await fs.tree("/copy")
        assert isinstance(copied, DirectoryNode)
        assert [node.path for node in traverse(copied.children)] == [
            node.path for node in traverse(tree.children)
        ]

    @pytest.mark.asyncio()
    async def test_operation_log_passthrough(self, fs: Canopy) -> None:
        fs.log_start("ops")
        await fs.write("a.txt", "a")
        assert [entry.method_name for entry in fs.log_end("ops")] == ["write"]


def len_content(node: FileNode) -> int:
    return len(node.content)


class TestCreateCanopy:
    def test_from_config(self) -> None:
        config = CanopyConfig(
            root="/srv",
            default_ignore=("dist",),
            logging=LoggingConfig(level="ERROR", format="console"),
        )
        fs = create_canopy(config=config)
        assert fs.root == "/srv"
        assert fs.default_ignore == ("dist",)
        assert isinstance(fs.storage, MemoryStorage)

    def test_uses_given_storage(self, storage: MemoryStorage) -> None:
        fs = create_canopy(storage, CanopyConfig())
        assert fs.storage is storage

    def test_loads_config_by_default(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CANOPY_ROOT", "/from-env")
        assert create_canopy().root == "/from-env"
