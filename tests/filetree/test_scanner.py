"""
Unit тесты для scanner.py
"""

import os
import sys

import pytest

from workspace_mcp.tools.filetree.scanner import load_subtree
from workspace_mcp.tools.utils.constants import OVERSIZED_CONTENT_PLACEHOLDER


def names(nodes):
    return [node.name for node in nodes]


class TestLoadSubtree:
    """Тесты для load_subtree"""

    @pytest.fixture
    def deep_tree(self, tmp_path):
        """Создает дерево a/b/c/d/e.txt глубиной пять уровней"""
        deepest = tmp_path / "a" / "b" / "c" / "d"
        deepest.mkdir(parents=True)
        (deepest / "e.txt").write_text("deep")
        return tmp_path

    def test_depth_is_bounded(self, deep_tree):
        nodes = load_subtree(deep_tree, max_depth=2)

        a = nodes[0]
        b = a.children[0]
        assert names(nodes) == ["a"]
        assert names(a.children) == ["b"]
        assert b.children == ()

    def test_depth_four_stops_before_fifth_level(self, deep_tree):
        nodes = load_subtree(deep_tree, max_depth=4)

        d = nodes[0].children[0].children[0].children[0]
        assert d.name == "d"
        assert d.children == ()

    def test_zero_depth_loads_nothing(self, deep_tree):
        assert load_subtree(deep_tree, max_depth=0) == []

    def test_hidden_and_noise_entries_filtered(self, tmp_path):
        for name in (".git", "node_modules", "__pycache__", "venv", "src"):
            (tmp_path / name).mkdir()
        (tmp_path / ".env").write_text("SECRET=1")
        (tmp_path / "main.py").write_text("print()")

        assert names(load_subtree(tmp_path, max_depth=2)) == ["main.py", "src"]

    def test_entries_sorted_by_name(self, tmp_path):
        for name in ("zeta.txt", "Alpha.txt", "beta.txt"):
            (tmp_path / name).write_text("")

        assert names(load_subtree(tmp_path, max_depth=1)) == ["Alpha.txt", "beta.txt", "zeta.txt"]

    def test_size_ceiling(self, tmp_path):
        (tmp_path / "below.txt").write_bytes(b"x" * 99)
        (tmp_path / "exact.txt").write_bytes(b"x" * 100)

        nodes = {n.name: n for n in load_subtree(tmp_path, max_depth=1, ceiling=100)}

        assert nodes["below.txt"].content == "x" * 99
        assert nodes["exact.txt"].content == OVERSIZED_CONTENT_PLACEHOLDER
        assert nodes["exact.txt"].size == 100

    def test_invalid_utf8_is_replaced(self, tmp_path):
        (tmp_path / "bin.dat").write_bytes(b"ok\xff\xfe")

        node = load_subtree(tmp_path, max_depth=1)[0]

        assert node.content.startswith("ok")
        assert "�" in node.content
        assert node.size == 4

    def test_node_metadata(self, tmp_path):
        (tmp_path / "dir").mkdir()
        (tmp_path / "file.txt").write_text("abc")

        directory, file = load_subtree(tmp_path, max_depth=1)

        assert directory.kind == "directory"
        assert directory.size == 0
        assert directory.path == os.path.join(str(tmp_path), "dir")
        assert file.kind == "file"
        assert file.children is None
        assert file.modified.timestamp() == pytest.approx(os.stat(tmp_path / "file.txt").st_mtime, abs=1)

    def test_missing_directory_returns_empty(self, tmp_path):
        assert load_subtree(tmp_path / "missing", max_depth=2) == []

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unlistable_subdirectory_has_no_children(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "inside.txt").write_text("")
        locked.chmod(0)
        try:
            nodes = load_subtree(tmp_path, max_depth=3)
        finally:
            locked.chmod(0o755)

        assert names(nodes) == ["locked"]
        assert nodes[0].children == ()
