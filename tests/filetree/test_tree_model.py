"""
Unit тесты для model.py (FileTreeModel)
"""

import pytest

from workspace_mcp.models.file_node import FileNode
from workspace_mcp.tools.filetree.model import FileTreeModel, TreeError
from workspace_mcp.tools.utils.constants import OVERSIZED_CONTENT_PLACEHOLDER


def file(name, content="", path=None):
    return FileNode(name=name, kind="file", content=content, path=path)


def folder(name, *children, path=None):
    return FileNode(name=name, kind="directory", children=tuple(children), path=path)


class TestVirtualTree:
    """Тесты виртуального дерева без диска"""

    @pytest.fixture
    def tree(self):
        model = FileTreeModel()
        src = model.add_child("root", folder("src"))
        model.add_child(src.id, file("app.py", "print('hi')"))
        model.add_child("root", file("README.md"))
        return model

    def test_initial_state_is_virtual(self):
        model = FileTreeModel()

        assert model.is_disk_backed is False
        assert model.root.id == "root"
        assert model.root.name == "/"
        assert model.children == ()

    def test_copy_on_write_keeps_old_snapshot(self, tree):
        before = tree.root
        app = tree.resolve("/src/app.py")

        tree.update_content(app.id, "print('bye')")

        assert before.child_named("src").child_named("app.py").content == "print('hi')"
        assert tree.resolve("/src/app.py").content == "print('bye')"
        assert tree.root is not before
        # untouched siblings are shared, not copied
        assert tree.root.child_named("README.md") is before.child_named("README.md")

    def test_update_content_sets_byte_size(self, tree):
        app = tree.resolve("/src/app.py")

        updated = tree.update_content(app.id, "héllo")

        assert updated.size == 6

    def test_update_content_above_ceiling_caches_placeholder(self, tree):
        app = tree.resolve("/src/app.py")

        updated = tree.update_content(app.id, "y" * 32, ceiling=32)

        assert updated.content == OVERSIZED_CONTENT_PLACEHOLDER
        assert updated.size == 32

    def test_duplicate_sibling_rejected(self, tree):
        before = tree.root
        with pytest.raises(TreeError):
            tree.add_child("root", file("README.md"))
        assert tree.root is before

    def test_rename(self, tree):
        src = tree.resolve("/src")

        tree.rename(src.id, "lib")

        assert tree.resolve("/lib/app.py") is not None
        assert tree.resolve("/src") is None
        assert tree.find(src.id).name == "lib"

    def test_rename_to_existing_name_rejected(self, tree):
        src = tree.resolve("/src")
        with pytest.raises(TreeError):
            tree.rename(src.id, "README.md")

    def test_move_and_parent_index(self, tree):
        readme = tree.resolve("/README.md")
        src = tree.resolve("/src")

        tree.move(readme.id, src.id)

        assert tree.parent(readme.id).id == src.id
        assert tree.resolve("/src/README.md").id == readme.id
        assert tree.resolve("/README.md") is None

    def test_move_folder_into_its_descendant_rejected(self, tree):
        src = tree.resolve("/src")
        inner = tree.add_child(src.id, folder("inner"))

        with pytest.raises(TreeError):
            tree.move(src.id, inner.id)
        with pytest.raises(TreeError):
            tree.move(src.id, src.id)

    def test_remove_unindexes_subtree(self, tree):
        src = tree.resolve("/src")
        app = tree.resolve("/src/app.py")

        tree.remove(src.id)

        assert tree.find(src.id) is None
        assert tree.find(app.id) is None
        assert [n.name for n in tree.children] == ["README.md"]

    def test_root_cannot_be_changed(self, tree):
        with pytest.raises(TreeError):
            tree.remove("root")
        with pytest.raises(TreeError):
            tree.rename("root", "x")

    def test_unknown_node(self, tree):
        with pytest.raises(TreeError):
            tree.remove("missing-id")

    def test_node_path_for_virtual_nodes(self, tree):
        app = tree.resolve("/src/app.py")

        assert tree.node_path(app.id) == "/src/app.py"
        assert tree.node_path("root") == "/"

    def test_walk_visits_every_node(self, tree):
        assert [n.name for n in tree.walk()] == ["/", "src", "app.py", "README.md"]


class TestDiskBackedTree:
    """Тесты дерева, загруженного с диска"""

    def test_resolve_accepts_mixed_separators(self):
        model = FileTreeModel()
        model.load(
            "C:\\proj",
            [folder("src", file("main.js", path="C:\\proj\\src\\main.js"), path="C:\\proj\\src")],
        )

        node = model.resolve("C:\\proj\\src\\main.js")

        assert node is not None
        assert model.resolve("C:/proj//src/main.js").id == node.id
        assert model.resolve("/src/main.js").id == node.id
        assert model.resolve("C:/proj").id == "root"
        assert model.resolve("C:/proj/missing") is None

    def test_load_sets_root(self, tmp_path):
        model = FileTreeModel()
        model.load(str(tmp_path), [])

        assert model.is_disk_backed is True
        assert model.workspace_root == str(tmp_path)
        assert model.root.name == tmp_path.name
        assert model.node_path("root") == str(tmp_path)

    def test_virtual_child_of_disk_node_gets_native_path(self):
        model = FileTreeModel()
        model.load("C:\\proj", [folder("src", path="C:\\proj\\src")])
        src = model.resolve("/src")

        added = model.add_child(src.id, file("new.txt"))

        assert model.node_path(added.id) == "C:\\proj\\src\\new.txt"

    def test_reset_returns_to_virtual_root(self, tmp_path):
        model = FileTreeModel()
        model.load(str(tmp_path), [file("a.txt")])

        model.reset()

        assert model.is_disk_backed is False
        assert model.resolve("/a.txt") is None
