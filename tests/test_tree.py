"""Tests for the Tree container."""

from pybunny.tree import Tree


class TestTree:
    """Test Tree construction and traversal."""

    def test_leaf(self):
        """Test a tree without children."""
        tree = Tree("root")
        assert tree.value == "root"
        assert tree.children == ()
        assert len(tree) == 1

    def test_children_are_stored_as_tuple(self):
        """Test that children passed as a list are frozen into a tuple."""
        children = [Tree("a"), Tree("b")]
        tree = Tree("root", children)
        children.append(Tree("c"))

        assert tree.children == (Tree("a"), Tree("b"))

    def test_iteration_is_depth_first(self):
        """Test that iteration visits parents before their children."""
        tree = Tree(1, [Tree(2, [Tree(3)]), Tree(4)])
        assert list(tree) == [1, 2, 3, 4]
        assert len(tree) == 4

    def test_map(self):
        """Test that map preserves shape."""
        tree = Tree(1, [Tree(2), Tree(3, [Tree(4)])])
        assert tree.map(lambda v: v * 10) == Tree(10, [Tree(20), Tree(30, [Tree(40)])])

    def test_equality_and_hash(self):
        """Test value semantics."""
        assert Tree("a", [Tree("b")]) == Tree("a", (Tree("b"),))
        assert hash(Tree("a", [Tree("b")])) == hash(Tree("a", [Tree("b")]))


class TestTreeFormat:
    """Test box-drawing rendering."""

    def test_format_leaf(self):
        """Test rendering a single node."""
        assert Tree("root").format(str) == ["root"]

    def test_format_nested(self):
        """Test that the last child is drawn differently from its siblings."""
        tree = Tree(
            "root",
            [
                Tree("a", [Tree("a1"), Tree("a2")]),
                Tree("b", [Tree("b1")]),
            ],
        )

        assert tree.format(str) == [
            "root",
            "├─ a",
            "│  ├─ a1",
            "│  └─ a2",
            "└─ b",
            "   └─ b1",
        ]

    def test_format_uses_callback(self):
        """Test that each value is rendered with the given function."""
        tree = Tree(1, [Tree(2)])
        assert tree.format(lambda v: f"<{v}>") == ["<1>", "└─ <2>"]
