import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sfx_categorizer.category_tree import build_category_tree, category_options, render_tree

CATEGORIES = ["Weapons/Guns", "weapons/guns", "Weapons/Melee", "", None, "Ambient"]


def test_tree_counts_and_case_insensitive_nodes() -> None:
    root = build_category_tree(CATEGORIES)
    assert root.key == "(All)"
    assert root.count == 6
    assert [(c.name, c.count) for c in root.children] == [("Weapons", 3), ("Unsorted", 2), ("Ambient", 1)]

    weapons = root.children[0]
    assert [(c.key, c.count) for c in weapons.children] == [("Weapons/Guns", 2), ("Weapons/Melee", 1)]
    assert root.find("weapons/GUNS").count == 2
    assert root.find("Nope") is None


def test_category_options_are_sorted_and_distinct() -> None:
    root = build_category_tree(CATEGORIES)
    assert category_options(root) == ["Ambient", "Unsorted", "Weapons", "Weapons/Guns", "Weapons/Melee"]


def test_render_tree() -> None:
    root = build_category_tree(CATEGORIES)
    assert render_tree(root) == [
        "(All) (6)",
        "  Weapons (3)",
        "    Guns (2)",
        "    Melee (1)",
        "  Unsorted (2)",
        "  Ambient (1)",
    ]


def test_empty_segments_are_skipped() -> None:
    root = build_category_tree(["a//b/", " / "])
    assert root.find("a/b").count == 1
    assert root.find("Unsorted").count == 1


def test_empty_input() -> None:
    root = build_category_tree([])
    assert root.count == 0
    assert root.children == []
    assert category_options(root) == []
    assert root.to_dict() == {"name": "(All)", "key": "(All)", "count": 0, "children": []}
