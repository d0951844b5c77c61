import pytest

from geo.styler import DEFAULT_PALETTE, apply_style


def rows_of(*values):
    return [{"Type": v} for v in values]


def test_colors_follow_first_appearance():
    rule = apply_style(rows_of("Roof", "Ground", "Roof", "Carport"), "Type")
    assert rule is not None
    assert rule.column == "Type"
    assert rule.type == "categorical"
    assert list(rule.color_map) == ["Roof", "Ground", "Carport"]
    assert rule.color_map == {
        "Roof": DEFAULT_PALETTE[0],
        "Ground": DEFAULT_PALETTE[1],
        "Carport": DEFAULT_PALETTE[2],
    }


def test_not_sorted_alphabetically():
    rule = apply_style(rows_of("b", "a"), "Type", ["red", "blue"])
    assert rule.color_map == {"b": "red", "a": "blue"}


def test_row_order_changes_assignment():
    first = apply_style(rows_of("a", "b"), "Type", ["red", "blue"])
    second = apply_style(rows_of("b", "a"), "Type", ["red", "blue"])
    assert first.color_map["a"] == "red"
    assert second.color_map["a"] == "blue"


def test_deterministic():
    rows = rows_of("x", "y", "z", "x")
    assert apply_style(rows, "Type") == apply_style(rows, "Type")


def test_palette_cycles():
    palette = ["c0", "c1", "c2"]
    rule = apply_style(rows_of(*[f"v{i}" for i in range(7)]), "Type", palette)
    assert rule.color_map["v3"] == "c0"
    assert rule.color_map["v6"] == "c0"
    assert rule.color_map["v5"] == "c2"


def test_empty_column_clears_styling():
    assert apply_style(rows_of("a"), "") is None
    assert apply_style(rows_of("a"), None) is None


def test_values_are_stringified():
    rows = [{"n": 1.0}, {"n": 1}, {"n": 2.5}, {"n": None}, {}]
    rule = apply_style(rows, "n", ["a", "b", "c"])
    assert list(rule.color_map) == ["1", "2.5", ""]


def test_recomputed_from_scratch():
    palette = ["a", "b"]
    apply_style(rows_of("x", "y"), "Type", palette)
    rule = apply_style(rows_of("y"), "Type", palette)
    assert rule.color_map == {"y": "a"}


def test_empty_palette_rejected():
    with pytest.raises(ValueError):
        apply_style(rows_of("a"), "Type", [])
