"""
Tests for the two-pass measure/draw layout of every node kind.

Metrics come from ``RecordingRenderer`` (see ``utils.py``): at 28pt a
character is 14 wide, a line is 35 tall with ascent 28; at 19pt (scripts)
9 wide, 23 tall, ascent 18; at 42pt (large operators) 21 wide, 52 tall,
ascent 41.
"""

import pytest

from formula_nodes import (
    BigOperatorNode,
    FractionNode,
    IntegralNode,
    RadicalNode,
    ScalingFenceNode,
    ScriptNode,
    SequenceNode,
    TextNode,
)
from formula_parser import parse_formula
from formula_symbols import INTEGRAL_GLYPH, SUMMATION_GLYPH


def row(*items, size=28):
    """Sequence of upright single-string text nodes."""
    return SequenceNode([TextNode(text, False, size) for text in items])


def geometry(node):
    return node.width, node.height, node.ascent


def vertical_extent(segments):
    ys = [y for x1, y1, x2, y2 in segments for y in (y1, y2)]
    return min(ys), max(ys)


SAMPLE_FORMULAS = [
    r"x = \frac{-b \pm \sqrt{b^2 - 4ac}}{2a}",
    r"\sum_{n=1}^{\infty} \frac{1}{n^2} = \frac{\pi^2}{6}",
    r"\int_{-\infty}^{\infty} e^{-x^2} \, dx = \sqrt{\pi}",
    r"\lim_{h \to 0} \frac{f(x+h) - f(x)}{h}",
    r"\sqrt[3]{\frac{a}{b}} \left| x_1^2 \right|",
    r"\left[ \left( a \right) \right] \!\! \, \quad \mathrm{m/s}",
    r"{x^{y^{z}}}_{i_{j}}",
]


# ============================================================================
# Text and sequences
# ============================================================================

class TestTextNode:
    def test_measure(self, renderer):
        node = TextNode("ab", True, 28)
        node.measure(renderer)
        assert geometry(node) == (28, 35, 28)
        assert node.descent == 7

    def test_draw_places_line_box_top_above_baseline(self, renderer):
        node = TextNode("ab", True, 28)
        node.measure(renderer)
        node.draw(renderer, 10, 100)
        assert renderer.texts == [(10, 72, "ab", 28, True)]

    def test_sets_font_state_before_drawing(self, renderer):
        node = TextNode("x", False, 19)
        node.measure(renderer)
        renderer.set_font_size(50)
        renderer.set_font_style(True)
        node.draw(renderer, 0, 18)
        assert renderer.texts == [(0, 0, "x", 19, False)]

    def test_offset_adds_to_width_and_shifts_text(self, renderer):
        node = TextNode("x", False, 28, offset=4)
        node.measure(renderer)
        assert node.width == 18
        node.draw(renderer, 0, 28)
        assert renderer.texts[0][0] == 4

    def test_spacing_node_draws_nothing(self, renderer):
        node = TextNode("", False, 28, offset=4)
        node.measure(renderer)
        assert node.width == 4
        node.draw(renderer, 0, 28)
        assert renderer.texts == []

    def test_draw_before_measure_is_an_error(self, renderer):
        with pytest.raises(RuntimeError):
            TextNode("x").draw(renderer, 0, 0)


class TestSequenceNode:
    def test_empty(self, renderer):
        node = SequenceNode()
        node.measure(renderer)
        assert geometry(node) == (0, 0, 0)

    def test_measure_mixed_sizes(self, renderer):
        node = SequenceNode([TextNode("x", True, 28), TextNode("2", False, 19)])
        node.measure(renderer)
        assert node.width == 14 + 9
        assert node.ascent == 28
        assert node.height == 28 + 7

    def test_children_share_one_baseline(self, renderer):
        node = SequenceNode([TextNode("x", True, 28), TextNode("2", False, 19)])
        node.measure(renderer)
        assert node.child_offsets() == [(0, 0), (14, 10)]

        node.draw(renderer, 5, 40)
        row_top = 40 - node.ascent
        for (x, y, *_), child, (dx, dtop) in zip(renderer.texts, node.items,
                                                node.child_offsets()):
            assert x == 5 + dx
            assert y - row_top == node.ascent - child.ascent == dtop

    def test_baseline_alignment_with_composite_children(self, renderer):
        root = parse_formula(r"a \frac{1}{2} \sqrt{x} b")
        root.measure(renderer)
        for child, (_, dtop) in zip(root.items, root.child_offsets()):
            assert dtop == root.ascent - child.ascent
            assert dtop + child.height <= root.height

    def test_negative_kern_is_clamped(self, renderer):
        node = SequenceNode([TextNode("", False, 28, offset=-4)])
        node.measure(renderer)
        assert node.width == 0

    def test_negative_kern_pulls_neighbours_closer(self, renderer):
        node = SequenceNode([
            TextNode("a", False, 28),
            TextNode("", False, 28, offset=-4),
            TextNode("b", False, 28),
        ])
        node.measure(renderer)
        assert node.width == 24
        node.draw(renderer, 0, 28)
        assert [t[0] for t in renderer.texts] == [0, 10]


# ============================================================================
# Composite nodes
# ============================================================================

class TestFractionNode:
    def test_measure(self, renderer):
        frac = FractionNode(row("1"), row("2"), 28)
        frac.measure(renderer)
        assert frac.width == max(frac.numerator.width, frac.denominator.width) + 10
        assert geometry(frac) == (24, 74, 37)

    def test_parsed_example(self, renderer):
        root = parse_formula(r"\frac{1}{2}")
        root.measure(renderer)
        frac = root.items[0]
        assert frac.width == max(frac.numerator.width, frac.denominator.width) + 10

    def test_draw(self, renderer):
        frac = FractionNode(row("1"), row("22"), 28)
        frac.measure(renderer)
        # width 28 + 10, numerator centred
        frac.draw(renderer, 0, frac.ascent)
        assert renderer.lines == [(0, 37, 38, 37)]
        assert renderer.texts == [
            (19 - 7, 0, "1", 28, False),
            (19 - 14, 39, "22", 28, False),
        ]


class TestScriptNode:
    def test_superscript_raises_ascent_and_keeps_descent(self, renderer):
        node = ScriptNode(TextNode("x", True, 28), superscript=row("2", size=19))
        node.measure(renderer)
        assert node.width == 14 + 9
        assert node.ascent == max(28, 23 + 28 // 2)
        assert node.descent == 7
        assert geometry(node) == (23, 44, 37)

    def test_subscript_extends_height(self, renderer):
        node = ScriptNode(TextNode("x", True, 28), subscript=row("3", size=19))
        node.measure(renderer)
        assert geometry(node) == (23, 51, 28)

    def test_both_scripts_share_one_slot(self, renderer):
        node = ScriptNode(TextNode("x", True, 28),
                          superscript=row("2", size=19),
                          subscript=row("10", size=19))
        node.measure(renderer)
        assert node.width == 14 + 18
        assert node.height == 23 + 37

    def test_draw(self, renderer):
        node = ScriptNode(TextNode("x", True, 28),
                          superscript=row("2", size=19),
                          subscript=row("3", size=19))
        node.measure(renderer)
        node.draw(renderer, 0, 37)
        base, sup, sub = renderer.texts
        assert base[:3] == (0, 9, "x")
        # 11 = half the superscript height, above the base's top
        assert sup[:3] == (14, 9 - 11, "2")
        # below the base's descent plus 10% of the subscript height
        assert sub[:3] == (14, 9 + 7 + 2, "3")


class TestBigOperatorNode:
    def test_measure_with_limits(self, renderer):
        node = BigOperatorNode(SUMMATION_GLYPH, 28,
                               lower=row("i", size=19), upper=row("n", size=19))
        node.measure(renderer)
        assert node.width == 21 + 4
        assert node.ascent == 23 + 41
        assert node.height == 23 + 41 + (52 - 41) + 23

    def test_measure_without_limits(self, renderer):
        node = BigOperatorNode(SUMMATION_GLYPH, 28)
        node.measure(renderer)
        assert geometry(node) == (25, 52, 41)

    def test_text_style_uses_surrounding_size(self, renderer):
        node = BigOperatorNode("lim", 28, text_style=True, lower=row("x", size=19))
        node.measure(renderer)
        assert node.width == 42 + 4
        assert node.ascent == 28

    def test_draw_stacks_and_centres(self, renderer):
        node = BigOperatorNode(SUMMATION_GLYPH, 28,
                               lower=row("i", size=19), upper=row("n", size=19))
        node.measure(renderer)
        node.draw(renderer, 0, node.ascent)
        upper, glyph, lower = renderer.texts
        assert upper == (8, 0, "n", 19, False)
        assert glyph == (2, 23, SUMMATION_GLYPH, 42, False)
        assert lower == (8, 23 + 52, "i", 19, False)


class TestIntegralNode:
    def test_measure_without_limits(self, renderer):
        node = IntegralNode(28)
        node.measure(renderer)
        assert geometry(node) == (21 + 4, 52, 26)

    def test_limits_sit_beside_the_sign(self, renderer):
        node = IntegralNode(28, lower=row("0", size=19), upper=row("1", size=19))
        node.measure(renderer)
        assert node.width == 21 + 9 + 4
        assert node.height == max(52, 23 + 23)

        node.draw(renderer, 0, node.ascent)
        glyph, upper, lower = renderer.texts
        assert glyph == (0, 0, INTEGRAL_GLYPH, 42, False)
        assert upper[:3] == (23, 2, "1")
        assert lower[:3] == (23, 52 - 23 - 2, "0")


class TestRadicalNode:
    def test_measure(self, renderer):
        node = RadicalNode(row("x"))
        node.measure(renderer)
        assert geometry(node) == (14 + 15, 35 + 5, 28 + 5)

    def test_sign_scales_with_radicand(self, renderer):
        node = RadicalNode(row("x"))
        node.measure(renderer)
        node.draw(renderer, 0, node.ascent)
        assert renderer.texts == [(10, 5, "x", 28, False)]
        assert renderer.lines == [
            (0, 20, 5, 40),
            (5, 40, 10, 0),
            (10, 0, 29, 0),
        ]

    def test_tall_radicand_gets_a_taller_sign(self, renderer):
        short = RadicalNode(row("x"))
        tall = RadicalNode(SequenceNode([FractionNode(row("1"), row("2"))]))
        for node in (short, tall):
            node.measure(renderer)
        short_extent = vertical_extent(short.sign_segments(0, short.ascent))
        tall_extent = vertical_extent(tall.sign_segments(0, tall.ascent))
        assert tall_extent[1] - tall_extent[0] == tall.radicand.height + 5
        assert short_extent[1] - short_extent[0] == short.radicand.height + 5

    def test_index(self, renderer):
        node = RadicalNode(row("x"), index=row("3", size=16))
        node.measure(renderer)
        assert node.width == 14 + 15 + 8
        assert node.ascent == 33
        node.draw(renderer, 0, node.ascent)
        assert renderer.texts[0] == (0, 0, "3", 16, False)
        assert renderer.texts[1][:3] == (18, 5, "x")
        # Bar ends at the node's right edge
        assert renderer.lines[-1][2] == node.width


class TestScalingFenceNode:
    def test_measure(self, renderer):
        node = ScalingFenceNode(row("x"), "(", ")")
        node.measure(renderer)
        assert geometry(node) == (14 + 14, 35, 28)

    def test_parentheses(self, renderer):
        node = ScalingFenceNode(row("x"), "(", ")")
        node.measure(renderer)
        node.draw(renderer, 0, 28)
        assert renderer.texts == [(7, 0, "x", 28, False)]
        assert renderer.lines == [
            (5, 0, 1, 17), (1, 17, 5, 35),
            (23, 0, 27, 17), (27, 17, 23, 35),
        ]

    def test_brackets_and_bars(self, renderer):
        node = ScalingFenceNode(row("x"), "[", "|")
        node.measure(renderer)
        node.draw(renderer, 0, 28)
        assert renderer.lines == [
            (5, 0, 5, 35), (5, 0, 10, 0), (5, 35, 10, 35),
            (26, 0, 26, 35),
        ]

    def test_empty_delimiters_draw_nothing(self, renderer):
        node = ScalingFenceNode(row("x"), "", ".")
        node.measure(renderer)
        node.draw(renderer, 0, 28)
        assert renderer.lines == []

    @pytest.mark.parametrize("markup", [
        r"\left(x\right)",
        r"\left[\frac{\frac{1}{2}}{3}\right]",
        r"\left|\sum_{i=1}^{n} x_i\right|",
    ])
    def test_delimiters_span_the_full_content_height(self, renderer, markup):
        root = parse_formula(markup)
        root.measure(renderer)
        fence = root.items[0]
        fence.draw(renderer, 0, fence.ascent)
        top, bottom = vertical_extent(renderer.lines)
        assert (top, bottom) == (0, fence.content.height)


# ============================================================================
# Whole-tree properties
# ============================================================================

class TestTreeProperties:
    @pytest.mark.parametrize("markup", SAMPLE_FORMULAS)
    def test_measure_is_idempotent(self, renderer, markup):
        root = parse_formula(markup)
        root.measure(renderer)
        first = [geometry(n) for n in root.walk()]
        root.measure(renderer)
        assert [geometry(n) for n in root.walk()] == first

    @pytest.mark.parametrize("markup", SAMPLE_FORMULAS)
    def test_parsing_is_deterministic(self, renderer, markup):
        trees = [parse_formula(markup), parse_formula(markup)]
        for tree in trees:
            tree.measure(renderer)
        assert ([geometry(n) for n in trees[0].walk()]
                == [geometry(n) for n in trees[1].walk()])

    @pytest.mark.parametrize("markup", SAMPLE_FORMULAS)
    def test_geometry_invariants(self, renderer, markup):
        root = parse_formula(markup)
        root.measure(renderer)
        for node in root.walk():
            assert node.measured
            assert 0 <= node.ascent <= node.height
            if not (isinstance(node, TextNode) and node.offset < 0):
                assert node.width >= 0

    @pytest.mark.parametrize("markup", SAMPLE_FORMULAS)
    def test_children_are_never_shared(self, markup):
        root = parse_formula(markup)
        ids = [id(n) for n in root.walk()]
        assert len(ids) == len(set(ids))

    def test_script_order_gives_identical_geometry(self, renderer):
        first, second = parse_formula("x^2_3"), parse_formula("x_3^2")
        for tree in (first, second):
            tree.measure(renderer)
        assert geometry(first) == geometry(second)
