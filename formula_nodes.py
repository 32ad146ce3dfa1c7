"""
Layout nodes for typeset formulas.

Every node takes part in a two-pass protocol against a renderer (see
``formula_renderers.Renderer``):

    node.measure(renderer)      # bottom-up: width, height, ascent
    node.draw(renderer, x, y)   # top-down: x = left edge, y = baseline

``ascent`` is the distance from the node's top edge to its baseline, so the
top edge of a node drawn at ``(x, y)`` is ``y - ascent`` and its bottom edge
is ``y + descent``. Geometry is in integer pixels and is only valid after
``measure`` has run over the node's subtree.

Nodes that measure or draw text set the renderer's font size and style
immediately before each metric query or text call; the renderer's font state
is shared by the whole traversal and siblings change it freely.
"""

from formula_symbols import INTEGRAL_GLYPH

# ============================================================================
# CONFIGURATION
# ============================================================================
BASELINE_RATIO = 0.8        # Baseline position within a text line box
FRACTION_GAP = 10           # Extra width around the wider fraction part
FRACTION_BAR_GAP = 2        # Space between numerator and bar, bar and denominator
LARGE_OPERATOR_SCALE = 1.5  # \sum, \prod and \int glyph size factor
OPERATOR_PADDING = 4
INTEGRAL_GAP = 4
INTEGRAL_LIMIT_INSET = 2
RADICAL_MARGIN = 15         # Room for the check mark plus overhang of the bar
RADICAL_CLEARANCE = 5       # Space between radicand top and the bar
RADICAL_STROKE = 5          # Horizontal extent of each check-mark stroke
FENCE_MARGIN = 14           # Total horizontal room for both delimiters
SUPERSCRIPT_RAISE = 0.5
SUBSCRIPT_DROP = 0.1
# ============================================================================


def _half(value):
    """Halve an integer length, truncating toward zero."""
    return int(value / 2)


def _scaled(value, factor):
    return int(value * factor)


class Node:
    """Base class for all layout nodes."""

    kind = "node"

    def __init__(self):
        self.width = 0
        self.height = 0
        self.ascent = 0
        self.measured = False

    @property
    def descent(self):
        return self.height - self.ascent

    def children(self):
        """Return the owned child nodes, in drawing order."""
        return []

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    def measure(self, renderer):
        raise NotImplementedError

    def draw(self, renderer, x, y):
        raise NotImplementedError

    def _finish_measure(self):
        self.measured = True

    def _check_measured(self):
        if not self.measured:
            raise RuntimeError(
                f"{type(self).__name__} must be measured before it is drawn."
            )


class SequenceNode(Node):
    """Children laid out left to right on a shared baseline."""

    kind = "sequence"

    def __init__(self, children=None):
        super().__init__()
        self.items = list(children) if children else []

    def __repr__(self):
        return f"SequenceNode({self.items!r})"

    def __len__(self):
        return len(self.items)

    def append(self, node):
        self.items.append(node)

    def children(self):
        return list(self.items)

    def measure(self, renderer):
        width = 0
        max_ascent = 0
        max_descent = 0
        for child in self.items:
            child.measure(renderer)
            width += child.width
            max_ascent = max(max_ascent, child.ascent)
            max_descent = max(max_descent, child.descent)
        # Negative kerns may pull the advance below zero
        self.width = max(0, width)
        self.ascent = max_ascent
        self.height = max_ascent + max_descent
        self._finish_measure()

    def child_offsets(self):
        """Return ``(dx, dtop)`` for each child relative to the row's top-left.

        ``dtop`` is ``row ascent - child ascent``, which puts every child's
        baseline on the row baseline.
        """
        offsets = []
        x_cursor = 0
        for child in self.items:
            offsets.append((x_cursor, self.ascent - child.ascent))
            x_cursor += child.width
        return offsets

    def draw(self, renderer, x, y):
        self._check_measured()
        for child, (dx, _) in zip(self.items, self.child_offsets()):
            child.draw(renderer, x + dx, y)


class TextNode(Node):
    """A literal run of text in one font size and style.

    ``offset`` shifts the text horizontally and is added to the advance; the
    fine-spacing commands are empty runs that carry only an offset.
    """

    kind = "text"

    def __init__(self, text, italic=False, font_size=28, offset=0):
        super().__init__()
        self.text = text
        self.italic = italic
        self.font_size = font_size
        self.offset = offset

    def __repr__(self):
        parts = [repr(self.text), f"italic={self.italic}", f"font_size={self.font_size}"]
        if self.offset:
            parts.append(f"offset={self.offset}")
        return f"TextNode({', '.join(parts)})"

    def _apply_font(self, renderer):
        renderer.set_font_size(self.font_size)
        renderer.set_font_style(self.italic)

    def measure(self, renderer):
        self._apply_font(renderer)
        self.width = renderer.measure_text_width(self.text) + self.offset
        self.height = renderer.line_height()
        self.ascent = _scaled(self.height, BASELINE_RATIO)
        self._finish_measure()

    def draw(self, renderer, x, y):
        self._check_measured()
        if not self.text:
            return
        self._apply_font(renderer)
        renderer.draw_text(x + self.offset, y - self.ascent, self.text)


class FractionNode(Node):
    kind = "fraction"

    def __init__(self, numerator, denominator, font_size=28):
        super().__init__()
        self.numerator = numerator
        self.denominator = denominator
        self.font_size = font_size

    def __repr__(self):
        return f"FractionNode({self.numerator!r}, {self.denominator!r})"

    def children(self):
        return [self.numerator, self.denominator]

    def measure(self, renderer):
        self.numerator.measure(renderer)
        self.denominator.measure(renderer)
        self.width = max(self.numerator.width, self.denominator.width) + FRACTION_GAP
        self.height = (self.numerator.height + self.denominator.height
                       + 2 * FRACTION_BAR_GAP)
        # Baseline sits on the fraction bar
        self.ascent = self.numerator.height + FRACTION_BAR_GAP
        self._finish_measure()

    def bar_offset(self):
        """Distance from the node's top edge to the fraction bar."""
        return self.numerator.height + FRACTION_BAR_GAP

    def draw(self, renderer, x, y):
        self._check_measured()
        top = y - self.ascent
        mid_x = x + _half(self.width)

        num = self.numerator
        num.draw(renderer, mid_x - _half(num.width), top + num.ascent)

        bar_y = top + self.bar_offset()
        renderer.draw_line(x, bar_y, x + self.width, bar_y)

        den = self.denominator
        den_top = bar_y + FRACTION_BAR_GAP
        den.draw(renderer, mid_x - _half(den.width), den_top + den.ascent)


class ScriptNode(Node):
    """A base with an optional superscript and subscript.

    Both scripts share one slot to the right of the base.
    """

    kind = "script"

    def __init__(self, base, superscript=None, subscript=None):
        super().__init__()
        self.base = base
        self.superscript = superscript
        self.subscript = subscript

    def __repr__(self):
        return (f"ScriptNode({self.base!r}, superscript={self.superscript!r}, "
                f"subscript={self.subscript!r})")

    def children(self):
        return [n for n in (self.base, self.superscript, self.subscript) if n is not None]

    def measure(self, renderer):
        base = self.base
        base.measure(renderer)
        self.width = base.width
        self.ascent = base.ascent
        self.height = base.height

        script_width = 0
        if self.superscript is not None:
            sup = self.superscript
            sup.measure(renderer)
            script_width = max(script_width, sup.width)
            self.ascent = max(self.ascent, sup.height + _half(base.ascent))
            # Raising the top keeps the base's descent below the baseline
            self.height = self.ascent + base.descent
        if self.subscript is not None:
            sub = self.subscript
            sub.measure(renderer)
            script_width = max(script_width, sub.width)
            self.height = max(self.height, sub.height + self.ascent)
        self.width += script_width
        self._finish_measure()

    def draw(self, renderer, x, y):
        self._check_measured()
        base = self.base
        base.draw(renderer, x, y)

        script_x = x + base.width
        base_top = y - base.ascent
        if self.superscript is not None:
            sup = self.superscript
            sup_top = base_top - _scaled(sup.height, SUPERSCRIPT_RAISE)
            sup.draw(renderer, script_x, sup_top + sup.ascent)
        if self.subscript is not None:
            sub = self.subscript
            sub_top = base_top + base.descent + _scaled(sub.height, SUBSCRIPT_DROP)
            sub.draw(renderer, script_x, sub_top + sub.ascent)


class LimitsNode(Node):
    """Common base for operators whose scripts are limits, not exponents.

    The parser assigns ``^``/``_`` suffixes on these nodes straight to
    ``upper``/``lower`` instead of wrapping them in a ``ScriptNode``.
    """

    def __init__(self, font_size, lower=None, upper=None):
        super().__init__()
        self.font_size = font_size
        self.lower = lower
        self.upper = upper
        self.glyph_width = 0
        self.glyph_height = 0

    def children(self):
        return [n for n in (self.upper, self.lower) if n is not None]

    def glyph_size(self):
        return _scaled(self.font_size, LARGE_OPERATOR_SCALE)

    def glyph(self):
        raise NotImplementedError

    def _apply_font(self, renderer):
        renderer.set_font_size(self.glyph_size())
        renderer.set_font_style(False)

    def _measure_glyph(self, renderer):
        self._apply_font(renderer)
        self.glyph_width = renderer.measure_text_width(self.glyph())
        self.glyph_height = renderer.line_height()


class BigOperatorNode(LimitsNode):
    """A summation-style operator with limits stacked above and below.

    ``text_style`` operators (``lim``) are set at the surrounding font size;
    the others are enlarged by ``LARGE_OPERATOR_SCALE``.
    """

    kind = "big_operator"

    def __init__(self, symbol, font_size, text_style=False, lower=None, upper=None):
        super().__init__(font_size, lower=lower, upper=upper)
        self.symbol = symbol
        self.text_style = text_style

    def __repr__(self):
        return (f"BigOperatorNode({self.symbol!r}, text_style={self.text_style}, "
                f"lower={self.lower!r}, upper={self.upper!r})")

    def glyph(self):
        return self.symbol

    def glyph_size(self):
        if self.text_style:
            return self.font_size
        return super().glyph_size()

    def measure(self, renderer):
        self._measure_glyph(renderer)

        lower_width = lower_height = 0
        upper_width = upper_height = 0
        if self.lower is not None:
            self.lower.measure(renderer)
            lower_width, lower_height = self.lower.width, self.lower.height
        if self.upper is not None:
            self.upper.measure(renderer)
            upper_width, upper_height = self.upper.width, self.upper.height

        self.width = max(self.glyph_width, lower_width, upper_width) + OPERATOR_PADDING
        glyph_ascent = _scaled(self.glyph_height, BASELINE_RATIO)
        above = upper_height + glyph_ascent
        below = (self.glyph_height - glyph_ascent) + lower_height
        self.ascent = above
        self.height = above + below
        self._finish_measure()

    def draw(self, renderer, x, y):
        self._check_measured()
        top = y - self.ascent
        mid_x = x + _half(self.width)

        upper_height = 0
        if self.upper is not None:
            upper = self.upper
            upper.draw(renderer, mid_x - _half(upper.width), top + upper.ascent)
            upper_height = upper.height

        glyph_top = top + upper_height
        self._apply_font(renderer)
        renderer.draw_text(mid_x - _half(self.glyph_width), glyph_top, self.symbol)

        if self.lower is not None:
            lower = self.lower
            lower_top = glyph_top + self.glyph_height
            lower.draw(renderer, mid_x - _half(lower.width), lower_top + lower.ascent)


class IntegralNode(LimitsNode):
    """An integral sign with its limits set beside it, upper above lower."""

    kind = "integral"

    def __repr__(self):
        return f"IntegralNode(lower={self.lower!r}, upper={self.upper!r})"

    def glyph(self):
        return INTEGRAL_GLYPH

    def measure(self, renderer):
        self._measure_glyph(renderer)

        limits_width = 0
        limits_height = 0
        for limit in (self.upper, self.lower):
            if limit is None:
                continue
            limit.measure(renderer)
            limits_width = max(limits_width, limit.width)
            limits_height += limit.height

        self.width = self.glyph_width + limits_width + INTEGRAL_GAP
        self.height = max(self.glyph_height, limits_height)
        # The sign is centred on the baseline
        self.ascent = _half(self.glyph_height)
        self._finish_measure()

    def draw(self, renderer, x, y):
        self._check_measured()
        glyph_top = y - _half(self.glyph_height)
        self._apply_font(renderer)
        renderer.draw_text(x, glyph_top, INTEGRAL_GLYPH)

        limit_x = x + self.glyph_width + INTEGRAL_LIMIT_INSET
        if self.upper is not None:
            upper = self.upper
            upper.draw(renderer, limit_x,
                       glyph_top + INTEGRAL_LIMIT_INSET + upper.ascent)
        if self.lower is not None:
            lower = self.lower
            lower_top = glyph_top + self.glyph_height - lower.height - INTEGRAL_LIMIT_INSET
            lower.draw(renderer, limit_x, lower_top + lower.ascent)


class RadicalNode(Node):
    """A square or n-th root; the radical sign is drawn from line segments."""

    kind = "radical"

    def __init__(self, radicand, index=None):
        super().__init__()
        self.radicand = radicand
        self.index = index

    def __repr__(self):
        return f"RadicalNode({self.radicand!r}, index={self.index!r})"

    def children(self):
        return [n for n in (self.index, self.radicand) if n is not None]

    def _index_advance(self):
        if self.index is None:
            return 0
        return max(RADICAL_STROKE, self.index.width)

    def measure(self, renderer):
        rad = self.radicand
        rad.measure(renderer)
        self.width = rad.width + RADICAL_MARGIN
        self.height = rad.height + RADICAL_CLEARANCE
        self.ascent = rad.ascent + RADICAL_CLEARANCE
        if self.index is not None:
            self.index.measure(renderer)
            self.width += self._index_advance()
            self.ascent = max(self.ascent, self.index.height + RADICAL_CLEARANCE)
            self.height = max(self.height, self.ascent + rad.descent)
        self._finish_measure()

    def sign_segments(self, x, y):
        """Return the three radical-sign strokes for a node drawn at ``(x, y)``.

        Down-stroke, up-stroke and the bar over the radicand, as
        ``(x1, y1, x2, y2)`` tuples.
        """
        rad = self.radicand
        start_x = x + self._index_advance()
        bottom_y = y + rad.descent
        bar_y = y - rad.ascent - RADICAL_CLEARANCE
        tick_x = start_x + RADICAL_STROKE
        arm_x = start_x + 2 * RADICAL_STROKE
        return [
            (start_x, bottom_y - _half(bottom_y - bar_y), tick_x, bottom_y),
            (tick_x, bottom_y, arm_x, bar_y),
            (arm_x, bar_y, start_x + rad.width + RADICAL_MARGIN, bar_y),
        ]

    def draw(self, renderer, x, y):
        self._check_measured()
        top = y - self.ascent
        if self.index is not None:
            self.index.draw(renderer, x, top + self.index.ascent)

        start_x = x + self._index_advance()
        self.radicand.draw(renderer, start_x + 2 * RADICAL_STROKE, y)
        for segment in self.sign_segments(x, y):
            renderer.draw_line(*segment)


class ScalingFenceNode(Node):
    """Content between delimiters that stretch to the content's full height.

    Delimiters are one of ``(``, ``)``, ``[``, ``]``, ``|``; anything else
    (including ``""``) draws nothing.
    """

    kind = "fence"

    def __init__(self, content, left="", right=""):
        super().__init__()
        self.content = content
        self.left = left
        self.right = right

    def __repr__(self):
        return f"ScalingFenceNode({self.left!r}, {self.content!r}, {self.right!r})"

    def children(self):
        return [self.content]

    def measure(self, renderer):
        self.content.measure(renderer)
        self.width = self.content.width + FENCE_MARGIN
        self.height = self.content.height
        self.ascent = self.content.ascent
        self._finish_measure()

    def delimiter_segments(self, x, y):
        """Return the line segments of both delimiters for a node at ``(x, y)``."""
        top = y - self.ascent
        bottom = top + self.height
        mid = top + _half(self.height)
        right_x = x + self.width
        segments = []

        if self.left == "|":
            segments.append((x + 2, top, x + 2, bottom))
        elif self.left == "(":
            segments.append((x + 5, top, x + 1, mid))
            segments.append((x + 1, mid, x + 5, bottom))
        elif self.left == "[":
            segments.append((x + 5, top, x + 5, bottom))
            segments.append((x + 5, top, x + 10, top))
            segments.append((x + 5, bottom, x + 10, bottom))

        if self.right == "|":
            segments.append((right_x - 2, top, right_x - 2, bottom))
        elif self.right == ")":
            segments.append((right_x - 5, top, right_x - 1, mid))
            segments.append((right_x - 1, mid, right_x - 5, bottom))
        elif self.right == "]":
            segments.append((right_x - 5, top, right_x - 5, bottom))
            segments.append((right_x - 5, top, right_x - 10, top))
            segments.append((right_x - 5, bottom, right_x - 10, bottom))

        return segments

    def draw(self, renderer, x, y):
        self._check_measured()
        self.content.draw(renderer, x + _half(FENCE_MARGIN), y)
        for segment in self.delimiter_segments(x, y):
            renderer.draw_line(*segment)
