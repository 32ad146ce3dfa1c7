"""
Recursive-descent parser for the formula markup.

Turns a LaTeX-like string into a tree of layout nodes from ``formula_nodes``.
Parsing never fails: unknown commands become a ``?`` placeholder and
unbalanced delimiters are read up to the end of the input.

Usage:
    from formula_parser import parse_formula
    root = parse_formula(r"\\sum_{i=1}^{n} i", font_size=28)

Grammar summary:
    item      := "\\" command | digits | letter | "{" group "}" | other char
    scripts   := ( "^" block | "_" block )*
    block     := "{" balanced text "}" | "[" text "]" | one char or control word
    command   := frac block block | sqrt ["[" index "]"] block | left D ... right D
               | int | sum | prod | lim | mathrm block | "!" | "," | name

Each block is handed to a fresh ``FormulaParser``; parsers never share a
cursor.
"""

import logging

from formula_nodes import (
    BigOperatorNode,
    FractionNode,
    IntegralNode,
    LimitsNode,
    RadicalNode,
    ScalingFenceNode,
    ScriptNode,
    SequenceNode,
    TextNode,
)
from formula_symbols import (
    FINE_SPACE_RATIO,
    LIMIT_WORD,
    PLACEHOLDER,
    SUMMATION_GLYPH,
    is_function_name,
    lookup_symbol,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURATION
# ============================================================================
BASE_FONT_SIZE = 28
SCRIPT_SCALE = 0.7          # Super/subscripts and operator limits
INDEX_SCALE = 0.6           # n in \sqrt[n]{...}
MIN_FONT_SIZE = 1
ESCAPE = "\\"
BLOCK_TERMINATORS = ("}", "]")
SCRIPT_MARKERS = ("^", "_")
DIGITS = "0123456789"
# ============================================================================


def _scaled_size(font_size, factor):
    return max(MIN_FONT_SIZE, int(font_size * factor))


class FormulaParser:
    """Parser over one immutable source string with its own cursor.

    Parameters
    ----------
    source : str
        Markup to parse.
    font_size : int
        Font size (points) for everything at this nesting level.
    """

    def __init__(self, source, font_size=BASE_FONT_SIZE):
        self.source = source
        self.pos = 0
        self.font_size = max(MIN_FONT_SIZE, int(font_size))

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def at_end(self):
        return self.pos >= len(self.source)

    def peek(self):
        """Return the next character without consuming it ('' at the end)."""
        if self.at_end():
            return ""
        return self.source[self.pos]

    def advance(self):
        """Consume and return the next character ('' at the end)."""
        if self.at_end():
            return ""
        char = self.source[self.pos]
        self.pos += 1
        return char

    def skip_whitespace(self):
        while self.peek().isspace():
            self.advance()

    def _subparse(self, text, font_size=None):
        if font_size is None:
            font_size = self.font_size
        return FormulaParser(text, font_size).parse()

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self):
        """Parse until the end of input or an unmatched ``}``/``]``.

        The terminator is left unconsumed.

        Returns
        -------
        SequenceNode
        """
        row = SequenceNode()
        while True:
            self.skip_whitespace()
            if self.at_end() or self.peek() in BLOCK_TERMINATORS:
                break
            node = self.parse_item()
            if node is not None:
                row.append(self.attach_scripts(node))
        return row

    def parse_item(self):
        """Parse one atom: a command, number, variable, group or symbol."""
        if self.peek() == "{":
            return self._subparse(self.extract_block())

        char = self.advance()
        if not char:
            return None

        if char == ESCAPE:
            return self.parse_command()

        if char in DIGITS:
            number = char
            while self.peek() and (self.peek() in DIGITS or self.peek() == "."):
                number += self.advance()
            return TextNode(number, False, self.font_size)

        if char.isalpha():
            return TextNode(char, True, self.font_size)

        return TextNode(char, False, self.font_size)

    # ------------------------------------------------------------------
    # Blocks and scripts
    # ------------------------------------------------------------------

    def extract_block(self):
        """Consume one argument block and return its text.

        ``{...}`` blocks honour nested braces and drop the outer pair;
        ``[...]`` blocks stop at the first ``]``. Without a delimiter the
        block is the next character, or a whole control word such as
        ``\\alpha``. Unterminated blocks run to the end of the input.
        """
        self.skip_whitespace()
        opener = self.peek()
        if opener == "{":
            self.advance()
            depth = 1
            chars = []
            while not self.at_end() and depth > 0:
                char = self.advance()
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                if depth > 0:
                    chars.append(char)
            return "".join(chars)

        if opener == "[":
            self.advance()
            start = self.pos
            while not self.at_end() and self.peek() != "]":
                self.pos += 1
            text = self.source[start:self.pos]
            self.advance()
            return text

        if opener == ESCAPE:
            start = self.pos
            self.advance()
            if self.peek().isalpha():
                while self.peek().isalpha():
                    self.advance()
            else:
                self.advance()
            return self.source[start:self.pos]

        return self.advance()

    def attach_scripts(self, node):
        """Apply trailing ``^``/``_`` suffixes to *node*.

        Operators with limits take the scripts as upper/lower limits. Any
        other node is wrapped in a single ``ScriptNode`` whichever suffix
        comes first, so ``x^2_3`` and ``x_3^2`` give the same tree.
        """
        script_size = _scaled_size(self.font_size, SCRIPT_SCALE)
        while True:
            self.skip_whitespace()
            if self.peek() not in SCRIPT_MARKERS:
                break
            marker = self.advance()
            content = self._subparse(self.extract_block(), script_size)

            if isinstance(node, LimitsNode):
                if marker == "^":
                    node.upper = content
                else:
                    node.lower = content
                continue

            if not isinstance(node, ScriptNode):
                node = ScriptNode(node)
            if marker == "^":
                node.superscript = content
            else:
                node.subscript = content
        return node

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def read_command_name(self):
        """Read a control word (letters) or a single-character control symbol."""
        start = self.pos
        while self.peek().isalpha():
            self.advance()
        if self.pos == start:
            self.advance()
        return self.source[start:self.pos]

    def parse_command(self):
        name = self.read_command_name()
        size = self.font_size

        if name == "left":
            return self.parse_fence()

        if name == "frac":
            numerator = self._subparse(self.extract_block())
            denominator = self._subparse(self.extract_block())
            return FractionNode(numerator, denominator, size)

        if name == "sqrt":
            index = None
            self.skip_whitespace()
            if self.peek() == "[":
                index = self._subparse(self.extract_block(),
                                       _scaled_size(size, INDEX_SCALE))
            radicand = self._subparse(self.extract_block())
            return RadicalNode(radicand, index)

        if name == "int":
            return IntegralNode(size)

        if name in ("sum", "prod"):
            return BigOperatorNode(SUMMATION_GLYPH, size, text_style=False)

        if name == "lim":
            return BigOperatorNode(LIMIT_WORD, size, text_style=True)

        if name == "mathrm":
            return TextNode(self.extract_block(), False, size)

        if name == "!":
            return TextNode("", False, size, offset=int(-size * FINE_SPACE_RATIO))
        if name == ",":
            return TextNode("", False, size, offset=int(size * FINE_SPACE_RATIO))

        if is_function_name(name):
            return TextNode(name, False, size)

        glyph = lookup_symbol(name)
        if glyph is not None:
            return TextNode(glyph, False, size)

        logger.debug("Unknown command \\%s replaced by %r", name, PLACEHOLDER)
        return TextNode(PLACEHOLDER, False, size)

    def _is_command_at(self, position, name):
        token = ESCAPE + name
        if not self.source.startswith(token, position):
            return False
        following = position + len(token)
        return following >= len(self.source) or not self.source[following].isalpha()

    def parse_fence(self):
        """Parse ``\\left D ... \\right D`` after the ``left`` name.

        Nested ``\\left``/``\\right`` pairs inside the body are skipped over
        and handled by the sub-parse of the body.
        """
        self.skip_whitespace()
        left = self.advance()

        start = self.pos
        depth = 0
        while not self.at_end():
            if self._is_command_at(self.pos, "left"):
                depth += 1
            elif self._is_command_at(self.pos, "right"):
                if depth == 0:
                    break
                depth -= 1
            self.pos += 1

        content = self._subparse(self.source[start:self.pos])

        right = ""
        if self._is_command_at(self.pos, "right"):
            self.pos += len(ESCAPE + "right")
            self.skip_whitespace()
            right = self.advance()
        else:
            logger.debug("\\left%s without matching \\right", left)
        return ScalingFenceNode(content, left, right)


def parse_formula(markup, font_size=BASE_FONT_SIZE):
    """Parse *markup* into a ``SequenceNode`` at *font_size* points.

    Parameters
    ----------
    markup : str
        Formula markup, e.g. ``r"\\frac{1}{2}"``.
    font_size : int
        Base font size in points.

    Returns
    -------
    SequenceNode
        Root of the layout tree; consumes the whole input unless an
        unmatched ``}`` or ``]`` stops it early.
    """
    return FormulaParser(markup, font_size).parse()
