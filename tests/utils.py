"""Test doubles with fixed, easily computed text metrics.

Every character is half the font size wide and a line is 1.25 font sizes
tall, so at 28pt: char width 14, line height 35, ascent 28, descent 7.
"""

from matplotlib.font_manager import FontProperties

from formula_renderers import Renderer


class FixedMetrics:
    """Drop-in replacement for ``TextMeasurer``."""

    def text_width(self, text, size, italic=False):
        return len(text) * (size // 2)

    def line_height(self, size, italic=False):
        return size + size // 4

    def font(self, size, italic=False):
        return FontProperties(family="serif", style="italic" if italic else "normal",
                              size=size)

    def family_name(self):
        return "Fixed"


class RecordingRenderer(Renderer):
    """Renderer that records drawing calls instead of drawing."""

    def __init__(self):
        super().__init__()
        self.metrics = FixedMetrics()
        self.lines = []
        self.texts = []

    def measure_text_width(self, text):
        return self.metrics.text_width(text, self.font_size, self.italic)

    def line_height(self):
        return self.metrics.line_height(self.font_size, self.italic)

    def draw_line(self, x1, y1, x2, y2):
        self.lines.append((x1, y1, x2, y2))

    def draw_text(self, x, y, text):
        self.texts.append((x, y, text, self.font_size, self.italic))

    def reset(self):
        self.lines = []
        self.texts = []
