"""
Rendering backends for formula layout trees.

The layout engine in ``formula_nodes`` only talks to the abstract
``Renderer`` below. Two backends are provided:

- ``FigureRenderer`` draws into a matplotlib Axes whose data coordinates are
  layout pixels (one pixel per point, y pointing down). Used for on-screen
  preview and raster/PDF export.
- ``SVGRenderer`` accumulates ``<line>``/``<text>`` elements and assembles a
  standalone SVG document.

Both answer metric queries through the same ``TextMeasurer``, which measures
strings with matplotlib's Agg text engine, so the layout is identical
whichever backend draws it.

Usage:
    from formula_renderers import render_svg, render_figure, save_svg
    svg_text = render_svg(r"\\frac{1}{2}")
    save_svg(r"x^2 + y^2", "output/circle.svg")
    fig = render_figure(r"\\sqrt{x}")
"""

from abc import ABC, abstractmethod
from html import escape
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure
from matplotlib.font_manager import FontProperties, findfont, get_font

from formula_nodes import BASELINE_RATIO
from formula_parser import BASE_FONT_SIZE, parse_formula

# ============================================================================
# CONFIGURATION
# ============================================================================
FONT_FAMILY = "serif"
POINTS_PER_INCH = 72        # Measuring at 72 dpi makes one point one pixel
LINE_HEIGHT_SAMPLE = "Tg"   # Tallest ascender plus deepest descender
STROKE_COLOR = "black"
STROKE_WIDTH = 1.5
BACKGROUND_COLOR = "white"
SVG_PADDING = 50
SVG_EXTRA_HEIGHT = 20       # Additional room below the formula
# ============================================================================


# ============================================================================
# Text measurement
# ============================================================================

class TextMeasurer:
    """Measure strings with matplotlib's Agg renderer.

    Parameters
    ----------
    font_family : str
        Any family matplotlib's font manager understands.
    """

    def __init__(self, font_family=FONT_FAMILY):
        self.font_family = font_family
        self._figure = Figure(dpi=POINTS_PER_INCH)
        self._renderer = FigureCanvasAgg(self._figure).get_renderer()
        self._widths = {}
        self._line_heights = {}

    def font(self, size, italic=False):
        return FontProperties(
            family=self.font_family,
            style="italic" if italic else "normal",
            size=size,
        )

    def family_name(self):
        """Return the name of the font file *font_family* resolves to."""
        return get_font(findfont(self.font(BASE_FONT_SIZE))).family_name

    def _extent(self, text, size, italic):
        width, height, _ = self._renderer.get_text_width_height_descent(
            text, self.font(size, italic), ismath=False,
        )
        return width, height

    def text_width(self, text, size, italic=False):
        """Return the advance width of *text* in whole pixels."""
        if not text:
            return 0
        key = (text, size, italic)
        if key not in self._widths:
            if text != text.strip():
                # Agg reports ink extents; bracket the text so its spaces count
                width = (self._extent(f"|{text}|", size, italic)[0]
                         - self._extent("||", size, italic)[0])
            else:
                width = self._extent(text, size, italic)[0]
            self._widths[key] = int(round(width))
        return self._widths[key]

    def line_height(self, size, italic=False):
        """Return the line height for a font, in whole pixels."""
        key = (size, italic)
        if key not in self._line_heights:
            height = self._extent(LINE_HEIGHT_SAMPLE, size, italic)[1]
            self._line_heights[key] = max(1, int(round(height)))
        return self._line_heights[key]


_default_measurer = None


def get_measurer():
    """Return the shared ``TextMeasurer``, creating it on first use."""
    global _default_measurer
    if _default_measurer is None:
        _default_measurer = TextMeasurer()
    return _default_measurer


# ============================================================================
# Renderer capability
# ============================================================================

class Renderer(ABC):
    """Text metrics and drawing primitives consumed by the layout nodes.

    The renderer carries one current font size and style. Nodes set both
    immediately before measuring or drawing text.
    """

    def __init__(self, font_size=BASE_FONT_SIZE, italic=False):
        self.font_size = BASE_FONT_SIZE
        self.italic = False
        self.set_font_size(font_size)
        self.set_font_style(italic)

    def set_font_size(self, points):
        if points <= 0:
            raise ValueError(f"Font size must be positive, got {points}.")
        self.font_size = int(points)

    def set_font_style(self, italic):
        self.italic = bool(italic)

    def baseline_offset(self):
        """Distance from the top of a text line box to its baseline."""
        return int(self.line_height() * BASELINE_RATIO)

    @abstractmethod
    def measure_text_width(self, text):
        """Return the width of *text* in the current font."""

    @abstractmethod
    def line_height(self):
        """Return the line height of the current font."""

    @abstractmethod
    def draw_line(self, x1, y1, x2, y2):
        """Draw a straight segment."""

    @abstractmethod
    def draw_text(self, x, y, text):
        """Draw *text* with the top-left of its line box at ``(x, y)``."""


class MeasuringRenderer(Renderer):
    """Renderer whose metrics come from a ``TextMeasurer``."""

    def __init__(self, measurer=None, font_size=BASE_FONT_SIZE, italic=False):
        super().__init__(font_size=font_size, italic=italic)
        self.measurer = measurer or get_measurer()

    def measure_text_width(self, text):
        return self.measurer.text_width(text, self.font_size, self.italic)

    def line_height(self):
        return self.measurer.line_height(self.font_size, self.italic)


# ============================================================================
# matplotlib surface
# ============================================================================

class FigureRenderer(MeasuringRenderer):
    """Draw into a matplotlib Axes laid out in layout pixels.

    Call ``prepare`` with the target Axes before drawing and ``finish``
    afterwards; text is added immediately, line segments are collected and
    added as one ``LineCollection``.
    """

    def __init__(self, measurer=None, color=STROKE_COLOR, linewidth=STROKE_WIDTH,
                 font_size=BASE_FONT_SIZE):
        super().__init__(measurer=measurer, font_size=font_size)
        self.color = color
        self.linewidth = linewidth
        self.ax = None
        self._segments = []

    def prepare(self, ax, width=None, height=None):
        """Clear *ax* and map its data coordinates onto layout pixels.

        Without an explicit size the Axes' on-screen extent (in points) is
        used, so text drawn in points keeps its size relative to lines.
        """
        if width is None or height is None:
            fig = ax.figure
            scale = POINTS_PER_INCH / fig.dpi
            width = ax.bbox.width * scale
            height = ax.bbox.height * scale
        ax.clear()
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_axis_off()
        self.ax = ax
        self._segments = []
        return width, height

    def _require_axes(self):
        if self.ax is None:
            raise RuntimeError("FigureRenderer.prepare() must be called before drawing.")

    def draw_line(self, x1, y1, x2, y2):
        self._require_axes()
        self._segments.append(((x1, y1), (x2, y2)))

    def draw_text(self, x, y, text):
        self._require_axes()
        self.ax.text(
            x, y + self.baseline_offset(), text,
            fontproperties=self.measurer.font(self.font_size, self.italic),
            color=self.color,
            ha="left", va="baseline",
            parse_math=False,
        )

    def finish(self):
        """Add the collected line segments to the Axes."""
        self._require_axes()
        if self._segments:
            segments = np.asarray(self._segments, dtype=float)
            self.ax.add_collection(LineCollection(
                segments, colors=self.color, linewidths=self.linewidth,
                capstyle="round",
            ))
        self._segments = []


# ============================================================================
# SVG export
# ============================================================================

class SVGRenderer(MeasuringRenderer):
    """Accumulate drawing calls as SVG elements."""

    def __init__(self, measurer=None, font_size=BASE_FONT_SIZE,
                 font_family=None, stroke=STROKE_COLOR,
                 stroke_width=STROKE_WIDTH):
        super().__init__(measurer=measurer, font_size=font_size)
        # Name the font the metrics came from so viewers lay it out the same
        self.font_family = font_family or f"{self.measurer.family_name()}, serif"
        self.stroke = stroke
        self.stroke_width = stroke_width
        self.elements = []

    def draw_line(self, x1, y1, x2, y2):
        self.elements.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
            f'stroke="{self.stroke}" stroke-width="{self.stroke_width}" />'
        )

    def draw_text(self, x, y, text):
        style = "italic" if self.italic else "normal"
        baseline_y = y + self.baseline_offset()
        self.elements.append(
            f'<text x="{x}" y="{baseline_y}" '
            f'font-family="{escape(self.font_family)}" font-style="{style}" '
            f'font-size="{self.font_size}" xml:space="preserve">'
            f"{escape(text, quote=False)}</text>"
        )

    def get_content(self):
        """Return the accumulated elements, one per line."""
        return "".join(f"{element}\n" for element in self.elements)

    def document(self, root, padding=SVG_PADDING):
        """Draw a measured *root* and return a complete SVG document.

        Parameters
        ----------
        root : formula_nodes.Node
            Layout tree on which ``measure`` has already run.
        padding : int
            Margin around the formula, in pixels.

        Returns
        -------
        str
        """
        width = root.width + padding * 2
        height = root.height + padding * 2 + SVG_EXTRA_HEIGHT
        self.elements = []
        root.draw(self, padding, padding + root.ascent)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" '
            f'height="{height}" viewBox="0 0 {width} {height}">\n'
            f'<rect width="100%" height="100%" fill="{BACKGROUND_COLOR}" />\n'
            f"{self.get_content()}"
            "</svg>"
        )


# ============================================================================
# Convenience functions
# ============================================================================

def render_svg(markup, font_size=BASE_FONT_SIZE, padding=SVG_PADDING, measurer=None):
    """Parse, lay out and draw *markup* as an SVG document string."""
    renderer = SVGRenderer(measurer=measurer, font_size=font_size)
    root = parse_formula(markup, font_size)
    root.measure(renderer)
    return renderer.document(root, padding=padding)


def save_svg(markup, path, font_size=BASE_FONT_SIZE, padding=SVG_PADDING,
             measurer=None):
    """Render *markup* and write it to *path* as UTF-8 SVG.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    svg_text = render_svg(markup, font_size=font_size, padding=padding,
                          measurer=measurer)
    path.write_text(svg_text, encoding="utf-8")
    print(f"  Saved: {path}")
    return path


def render_figure(markup, font_size=BASE_FONT_SIZE, padding=SVG_PADDING,
                  measurer=None, color=STROKE_COLOR,
                  background_color=BACKGROUND_COLOR):
    """Lay out *markup* and draw it into a new matplotlib figure.

    The figure is sized to the formula plus *padding* on every side, at one
    point per layout pixel.

    Returns
    -------
    matplotlib.figure.Figure
    """
    renderer = FigureRenderer(measurer=measurer, color=color, font_size=font_size)
    root = parse_formula(markup, font_size)
    root.measure(renderer)

    width = max(1, root.width + padding * 2)
    height = max(1, root.height + padding * 2)
    fig = plt.figure(
        figsize=(width / POINTS_PER_INCH, height / POINTS_PER_INCH),
        dpi=POINTS_PER_INCH,
    )
    fig.set_facecolor(background_color)
    ax = fig.add_axes([0, 0, 1, 1])
    renderer.prepare(ax, width, height)
    root.draw(renderer, padding, padding + root.ascent)
    renderer.finish()
    return fig


def save_figure(fig, name, outdir, formats=("png",), dpi=300):
    """Save a matplotlib figure in multiple formats.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
    name : str
        Base filename (no extension).
    outdir : str or Path
        Output directory (created if needed).
    formats : tuple of str
        File formats to save.
    dpi : int
        Resolution for raster formats.

    Returns
    -------
    list of Path
        Paths to saved files.
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    paths = []
    for fmt in formats:
        path = outdir / f"{name}.{fmt}"
        fig.savefig(
            path,
            format=fmt,
            dpi=dpi,
            facecolor=fig.get_facecolor(),
            edgecolor="none",
        )
        paths.append(path)
        print(f"  Saved: {path}")
    return paths
