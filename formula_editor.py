#!/usr/bin/env python3
"""
Formula Editor — type LaTeX-like markup, see it typeset, export SVG.

Opens a matplotlib window with a markup entry box, a live preview that is
re-laid out on every keystroke, and a "Save SVG" button. The same layout can
be exported without a window from the command line.

Usage:
    # Interactive editor
    python formula_editor.py --edit "\\frac{1}{2}"

    # Export straight to files
    python formula_editor.py "\\sum_{i=1}^{n} i^2" --name squares -f svg -f png

    # As a module
    from formula_editor import FormulaEditor
    FormulaEditor(r"\\sqrt[3]{x}").show()
"""

import argparse
import logging
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.widgets import Button, TextBox

from formula_parser import BASE_FONT_SIZE, parse_formula
from formula_renderers import (
    FigureRenderer,
    SVG_PADDING,
    render_figure,
    save_figure,
    save_svg,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURATION - Edit these for Spyder / interactive use
# ============================================================================
FORMULA = None              # Markup to render, or None to use CLI/input file
INPUT_FILE = None           # Path to a text file holding the markup, or None
OUTPUT_DIR = "output"
OUTPUT_NAME = "formula"
FONT_SIZE = BASE_FONT_SIZE
FORMATS = ("svg",)          # Any of "svg", "png", "pdf"
DPI = 300
PADDING = SVG_PADDING
SHOW_PLOT = False
WINDOW_SIZE = (10, 6)       # Editor window, inches
PREVIEW_ORIGIN = (50, 40)   # Formula top-left inside the preview, points
# ============================================================================

SUPPORTED_FORMATS = ("svg", "png", "pdf")

class FormulaEditor:
    """Interactive editor: markup box, live preview and SVG export.

    Parameters
    ----------
    formula : str
        Initial markup.
    output_path : str or Path
        Where "Save SVG" writes the current formula.
    font_size : int
        Base font size in points.
    measurer : formula_renderers.TextMeasurer, optional
        Metrics source; the shared measurer is used if omitted.
    """

    def __init__(self, formula="", output_path=None, font_size=FONT_SIZE,
                 measurer=None):
        if font_size <= 0:
            raise ValueError(f"font_size must be positive, got {font_size}.")
        self.formula = formula
        self.output_path = Path(output_path or Path(OUTPUT_DIR) / f"{OUTPUT_NAME}.svg")
        self.font_size = font_size
        self.measurer = measurer
        self.renderer = FigureRenderer(measurer=measurer, font_size=font_size)
        self.root = None

        self.fig = plt.figure(figsize=WINDOW_SIZE)
        self.fig.set_facecolor("white")
        manager = self.fig.canvas.manager
        if manager is not None:
            manager.set_window_title("Formula Editor")

        text_ax = self.fig.add_axes([0.14, 0.88, 0.66, 0.06])
        button_ax = self.fig.add_axes([0.83, 0.88, 0.14, 0.06])
        self.fig.text(0.02, 0.80, "Output:", fontsize=10, va="top")
        self.preview_ax = self.fig.add_axes([0.02, 0.02, 0.96, 0.76])

        self.text_box = TextBox(text_ax, "LaTeX Input: ", initial=formula)
        self.text_box.on_text_change(self.on_text_change)
        self.save_button = Button(button_ax, "Save SVG")
        self.save_button.on_clicked(self.on_save)

        self.redraw()

    def on_text_change(self, text):
        self.formula = text
        self.redraw()

    def redraw(self):
        """Re-parse the current markup and repaint the preview.

        Returns
        -------
        formula_nodes.SequenceNode
            The freshly measured layout tree.
        """
        root = parse_formula(self.formula, self.font_size)
        root.measure(self.renderer)
        self.renderer.prepare(self.preview_ax)
        x, top = PREVIEW_ORIGIN
        root.draw(self.renderer, x, top + root.ascent)
        self.renderer.finish()
        self.root = root
        logger.debug("Preview %r laid out at %dx%d", self.formula, root.width, root.height)
        self.fig.canvas.draw_idle()
        return root

    def on_save(self, event=None):
        """Write the current formula to ``output_path`` as SVG."""
        return save_svg(self.formula, self.output_path, font_size=self.font_size,
                        measurer=self.measurer)

    def show(self):
        plt.show()

def _read_formula(path):
    return Path(path).read_text(encoding="utf-8").strip()

def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Typeset LaTeX-like formula markup to SVG, PNG or PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Supported markup:
  \\frac{a}{b}  \\sqrt{x}  \\sqrt[n]{x}  x^2  x_i  \\sum_{i=1}^{n}  \\prod  \\int_a^b
  \\lim_{x \\to 0}  \\left( ... \\right)  \\mathrm{text}  \\sin \\cos \\log ...
  \\alpha ... \\Omega  \\infty \\approx \\neq \\le \\ge \\pm \\cdot \\to
  \\, \\! \\quad \\thinspace
        """,
    )
    parser.add_argument(
        "formula", nargs="?", default=None,
        help="Formula markup (quote it for the shell).",
    )
    parser.add_argument(
        "--input", "-i", type=str, default=None,
        help="Path to a text file containing the formula markup.",
    )
    parser.add_argument(
        "--output", "-o", type=str, default=None,
        help=f"Output directory (default: {OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--name", "-n", type=str, default=None,
        help=f"Output base filename (default: {OUTPUT_NAME}).",
    )
    parser.add_argument(
        "--format", "-f", dest="formats", action="append",
        choices=SUPPORTED_FORMATS, default=None,
        help="Output format; repeat for several (default: svg).",
    )
    parser.add_argument(
        "--fontsize", type=int, default=None,
        help=f"Base font size in points (default: {FONT_SIZE}).",
    )
    parser.add_argument(
        "--padding", type=int, default=None,
        help=f"Margin around the formula in pixels (default: {PADDING}).",
    )
    parser.add_argument(
        "--dpi", type=int, default=None,
        help=f"Raster output DPI (default: {DPI}).",
    )
    parser.add_argument(
        "--edit", action="store_true",
        help="Open the interactive editor window.",
    )
    parser.add_argument(
        "--show", action="store_true",
        help="Display the rendered figure interactively.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log parser diagnostics (unknown commands, unclosed \\left).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Resolve settings: CLI args > constants
    formula = args.formula or FORMULA
    input_file = args.input or INPUT_FILE
    if formula is None and input_file:
        formula = _read_formula(input_file)

    outdir = Path(args.output or OUTPUT_DIR)
    name = args.name or OUTPUT_NAME
    fontsize = args.fontsize if args.fontsize is not None else FONT_SIZE
    padding = args.padding if args.padding is not None else PADDING
    formats = tuple(dict.fromkeys(args.formats or FORMATS))
    dpi = args.dpi or DPI
    show = args.show or SHOW_PLOT

    if fontsize <= 0:
        parser.error(f"--fontsize must be positive, got {fontsize}.")
    if padding < 0:
        parser.error(f"--padding must not be negative, got {padding}.")

    if args.edit:
        editor = FormulaEditor(formula or "", outdir / f"{name}.svg", font_size=fontsize)
        editor.show()
        return

    if formula is None:
        parser.error(
            "No formula provided. Pass it as an argument, use --input to "
            "specify a file, or set FORMULA in the script."
        )

    print(f"Rendering: {formula}")
    paths = []
    if "svg" in formats:
        paths.append(save_svg(formula, outdir / f"{name}.svg",
                              font_size=fontsize, padding=padding))

    figure_formats = tuple(fmt for fmt in formats if fmt != "svg")
    if figure_formats or show:
        fig = render_figure(formula, font_size=fontsize, padding=padding)
        if figure_formats:
            paths.extend(save_figure(fig, name, outdir, formats=figure_formats, dpi=dpi))
        if show:
            plt.show()
        else:
            plt.close(fig)

    print(f"Done! {len(paths)} file(s) written.")


if __name__ == "__main__":
    main()
