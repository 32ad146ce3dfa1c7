#!/usr/bin/env python3
"""
Example: a gallery of typeset formulas.

Renders one SVG per formula to exercise every layout node: fractions, roots,
scripts, big operators, integrals, limits and scaling fences.
"""

from pathlib import Path

from formula_renderers import save_svg

# ============================================================================
# CONFIGURATION
# ============================================================================
OUTPUT_DIR = "output/gallery"
FONT_SIZE = 28
# ============================================================================

GALLERY = {
    "quadratic": r"x = \frac{-b \pm \sqrt{b^2 - 4ac}}{2a}",
    "euler": r"e^{i\pi} + 1 = 0",
    "basel": r"\sum_{n=1}^{\infty} \frac{1}{n^2} = \frac{\pi^2}{6}",
    "gaussian": r"\int_{-\infty}^{\infty} e^{-x^2} \, dx = \sqrt{\pi}",
    "derivative": r"\lim_{h \to 0} \frac{f(x+h) - f(x)}{h}",
    "cube_root": r"\sqrt[3]{\frac{a}{b}}",
    "norm": r"\left| \frac{x_1^2 + x_2^2}{2} \right|",
    "interval": r"\left[ \alpha, \beta \right]",
    "trig": r"\sin^2\theta + \cos^2\theta = 1",
    "log_sum": r"\log\left(\prod_{k=1}^{n} a_k\right) = \sum_{k=1}^{n} \ln a_k",
    "units": r"v = 3 \cdot 10^8 \, \mathrm{m/s}",
}


def render_gallery(output_dir=OUTPUT_DIR, font_size=FONT_SIZE):
    """Write every gallery formula as ``<name>.svg`` under *output_dir*.

    Returns
    -------
    list of Path
    """
    output_dir = Path(output_dir)
    paths = []
    for name, markup in GALLERY.items():
        print(f"Rendering {name}: {markup}")
        paths.append(save_svg(markup, output_dir / f"{name}.svg", font_size=font_size))
    return paths


def main():
    paths = render_gallery()
    print(f"Done! {len(paths)} formulas rendered to {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
