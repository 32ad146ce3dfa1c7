"""
Symbol table for the formula markup.

Maps backslash command names (``alpha``, ``to``, ``quad``...) to the literal
glyph or spacing string they stand for. The table is built once at import
time and exposed read-only.

Usage:
    from formula_symbols import lookup_symbol, is_function_name
    lookup_symbol("alpha")      # -> "α"
    lookup_symbol("nosuch")     # -> None
"""

from types import MappingProxyType

# ============================================================================
# CONFIGURATION
# ============================================================================
PLACEHOLDER = "?"           # Shown for unknown commands
SUMMATION_GLYPH = "∑"       # Used for both \sum and \prod
INTEGRAL_GLYPH = "∫"
LIMIT_WORD = "lim"
FINE_SPACE_RATIO = 0.15     # \, and \! offset as a fraction of font size
# ============================================================================

_UPPER_GREEK = {
    "Alpha": "Α", "Beta": "Β", "Gamma": "Γ",
    "Delta": "Δ", "Epsilon": "Ε", "Zeta": "Ζ",
    "Eta": "Η", "Theta": "Θ", "Lambda": "Λ",
    "Xi": "Ξ", "Pi": "Π", "Sigma": "Σ",
    "Phi": "Φ", "Psi": "Ψ", "Omega": "Ω",
}

_LOWER_GREEK = {
    "alpha": "α", "beta": "β", "gamma": "γ",
    "delta": "δ", "epsilon": "ε", "zeta": "ζ",
    "eta": "η", "theta": "θ", "lambda": "λ",
    "xi": "ξ", "pi": "π", "sigma": "σ",
    "phi": "φ", "psi": "ψ", "omega": "ω",
}

_OPERATORS = {
    "infty": "∞",
    "approx": "≈",
    "neq": "≠",
    "le": "≤",
    "ge": "≥",
    "pm": "±",
    "cdot": "∙",
    "to": "→",
}

_SPACING = {
    "thinspace": " ",
    "quad": "  ",
    "!": "",
    ",": "",
    "'": "'",
}

SYMBOLS = MappingProxyType({
    **_UPPER_GREEK,
    **_LOWER_GREEK,
    **_OPERATORS,
    **_SPACING,
})

# Function names typeset upright, spelled literally
FUNCTION_NAMES = frozenset({
    "sin", "cos", "tan", "log", "ln", "lg", "exp",
    "sinh", "cosh", "asin", "acos",
})


def lookup_symbol(name):
    """Return the glyph for command *name*, or None if it is not a symbol."""
    return SYMBOLS.get(name)


def is_function_name(name):
    return name in FUNCTION_NAMES
