"""
Terminal color helpers.

Colors are applied unconditionally here; whether a response shows them is
decided by the response builder, which falls back to the plain variants.
"""

import re
from typing import Dict


# SGR codes for the named colors used by the inspectors and schemas
TEXT_COLOR_MAPPING: Dict[str, str] = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "white": "37",
    "bright_red": "91",
    "bright_green": "92",
    "bright_yellow": "93",
    "bright_blue": "94",
    "bright_magenta": "95",
    "bright_cyan": "96",
}

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[mKHfJ]")


def get_colored_text(text: str, color: str) -> str:
    """
    Get colored text.

    Args:
        text: The text to color
        color: The color to use

    Returns:
        Colored text string

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )

    return f"\x1b[{TEXT_COLOR_MAPPING[color]}m{text}\x1b[0m"


def strip_ansi(text: str) -> str:
    """Remove ANSI color and cursor escapes from text."""
    return ANSI_ESCAPE_RE.sub("", text)
