"""Turn raw per-file status lines into ordered counts and a summary string."""

from typing import Dict, Iterable, Tuple

from vcsstatus.core.models import AnsiString
from vcsstatus.core.schema import StatusSchema
from vcsstatus.ui.output import get_colored_text, strip_ansi


def status_marker(line: str, width: int) -> str:
    """
    Leading status marker of one short-status line.

    Escapes are stripped first so colored and plain output yield the same
    marker.
    """
    return strip_ansi(line).rstrip()[:width]


def aggregate(lines: Iterable[str], schema: StatusSchema) -> Tuple[Dict[str, int], AnsiString]:
    """
    Count status codes in `lines` and render the summary.

    Every schema code is present in the returned counts, possibly at zero.
    A marker holding several codes (e.g. "RM") increments each of them.

    Returns:
        (counts, summary) where summary lists `glyph:count` for every code
        with a non-zero count, in schema order.
    """
    counts: Dict[str, int] = {code: 0 for code in schema.order}

    for line in lines:
        marker = status_marker(line, schema.marker_width)
        if not marker.strip():
            continue
        for code in counts:
            if code in marker:
                counts[code] += 1

    return counts, render_counts(counts, schema)


def render_counts(counts: Dict[str, int], schema: StatusSchema) -> AnsiString:
    tokens = []
    for entry in schema.codes:
        count = counts.get(entry.code, 0)
        if count > 0:
            tokens.append(get_colored_text(f"{entry.glyph}:{count}", entry.color))

    return AnsiString.from_colored(" ".join(tokens))
