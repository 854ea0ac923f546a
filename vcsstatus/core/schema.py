"""
Per-VCS status code schemas.

Each schema lists the per-file status codes a VCS reports, in the order they
are displayed, with the glyph and color used for each. Schemas are module
constants and never change at runtime, so concurrent inspections share them
freely.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class StatusCode:
    code: str
    glyph: str
    color: str
    meaning: str


@dataclass(frozen=True)
class StatusSchema:
    vcs: str
    marker_width: int
    codes: Tuple[StatusCode, ...]

    @property
    def order(self) -> Tuple[str, ...]:
        return tuple(entry.code for entry in self.codes)

    def get(self, code: str) -> StatusCode:
        for entry in self.codes:
            if entry.code == code:
                return entry
        raise KeyError(code)


GIT_SCHEMA = StatusSchema(
    vcs="git",
    marker_width=2,
    codes=(
        StatusCode("M", "M", "green", "modified"),
        StatusCode("A", "+", "bright_green", "added"),
        StatusCode("D", "-", "bright_red", "deleted"),
        StatusCode("R", "R", "bright_yellow", "renamed"),
        StatusCode("C", "C", "bright_blue", "copied"),
        StatusCode("U", "U", "bright_magenta", "updated"),
        StatusCode("?", "?", "red", "untracked"),
        StatusCode("!", "!", "cyan", "ignored"),
    ),
)

HG_SCHEMA = StatusSchema(
    vcs="hg",
    marker_width=1,
    codes=(
        StatusCode("M", "M", "green", "modified"),
        StatusCode("A", "+", "bright_green", "added"),
        StatusCode("R", "-", "bright_red", "removed"),
        StatusCode("C", "C", "bright_blue", "clean"),
        StatusCode("!", "!", "bright_magenta", "missing"),
        StatusCode("?", "?", "red", "untracked"),
        StatusCode("I", "I", "cyan", "ignored"),
    ),
)

SCHEMAS: Mapping[str, StatusSchema] = MappingProxyType({
    GIT_SCHEMA.vcs: GIT_SCHEMA,
    HG_SCHEMA.vcs: HG_SCHEMA,
})
