"""
Vector File Parser

Streams NIST CAVP response files (.rsp) line by line and turns each
significant line into a (label, value) field event.

Line rules:
- Everything from the first '#' onward is a comment
- Blank lines (after comment removal) carry no event
- A significant line must split into exactly three tokens: label, '=', value
- Anything else is malformed and silently dropped, since vector files
  carry harmless header and descriptor lines

The parser has no lookahead: fields are handed to the drivers in file order.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from ..config import HARNESS_DIR
from ..errors import MalformedLine, VectorFileNotFound


COMMENT_MARKER = "#"
SEPARATOR = "="


class LineKind(Enum):
    """Classification of a single vector file line."""
    FIELD = "field"
    BLANK = "blank"          # Empty or comment-only
    MALFORMED = "malformed"


@dataclass(frozen=True)
class VectorLine:
    """One classified input line."""
    kind: LineKind
    line_number: int
    label: str = ""
    value: str = ""

    @property
    def is_field(self) -> bool:
        return self.kind == LineKind.FIELD


# ============================================================================
# Path Resolution
# ============================================================================

def resolve_vector_path(
    path: Union[str, Path],
    search_dirs: Optional[Sequence[Path]] = None
) -> Path:
    """
    Locate a vector file.

    The path is tried as given (relative to the working directory), then
    relative to each search directory, then relative to the harness's own
    installation directory.

    Raises:
        VectorFileNotFound: If no candidate exists
    """
    path = Path(path)
    candidates = [path]
    if not path.is_absolute():
        for directory in search_dirs or ():
            candidates.append(Path(directory) / path)
        candidates.append(HARNESS_DIR / path)

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise VectorFileNotFound(path, searched=candidates)


# ============================================================================
# Line Classification
# ============================================================================

def classify_line(raw: str, line_number: int = 0) -> VectorLine:
    """Classify one raw line as a field, blank/comment, or malformed line."""
    text = raw.split(COMMENT_MARKER, 1)[0].strip()
    if not text:
        return VectorLine(LineKind.BLANK, line_number)

    if SEPARATOR not in text:
        return VectorLine(LineKind.MALFORMED, line_number)

    tokens = text.split()
    if len(tokens) != 3 or tokens[1] != SEPARATOR:
        return VectorLine(LineKind.MALFORMED, line_number)

    return VectorLine(LineKind.FIELD, line_number, label=tokens[0], value=tokens[2])


def parse_field(raw: str) -> Tuple[str, str]:
    """
    Parse a single significant line into (label, value).

    Raises:
        MalformedLine: If the line is blank or not a label = value triple
    """
    line = classify_line(raw)
    if not line.is_field:
        raise MalformedLine(f"Not a 'label = value' line: {raw.strip()!r}")
    return line.label, line.value


def iter_lines(lines: Iterable[str]) -> Iterator[VectorLine]:
    """Classify each line of an iterable of text lines (1-based numbering)."""
    for number, raw in enumerate(lines, start=1):
        yield classify_line(raw, number)


def iter_fields(lines: Iterable[str]) -> Iterator[VectorLine]:
    """Yield only the field lines; blank and malformed lines are dropped."""
    for line in iter_lines(lines):
        if line.is_field:
            yield line


def iter_vector_lines(path: Union[str, Path]) -> Iterator[VectorLine]:
    """Stream classified lines from a vector file."""
    with open(path, "r", encoding="ascii", errors="replace") as f:
        yield from iter_lines(f)


def iter_vector_fields(path: Union[str, Path]) -> Iterator[VectorLine]:
    """Stream field events from a vector file."""
    with open(path, "r", encoding="ascii", errors="replace") as f:
        yield from iter_fields(f)
