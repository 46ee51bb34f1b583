"""Line classification for indentation-structured rule documents.

A header is recognised purely by its leading-space width and the presence
of the delimiter character. Body text indented to exactly a header width
that happens to contain the delimiter is classified as a header too; the
documents are hand-authored and this ambiguity is accepted.
"""

from enum import Enum

DEFAULT_INDENT_UNIT = 2
DEFAULT_DELIMITER = ":"


class LineKind(str, Enum):
    """Structural role of a single line."""

    TOP_HEADER = "top_header"
    SUB_HEADER = "sub_header"
    CONTENT = "content"
    BLANK = "blank"


def indent_width(line: str) -> int:
    """Count leading space characters (tabs are not indentation)."""
    return len(line) - len(line.lstrip(" "))


def classify(
    line: str,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> LineKind:
    """Classify one line as top header, sub header, content or blank."""
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK

    if delimiter in stripped:
        width = indent_width(line)
        if width == indent_unit and width < 2 * indent_unit:
            return LineKind.TOP_HEADER
        if width == 2 * indent_unit and width < 3 * indent_unit:
            return LineKind.SUB_HEADER

    return LineKind.CONTENT
