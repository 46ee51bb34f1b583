"""Query entry points over a loaded rule document.

None of these raise: a missing, empty or malformed document yields an
empty result, and the caller decides how to word "nothing found".

Free-text results use ``## title`` framing while category results keep
the section verbatim. Both formats are part of the tool output.
"""

from .classifier import DEFAULT_DELIMITER, DEFAULT_INDENT_UNIT, LineKind, classify
from .scanner import ScanMode, contains_term, document_lines, scan

RELATED_RULES_TITLE = "Related Rules"

_HEADERS = frozenset({LineKind.TOP_HEADER, LineKind.SUB_HEADER})
_TOP_HEADERS = frozenset({LineKind.TOP_HEADER})

FREE_TEXT_MODE = ScanMode(
    header_kinds=_HEADERS,
    recovery_kinds=_HEADERS,
    fallback_title=RELATED_RULES_TITLE,
    raw_blocks=False,
)

# Sub-headers are ordinary body lines here, and a body match is only kept
# when a top-level header sits somewhere above it.
CATEGORY_MODE = ScanMode(
    header_kinds=_TOP_HEADERS,
    recovery_kinds=_TOP_HEADERS,
    fallback_title=None,
    raw_blocks=True,
)


def search_by_query(
    document: str | None,
    term: str,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> list[str]:
    """Blocks whose header title or body text contains ``term``."""
    return scan(document, contains_term(term), FREE_TEXT_MODE, indent_unit, delimiter)


def search_by_category(
    document: str | None,
    term: str,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> list[str]:
    """Verbatim top-level sections whose category title contains ``term``."""
    return scan(document, contains_term(term), CATEGORY_MODE, indent_unit, delimiter)


def list_categories(
    document: str | None,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> list[str]:
    """Top-level header titles in document order, duplicates included."""
    return [
        line.strip().replace(delimiter, "", 1)
        for line in document_lines(document)
        if classify(line, indent_unit, delimiter) is LineKind.TOP_HEADER
    ]


def full_content(document: str | None) -> str:
    return document or ""
