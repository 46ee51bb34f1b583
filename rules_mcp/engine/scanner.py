"""Single-pass section scanning over a line-indexed rule document.

Two consumers share this module:

- ``build_sections`` groups every header with its body, at both depths,
  for section listings.
- ``scan`` drives the query modes. It walks the document once, keeping
  the current title, the current body and whether the open region
  matches. A match found inside body text (not on a header) recovers its
  title by looking backwards for the nearest eligible header.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from .classifier import DEFAULT_DELIMITER, DEFAULT_INDENT_UNIT, LineKind, classify

Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class Section:
    """A header and the lines it owns.

    The body runs from the line after the header up to, not including, the
    next header of equal or higher rank. A top-level body therefore holds
    its sub-headers and their bodies verbatim.
    """

    title: str
    header_line: str
    content_lines: tuple[str, ...]
    level: int  # 1 = top-level, 2 = sub-level
    start_line: int  # 1-indexed header line
    end_line: int  # 1-indexed last body line (== start_line when empty)


@dataclass(frozen=True)
class ScanMode:
    """How ``scan`` treats headers and unanchored body matches."""

    # Headers that close the open region and start a new one.
    header_kinds: frozenset[LineKind]
    # Headers eligible as the recovered title of a body-text match.
    recovery_kinds: frozenset[LineKind]
    # Title for a body match with no eligible header above it; None drops the match.
    fallback_title: str | None
    # Emit "header line + body" verbatim instead of "## title" framing.
    raw_blocks: bool


@dataclass
class _ScanState:
    title: str = ""
    header_line: str = ""
    body: list[str] = field(default_factory=list)
    matching: bool = False


def document_lines(document: str | None) -> list[str]:
    """Split a document into lines; a missing document has none."""
    if not document:
        return []
    return document.splitlines()


def contains_term(term: str) -> Predicate:
    """Case-insensitive substring predicate."""
    needle = term.lower()
    return lambda text: needle in text.lower()


def build_sections(
    document: str | None,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> list[Section]:
    """Group the document into top-level and sub-level sections.

    Sections are returned in header order. Lines before the first header
    belong to no section.
    """
    lines = document_lines(document)
    total = len(lines)
    # [header index, level, end index (exclusive)]
    spans: list[list[int]] = []
    open_top: list[int] | None = None
    open_sub: list[int] | None = None

    for i, line in enumerate(lines):
        kind = classify(line, indent_unit, delimiter)
        if kind is LineKind.TOP_HEADER:
            for span in (open_sub, open_top):
                if span is not None:
                    span[2] = i
            open_sub = None
            open_top = [i, 1, total]
            spans.append(open_top)
        elif kind is LineKind.SUB_HEADER:
            if open_sub is not None:
                open_sub[2] = i
            open_sub = [i, 2, total]
            spans.append(open_sub)

    return [
        Section(
            title=lines[start].strip(),
            header_line=lines[start],
            content_lines=tuple(lines[start + 1 : end]),
            level=level,
            start_line=start + 1,
            end_line=max(end, start + 1),
        )
        for start, level, end in spans
    ]


def _recover_header(
    lines: list[str],
    kinds: list[LineKind],
    index: int,
    eligible: frozenset[LineKind],
) -> int | None:
    """Index of the nearest header above ``index`` whose kind is eligible."""
    for i in range(index - 1, -1, -1):
        if kinds[i] in eligible:
            return i
    return None


def _flush(state: _ScanState, mode: ScanMode, blocks: list[str]) -> None:
    body = state.body
    while body and not body[-1].strip():
        body.pop()

    if state.matching and body:
        if mode.raw_blocks:
            blocks.append("\n".join([state.header_line, *body]))
        else:
            blocks.append(f"## {state.title}\n" + "\n".join(body))

    state.body = []


def scan(
    document: str | None,
    predicate: Predicate,
    mode: ScanMode,
    indent_unit: int = DEFAULT_INDENT_UNIT,
    delimiter: str = DEFAULT_DELIMITER,
) -> list[str]:
    """Collect the formatted blocks of every matching region, in document order.

    A header whose title matches opens a region that absorbs every following
    line until the next header in ``mode.header_kinds``, matching or not.
    A non-header line that matches while no region is open opens one at
    that line, titled after the nearest eligible header above it.
    """
    lines = document_lines(document)
    kinds = [classify(line, indent_unit, delimiter) for line in lines]
    state = _ScanState()
    blocks: list[str] = []

    for i, (line, kind) in enumerate(zip(lines, kinds)):
        if kind in mode.header_kinds:
            _flush(state, mode, blocks)
            state.title = line.strip()
            state.header_line = line
            state.matching = predicate(state.title)
        elif state.matching:
            state.body.append(line)
        elif predicate(line):
            header = _recover_header(lines, kinds, i, mode.recovery_kinds)
            if header is not None:
                state.title = lines[header].strip()
                state.header_line = lines[header]
            elif mode.fallback_title is not None:
                state.title = state.header_line = mode.fallback_title
            else:
                continue
            state.matching = True
            state.body = [line]

    _flush(state, mode, blocks)
    return blocks
