"""Rule document query engine.

Recovers a two-level category/subsection structure from indentation alone
and answers free-text, category and category-listing queries against it.
"""

from .classifier import DEFAULT_DELIMITER, DEFAULT_INDENT_UNIT, LineKind, classify
from .query import (
    RELATED_RULES_TITLE,
    full_content,
    list_categories,
    search_by_category,
    search_by_query,
)
from .scanner import Section, build_sections

__all__ = [
    "DEFAULT_DELIMITER",
    "DEFAULT_INDENT_UNIT",
    "LineKind",
    "classify",
    "Section",
    "build_sections",
    "RELATED_RULES_TITLE",
    "search_by_query",
    "search_by_category",
    "list_categories",
    "full_content",
]
