"""Rule document tool handlers.

Handles:
- get_rules: free-text search, category retrieval, category listing or the
  full document, depending on the parameters given
- list_rule_sections: paginated header outline of a rule set
- list_rule_sets: available rule sets
"""

import logging

from ...documents import known_rule_sets, load_document
from ...models import (
    GetRulesParams,
    ListSectionsParams,
    QueryMode,
    RuleSetInfo,
    SectionDepth,
    SectionInfo,
    ToolResult,
)
from ..query import full_content, list_categories, search_by_category, search_by_query
from ..scanner import build_sections
from .base import HandlerContext, estimate_tokens

logger = logging.getLogger(__name__)

USAGE_HINTS = (
    "特定のカテゴリのルールを取得するには category パラメータを指定してください。",
    "キーワードでルールを検索するには query パラメータを指定してください。",
    "全てのルールを取得するにはパラメータを指定せずに呼び出してください。",
)


# ============ RESPONSE FORMATTING ============


def format_query_response(term: str, blocks: list[str]) -> str:
    if not blocks:
        return f'"{term}" に関する具体的なルールは見つかりませんでした。'
    return f'# "{term}" に関連するルール:\n\n' + "\n\n".join(blocks)


def format_category_response(term: str, blocks: list[str]) -> str:
    if not blocks:
        return f'"{term}" カテゴリのルールは見つかりませんでした。'
    return f'# "{term}" カテゴリのルール:\n\n' + "\n\n".join(blocks)


def format_categories_response(title: str, categories: list[str]) -> str:
    parts = [f"# {title} のカテゴリ一覧:", ""]
    if categories:
        parts.extend(categories)
        parts.append("")
    parts.extend(USAGE_HINTS)
    return "\n".join(parts)


def format_full_content_response(title: str, document: str) -> str:
    return f"# {title}:\n\n{document}"


def read_failure_message(title: str) -> str:
    return f"{title}ファイルの読み込みに失敗しました"


# ============ HANDLERS ============


async def handle_get_rules(
    params: GetRulesParams,
    ctx: HandlerContext,
) -> ToolResult:
    """Answer one rule query against the rule set's document.

    Args:
        params: Validated get_rules parameters; ``params.mode`` selects
            the query mode.
        ctx: Handler context naming the rule set and its file.

    Returns:
        ToolResult whose data is the response text
    """
    document = await load_document(ctx.document_path)
    if document is None:
        message = read_failure_message(ctx.rule_set_title)
        return ToolResult(data=message, input_tokens=0, output_tokens=estimate_tokens(message))

    indent_unit = ctx.settings.indent_unit
    delimiter = ctx.settings.header_delimiter
    mode = params.mode

    if mode is QueryMode.LIST_CATEGORIES:
        response = format_categories_response(
            ctx.rule_set_title, list_categories(document, indent_unit, delimiter)
        )
        term = ""
    elif mode is QueryMode.CATEGORY:
        term = params.category
        response = format_category_response(
            term, search_by_category(document, term, indent_unit, delimiter)
        )
    elif mode is QueryMode.QUERY:
        term = params.query
        response = format_query_response(
            term, search_by_query(document, term, indent_unit, delimiter)
        )
    else:
        response = format_full_content_response(ctx.rule_set_title, full_content(document))
        term = ""

    logger.debug(f"get_rules rule_set={ctx.rule_set} mode={mode.value} chars={len(response)}")

    return ToolResult(
        data=response,
        input_tokens=estimate_tokens(term),
        output_tokens=estimate_tokens(response),
    )


async def handle_list_rule_sections(
    params: ListSectionsParams,
    ctx: HandlerContext,
) -> ToolResult:
    """List the header outline of a rule set with pagination."""
    document = await load_document(ctx.document_path)
    if document is None:
        message = read_failure_message(ctx.rule_set_title)
        return ToolResult(data=message, input_tokens=0, output_tokens=estimate_tokens(message))

    all_sections = build_sections(
        document, ctx.settings.indent_unit, ctx.settings.header_delimiter
    )
    title_filter = params.filter.lower()
    if title_filter:
        all_sections = [s for s in all_sections if title_filter in s.title.lower()]

    total_count = len(all_sections)
    paginated = all_sections[params.offset : params.offset + params.limit]

    sections = [
        SectionInfo(
            title=s.title,
            depth=SectionDepth.TOP if s.level == 1 else SectionDepth.SUB,
            start_line=s.start_line,
            end_line=s.end_line,
        ).model_dump(mode="json")
        for s in paginated
    ]

    response = {
        "rule_set": ctx.rule_set,
        "total_sections": total_count,
        "returned": len(sections),
        "offset": params.offset,
        "limit": params.limit,
        "has_more": (params.offset + params.limit) < total_count,
        "sections": sections,
    }

    return ToolResult(data=response, input_tokens=0, output_tokens=len(sections) * 20)


async def handle_list_rule_sets(
    params: object,
    ctx: HandlerContext,
) -> ToolResult:
    """List the rule sets this server can answer for."""
    config = ctx.settings
    rule_sets = [
        RuleSetInfo(
            name=name,
            title=config.rule_set_title(name),
            is_default=name == config.default_rule_set,
        ).model_dump()
        for name in known_rule_sets(config)
    ]
    response = {"default": config.default_rule_set, "rule_sets": rule_sets}
    return ToolResult(data=response, input_tokens=0, output_tokens=len(rule_sets) * 10)
