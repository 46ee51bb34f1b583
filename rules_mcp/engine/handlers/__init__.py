"""Tool handlers for the rules engine."""

from .base import HandlerContext, estimate_tokens
from .rules import handle_get_rules, handle_list_rule_sections, handle_list_rule_sets

__all__ = [
    "HandlerContext",
    "estimate_tokens",
    "handle_get_rules",
    "handle_list_rule_sections",
    "handle_list_rule_sets",
]
