"""Rule Engine - tool dispatch for rule document queries.

Validates tool parameters, resolves the requested rule set to its rules
file and routes the call to the matching handler. Documents are loaded
by the handlers on every call, so edits to a rules file are picked up
immediately.
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from .config import Settings, settings as default_settings
from .documents import known_rule_sets, rule_set_path
from .engine.handlers import (
    HandlerContext,
    handle_get_rules,
    handle_list_rule_sections,
    handle_list_rule_sets,
)
from .models import GetRulesParams, ListSectionsParams, ToolName, ToolResult

logger = logging.getLogger(__name__)


class ToolParamsError(ValueError):
    """Tool parameters failed validation."""


class UnknownToolError(ValueError):
    """Tool name is not served by this engine."""


class _NoParams(BaseModel):
    pass


# tool -> (parameter model, handler)
_HANDLERS = {
    ToolName.GET_RULES: (GetRulesParams, handle_get_rules),
    ToolName.LIST_RULE_SECTIONS: (ListSectionsParams, handle_list_rule_sections),
    ToolName.LIST_RULE_SETS: (_NoParams, handle_list_rule_sets),
}


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "params"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class RuleEngine:
    """Rule document query engine."""

    def __init__(self, settings: Settings | None = None):
        """Initialize the engine.

        Args:
            settings: Settings to use instead of the process-wide ones
        """
        self.settings = settings or default_settings

    @staticmethod
    def parse_tool(name: Any) -> ToolName:
        """Resolve a tool name, raising UnknownToolError if it is not served."""
        try:
            return ToolName(name)
        except ValueError:
            logger.warning(f"Unknown tool requested: {name}")
            raise UnknownToolError(f"Unknown tool: {name}") from None

    def _context(self, rule_set: str | None) -> HandlerContext:
        name = rule_set or self.settings.default_rule_set
        if name not in known_rule_sets(self.settings):
            raise ToolParamsError(f"Invalid parameter: unknown rule set '{name}'")

        return HandlerContext(
            settings=self.settings,
            rule_set=name,
            rule_set_title=self.settings.rule_set_title(name),
            document_path=rule_set_path(name, self.settings),
        )

    async def execute(self, tool: ToolName | str, params: dict[str, Any] | None) -> ToolResult:
        """
        Execute a rule tool.

        Args:
            tool: The tool to execute
            params: Raw tool parameters

        Returns:
            ToolResult with data and token estimates

        Raises:
            UnknownToolError: tool is not served
            ToolParamsError: parameters failed validation
        """
        tool = self.parse_tool(tool)
        params_model, handler = _HANDLERS[tool]

        try:
            parsed = params_model.model_validate(params or {})
        except ValidationError as e:
            message = f"Invalid parameter: {_describe_validation_error(e)}"
            logger.warning(f"{tool.value}: {message}")
            raise ToolParamsError(message) from e

        ctx = self._context(getattr(parsed, "rule_set", None))
        return await handler(parsed, ctx)
