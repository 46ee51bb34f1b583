"""Pydantic models for Rules MCP Server request/response schemas."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ============ ENUMS ============


class ToolName(str, Enum):
    """Available rule tools."""

    GET_RULES = "get_rules"
    LIST_RULE_SECTIONS = "list_rule_sections"
    LIST_RULE_SETS = "list_rule_sets"


class QueryMode(str, Enum):
    """Query modes supported by the rule query engine."""

    QUERY = "query"
    CATEGORY = "category"
    LIST_CATEGORIES = "listCategories"
    FULL_CONTENT = "fullContent"


class SectionDepth(str, Enum):
    """Nesting depth of a rule section."""

    TOP = "top"
    SUB = "sub"


# ============ REQUEST MODELS ============


class MCPRequest(BaseModel):
    """MCP tool execution request."""

    tool: ToolName = Field(..., description="The rule tool to execute")
    params: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


class GetRulesParams(BaseModel):
    """Parameters for get_rules tool.

    Exactly one query mode is served per call. When several options are
    given, ``list_categories`` wins over ``category``, which wins over
    ``query``. With none of them the full document is returned.
    """

    rule_set: str | None = Field(default=None, description="Rule set name (defaults to the configured one)")
    query: str | None = Field(default=None, min_length=1, description="Keyword to search for")
    category: str | None = Field(default=None, min_length=1, description="Category to retrieve")
    list_categories: bool = Field(default=False, description="List available categories")

    @property
    def mode(self) -> QueryMode:
        if self.list_categories:
            return QueryMode.LIST_CATEGORIES
        if self.category is not None:
            return QueryMode.CATEGORY
        if self.query is not None:
            return QueryMode.QUERY
        return QueryMode.FULL_CONTENT


class ListSectionsParams(BaseModel):
    """Parameters for list_rule_sections tool."""

    rule_set: str | None = Field(default=None, description="Rule set name (defaults to the configured one)")
    filter: str = Field(default="", description="Case-insensitive title filter")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum sections to return")
    offset: int = Field(default=0, ge=0, description="Number of sections to skip")


# ============ RESPONSE MODELS ============


@dataclass
class ToolResult:
    """Result from executing a rule tool.

    This is the standard return type for all tool handlers.
    """

    data: Any
    input_tokens: int = 0
    output_tokens: int = 0


class UsageInfo(BaseModel):
    """Usage information for a request."""

    input_tokens: int = Field(default=0, description="Estimated input tokens")
    output_tokens: int = Field(default=0, description="Estimated output tokens")
    latency_ms: int = Field(..., description="Request latency in milliseconds")


class MCPResponse(BaseModel):
    """MCP tool execution response."""

    success: bool = Field(..., description="Whether the request was successful")
    result: Any | None = Field(default=None, description="Tool result data")
    error: str | None = Field(default=None, description="Error message if failed")
    usage: UsageInfo = Field(..., description="Usage information")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    rules_dir_exists: bool = Field(default=True)


class SectionInfo(BaseModel):
    """Section information."""

    title: str
    depth: SectionDepth
    start_line: int
    end_line: int


class RuleSetInfo(BaseModel):
    """Rule set information."""

    name: str
    title: str
    is_default: bool = False
