"""Shared handler plumbing."""

from dataclasses import dataclass
from pathlib import Path

from ...config import Settings


@dataclass
class HandlerContext:
    """Per-call context passed to every tool handler."""

    settings: Settings
    rule_set: str
    rule_set_title: str
    document_path: Path


def estimate_tokens(text: str) -> int:
    """Rough token estimate (4 chars per token)."""
    return len(text) // 4
