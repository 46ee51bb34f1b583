"""
Pytest configuration and fixtures for rules MCP tests.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rules_mcp.config import settings

SCENARIO_DOCUMENT = "\n".join(
    [
        "  データフェッチ:",
        "    use client ディレクティブを使う",
        "  サーバーアクション:",
        "    'use server'を使う",
    ]
)

SAMPLE_DOCUMENT = "\n".join(
    [
        "# NextJS開発ルール",
        "",
        "  データフェッチ:",
        "    サーバーコンポーネントでデータを取得する",
        "    クライアントで必要な場合のみ use client ディレクティブを使う",
        "    キャッシュ戦略:",
        "      fetch の cache オプションを明示する",
        "  サーバーアクション:",
        "    'use server'を使う",
        "    エラー処理:",
        "      想定内のエラーは戻り値で返す",
    ]
) + "\n"


@pytest.fixture
def scenario_document() -> str:
    """Two categories with one rule each."""
    return SCENARIO_DOCUMENT


@pytest.fixture
def sample_document() -> str:
    """Two categories, each with a nested subsection."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def rules_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary rules directory holding the sample document as the nextjs rule set."""
    root = tmp_path / "rules"
    (root / "nextjs").mkdir(parents=True)
    (root / "nextjs" / "rule.md").write_text(SAMPLE_DOCUMENT, encoding="utf-8")

    monkeypatch.setattr(settings, "rules_dir", root)
    monkeypatch.setattr(settings, "rule_file_name", "rule.md")
    monkeypatch.setattr(settings, "default_rule_set", "nextjs")
    monkeypatch.setattr(settings, "rule_set_titles", {"nextjs": "NextJS開発ルール"})
    monkeypatch.setattr(settings, "indent_unit", 2)
    monkeypatch.setattr(settings, "header_delimiter", ":")
    monkeypatch.setattr(settings, "api_key", None)
    return root


@pytest.fixture
def client(rules_dir: Path) -> TestClient:
    """TestClient for the full application, wired to the temporary rules directory."""
    from rules_mcp.server import app

    return TestClient(app)
