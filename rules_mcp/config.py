"""Configuration module for Rules MCP Server."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Rule documents
    rules_dir: Path = Path("rules")
    rule_file_name: str = "rule.md"
    default_rule_set: str = "nextjs"
    rule_set_titles: dict[str, str] = {
        "nextjs": "NextJS開発ルール",
    }

    # Document structure
    indent_unit: int = Field(default=2, gt=0)  # spaces per nesting level
    header_delimiter: str = Field(default=":", min_length=1)

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Security
    cors_allowed_origins: str = "*"
    api_key: str | None = None  # None disables API key checks
    max_json_payload_size: int = 100_000  # bytes

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if self.cors_allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    def rule_set_title(self, name: str) -> str:
        """Display title for a rule set, falling back to its directory name."""
        return self.rule_set_titles.get(name, name)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
