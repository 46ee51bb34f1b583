"""Rule document loading.

Rule sets live under ``settings.rules_dir``, one directory per rule set,
each holding a single rules file (``rule.md`` by default). Documents are
read fresh on every call; nothing is cached.
"""

import asyncio
import logging
from pathlib import Path

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def discover_rule_sets(config: Settings | None = None) -> list[str]:
    """Return the names of rule set directories that contain a rules file."""
    config = config or default_settings
    rules_dir = Path(config.rules_dir)
    if not rules_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in rules_dir.iterdir()
        if entry.is_dir() and (entry / config.rule_file_name).is_file()
    )


def known_rule_sets(config: Settings | None = None) -> list[str]:
    """Rule set names a caller may ask for.

    Configured names are included even when their file is missing, so that
    a missing file surfaces as a read failure instead of an unknown name.
    """
    config = config or default_settings
    names = set(discover_rule_sets(config))
    names.add(config.default_rule_set)
    names.update(config.rule_set_titles)
    return sorted(names)


def rule_set_path(name: str, config: Settings | None = None) -> Path:
    """Path of the rules file for a rule set."""
    config = config or default_settings
    return Path(config.rules_dir) / name / config.rule_file_name


async def load_document(path: Path) -> str | None:
    """Read a rules file.

    Returns:
        The file text, or None when the file is missing or unreadable.
    """
    try:
        raw = await asyncio.to_thread(Path(path).read_bytes)
        return raw.decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read rules file {path}: {e}")
        return None
