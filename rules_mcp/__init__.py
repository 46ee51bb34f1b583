"""Rules MCP Server - rule document queries over the Model Context Protocol."""

__version__ = "1.0.0"
