"""Content-Gate: MCP gateway for content mutations, publishing actions and releases."""

__version__ = "0.1.0"
