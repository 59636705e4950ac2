"""Jules MCP: orchestrate Jules coding-agent workers over MCP."""

__version__ = "1.0.0"

__all__ = ["__version__"]
