"""mac-notes-mcp: Apple Notes for AI agents over the Model Context Protocol."""

__version__ = "1.0.0"
