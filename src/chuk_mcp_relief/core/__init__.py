"""Core acquisition, validation and orchestration for chuk-mcp-relief."""
