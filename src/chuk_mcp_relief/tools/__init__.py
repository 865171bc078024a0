"""MCP tool registrations for chuk-mcp-relief."""
