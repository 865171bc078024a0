#!/usr/bin/env python3
"""
Async Relief MCP Server using chuk-mcp-server

Stylized terrain relief rendering. Samples elevation from OpenTopoData or
Mapbox terrain tiles, validates the area, and renders dot grid, graph or
marker-pen perspective images stored in chuk-artifacts.

Storage is managed through chuk-mcp-server's built-in artifact store context.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .core.relief_manager import ReliefManager
from .models.config import load_config
from .tools.analysis import register_analysis_tools
from .tools.discovery import register_discovery_tools
from .tools.render import register_render_tools

config = load_config()

logging.basicConfig(level=getattr(logging, config.system.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-relief")

# Create relief manager instance
manager = ReliefManager(config)

# Register all tool modules
register_discovery_tools(mcp, manager)
register_analysis_tools(mcp, manager)
register_render_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    logger.info("Starting Relief MCP Server...")
    logger.info("Storage: Using chuk-mcp-server artifact store context")
    mcp.run(stdio=True)
