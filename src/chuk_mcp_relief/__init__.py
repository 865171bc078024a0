"""
chuk-mcp-relief: Stylized Terrain Relief Rendering MCP Server

Samples elevation around a location from OpenTopoData or Mapbox terrain
tiles, rejects water-dominated or flat areas, and renders the terrain as
a dot grid, a contour graph or a hand-drawn marker-pen perspective view.
Rendered PNGs are written to disk and stored in chuk-artifacts.
"""
