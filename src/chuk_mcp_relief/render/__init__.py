"""Render strategies and the canvas they draw on."""
