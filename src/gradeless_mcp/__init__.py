"""Gradeless lessons server — HTML browsing pages plus an MCP tool endpoint."""

__version__ = "1.0.0"
