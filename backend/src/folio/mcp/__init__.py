"""MCP server exposing the portfolio content tools to desktop and local clients."""
