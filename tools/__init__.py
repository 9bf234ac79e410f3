# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the MCP-facing layer:
#
#   registry.py    →  tool definitions, argument validation, formatting,
#                     and the dispatcher that maps failures to MCP errors
#   mcp_server.py  →  the FastMCP server publishing the tools over stdio
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT build HTTP requests (that's core/backend.py)
#   - They do NOT parse backend JSON (that's core/normalize.py)
# =============================================================================
