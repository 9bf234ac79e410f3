# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the backend gateway for the Tiben MCP server:
# data models, image classification, response normalization, retry logic
# and the async HTTP client.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or the MCP SDK.  The tools/
#   layer maps core exceptions onto MCP errors; core only speaks HTTP.
# =============================================================================
