# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Publishes the three Tiben tools over MCP.  Each tool is a thin async
#   wrapper: it logs the call, hands the arguments to ToolDispatcher
#   (tools/registry.py) and returns the dispatcher's text.
#
# HOW IT WORKS (the flow):
#   1. The agent host lists tools and picks one (e.g., "solve_problem_from_image")
#      The advertised input schema is the registry's, unchanged.
#   2. The wrapper passes the raw arguments to ToolDispatcher.invoke(name, arguments)
#      which validates them (required image_url, limit range, context length)
#   3. The dispatcher calls core/backend.py, formats the reply, returns text
#   4. FastMCP sends that text back as a single text content block
#
# ERRORS:
#   The dispatcher raises ToolCallError (an MCP error with a kind).  FastMCP
#   reports every exception raised inside a tool as an isError result, never
#   as a JSON-RPC error, so here it is re-raised as fastmcp's ToolError whose
#   text starts with the kind, e.g. "InvalidParams: image_url is required".
#
# RUNNING THIS SERVER:
#   a) python main.py            (loads .env, then runs over stdio)
#   b) python -m tools.mcp_server
# =============================================================================

import logging
import sys
from typing import Any, Callable

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool

from core.backend import BackendClient
from core.config import BackendConfig
from tools.registry import (
    FIND_SIMILAR_PROBLEMS,
    GET_RECOMMENDED_RESOURCES,
    SOLVE_PROBLEM_FROM_IMAGE,
    TOOLS_BY_NAME,
    ToolCallError,
    ToolDispatcher,
)

SERVER_NAME = "tiben-mcp"
SERVER_VERSION = "1.0.17"

# =============================================================================
# Logging Setup
# =============================================================================
# Log to STDERR: stdout is the MCP transport, and anything printed there
# corrupts the JSON-RPC stream.
#
#   CYAN   → incoming tool calls
#   GREEN  → responses
#   YELLOW → status / failures
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log the first part of the response text in GREEN, then return it."""
    preview = text if len(text) <= 200 else text[:200] + "…"
    logging.info(f"{_GREEN}  ← {tool_name} response: {preview!r}{_RESET}")
    return text


# =============================================================================
# Server & dispatcher
# =============================================================================
mcp = FastMCP(SERVER_NAME, version=SERVER_VERSION)

dispatcher = ToolDispatcher(BackendClient(BackendConfig.from_env()))


async def _call(tool_name: str, **arguments: Any) -> str:
    _log_request(tool_name, **arguments)
    # Unset optionals are left out so the dispatcher applies its own defaults.
    args = {key: value for key, value in arguments.items() if value is not None}
    try:
        text = await dispatcher.invoke(tool_name, args)
    except ToolCallError as exc:
        _log_status(f"{exc.kind.value}: {exc.message}")
        raise ToolError(f"{exc.kind.value}: {exc.message}") from exc
    return _log_response(tool_name, text)


def _published(tool_name: str) -> Callable:
    """Register a wrapper under ``tool_name`` with the registry's input schema.

    The wrapper signature accepts anything, so missing or malformed arguments
    reach ToolDispatcher and come back as InvalidParams instead of being
    rejected by pydantic first.
    """
    definition = TOOLS_BY_NAME[tool_name]

    def register(fn: Callable) -> Callable:
        tool = Tool.from_function(fn, name=tool_name, description=definition.description)
        mcp.add_tool(tool.model_copy(update={"parameters": definition.input_schema}))
        return fn

    return register


# =============================================================================
# TOOL 1: solve_problem_from_image
# =============================================================================
@_published(SOLVE_PROBLEM_FROM_IMAGE)
async def solve_problem_from_image(image_url: Any = None, additional_context: Any = None) -> str:
    return await _call(
        SOLVE_PROBLEM_FROM_IMAGE,
        image_url=image_url,
        additional_context=additional_context,
    )


# =============================================================================
# TOOL 2: find_similar_problems
# =============================================================================
@_published(FIND_SIMILAR_PROBLEMS)
async def find_similar_problems(image_url: Any = None, limit: Any = None) -> str:
    return await _call(FIND_SIMILAR_PROBLEMS, image_url=image_url, limit=limit)


# =============================================================================
# TOOL 3: get_recommended_resources
# =============================================================================
@_published(GET_RECOMMENDED_RESOURCES)
async def get_recommended_resources(image_url: Any = None) -> str:
    return await _call(GET_RECOMMENDED_RESOURCES, image_url=image_url)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
