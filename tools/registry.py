# =============================================================================
# tools/registry.py  —  Tool definitions & dispatcher
# =============================================================================
#
# WHAT THIS FILE DOES:
#   1. Declares the three tools the host can discover (name, description,
#      JSON-schema input).  list_tools() returns them.
#   2. Routes a call to the matching BackendClient coroutine and turns the
#      result into ONE text block (ToolDispatcher.invoke).
#   3. Converts every failure into a ToolCallError, an MCP error carrying a
#      JSON-RPC code.  A call either returns the full text or raises; there
#      is no partial output.
#
# ERROR MAPPING:
#   unknown tool name                      →  MethodNotFound
#   bad / missing arguments                →  InvalidParams
#   result.error, BackendError,
#   ImageNotFoundError                     →  UpstreamError
#   anything else                          →  InternalError
# =============================================================================

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData

from core.backend import BackendClient
from core.errors import BackendError, ImageNotFoundError
from core.models import Problem, Resource

logger = logging.getLogger(__name__)

SOLVE_PROBLEM_FROM_IMAGE = "solve_problem_from_image"
FIND_SIMILAR_PROBLEMS = "find_similar_problems"
GET_RECOMMENDED_RESOURCES = "get_recommended_resources"

IMAGE_URL_PATTERN = r"^(https?://|file://|/|[a-zA-Z]:|\.).*\.(jpg|jpeg|png|gif|webp)$"
MAX_CONTEXT_LENGTH = 1000
MIN_LIMIT = 1
MAX_LIMIT = 20
DEFAULT_LIMIT = 1

NO_SIMILAR_PROBLEMS = "No similar problems found."
NO_RECOMMENDED_RESOURCES = "No recommended resources found."


# =============================================================================
# Errors
# =============================================================================
class ToolErrorKind(Enum):
    INVALID_PARAMS = "InvalidParams"
    METHOD_NOT_FOUND = "MethodNotFound"
    UPSTREAM_ERROR = "UpstreamError"
    INTERNAL_ERROR = "InternalError"

    @property
    def code(self) -> int:
        return _ERROR_CODES[self]


# JSON-RPC has no "upstream" code; upstream failures travel as INTERNAL_ERROR.
_ERROR_CODES = {
    ToolErrorKind.INVALID_PARAMS: INVALID_PARAMS,
    ToolErrorKind.METHOD_NOT_FOUND: METHOD_NOT_FOUND,
    ToolErrorKind.UPSTREAM_ERROR: INTERNAL_ERROR,
    ToolErrorKind.INTERNAL_ERROR: INTERNAL_ERROR,
}


class ToolCallError(McpError):
    """A typed tool failure: kind + message, surfaced as an MCP error."""

    def __init__(self, kind: ToolErrorKind, message: str) -> None:
        super().__init__(ErrorData(code=kind.code, message=message))
        self.kind = kind
        self.message = message


# =============================================================================
# Tool definitions
# =============================================================================
@dataclass(frozen=True)
class ToolDefinition:
    """What the host sees when it lists tools."""

    name: str
    description: str
    properties: dict[str, dict[str, Any]]
    required: tuple[str, ...] = ("image_url",)
    input_schema: dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_schema", {
            "type": "object",
            "properties": self.properties,
            "required": list(self.required),
        })


def _image_url_property(description: str) -> dict[str, Any]:
    return {
        "type": "string",
        "description": description,
        "minLength": 1,
        "pattern": IMAGE_URL_PATTERN,
    }


ADDITIONAL_CONTEXT_PROPERTY = {
    "type": "string",
    "description": (
        "Optional extra context, instructions or requirements for solving the "
        'problem (e.g. "show each step", "explain the concept", "grade 8").'
    ),
    "maxLength": MAX_CONTEXT_LENGTH,
}

LIMIT_PROPERTY = {
    "type": "integer",
    "description": (
        f"Maximum number of similar problems to return. Range: {MIN_LIMIT}-{MAX_LIMIT}. "
        f"Default: {DEFAULT_LIMIT}. Higher values give more options but may "
        "include less relevant matches."
    ),
    "default": DEFAULT_LIMIT,
    "minimum": MIN_LIMIT,
    "maximum": MAX_LIMIT,
}

TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name=SOLVE_PROBLEM_FROM_IMAGE,
        description=(
            "Analyze and solve the K-12 school problem shown in an uploaded image. "
            "Supports math, language arts, English, science and other subjects. "
            "Returns a step-by-step solution with detailed explanations."
        ),
        properties={
            "image_url": _image_url_property(
                "Local file path (absolute, temporary directories allowed) or URL of "
                "an image containing the problem. Supported formats: JPG, PNG. The "
                "text, equations or diagrams should be clearly visible."
            ),
            "additional_context": ADDITIONAL_CONTEXT_PROPERTY,
        },
    ),
    ToolDefinition(
        name=FIND_SIMILAR_PROBLEMS,
        description=(
            "Find school problems similar to the one in an uploaded image. Useful "
            "for practice, reviewing the same concept or finding variations. "
            "Returns problems with similarity scores."
        ),
        properties={
            "image_url": _image_url_property(
                "Local file path (absolute, temporary directories allowed) or URL of "
                "an image containing the reference problem. The subject, problem "
                "type, difficulty and concepts are used to find matches."
            ),
            "limit": LIMIT_PROPERTY,
        },
    ),
    ToolDefinition(
        name=GET_RECOMMENDED_RESOURCES,
        description=(
            "Get personalized learning resources for the school problem in an "
            "uploaded image: study guides, tutorials, practice material and "
            "reference links matched to the topic and difficulty."
        ),
        properties={
            "image_url": _image_url_property(
                "Local file path (absolute, temporary directories allowed) or URL of "
                "an image containing the problem. The subject, concepts and "
                "difficulty are used to pick suitable resources."
            ),
        },
    ),
)

TOOLS_BY_NAME: dict[str, ToolDefinition] = {tool.name: tool for tool in TOOL_DEFINITIONS}


def list_tools() -> list[ToolDefinition]:
    """The three tool definitions, in a fixed order."""
    return list(TOOL_DEFINITIONS)


# =============================================================================
# Formatting
# =============================================================================
def format_problems(problems: list[Problem]) -> str:
    """Numbered list of problems with their match percentage."""
    lines = [
        f"{n}. [{problem.similarity * 100:.1f}% match] {problem.title}\n   {problem.content}"
        for n, problem in enumerate(problems, start=1)
    ]
    return "\n\n".join(lines) or NO_SIMILAR_PROBLEMS


def format_resources(resources: list[Resource]) -> str:
    """Numbered list of resources, name in bold."""
    lines = [
        f"{n}. **{resource.name}** ({resource.type})\n   {resource.description}"
        for n, resource in enumerate(resources, start=1)
    ]
    return "\n\n".join(lines) or NO_RECOMMENDED_RESOURCES


# =============================================================================
# Argument validation
# =============================================================================
def _invalid(message: str) -> ToolCallError:
    return ToolCallError(ToolErrorKind.INVALID_PARAMS, message)


def _require_image_url(arguments: dict[str, Any]) -> str:
    image_url = arguments.get("image_url")
    if not isinstance(image_url, str) or not image_url:
        raise _invalid("image_url is required")
    return image_url


def _optional_context(arguments: dict[str, Any]) -> Optional[str]:
    context = arguments.get("additional_context")
    if context is None:
        return None
    if not isinstance(context, str):
        raise _invalid("additional_context must be a string")
    if len(context) > MAX_CONTEXT_LENGTH:
        raise _invalid(f"additional_context must be at most {MAX_CONTEXT_LENGTH} characters")
    return context


def _limit(arguments: dict[str, Any]) -> int:
    limit = arguments.get("limit")
    if limit is None:
        return DEFAULT_LIMIT
    # bool is an int subclass; JSON hosts may also send 5.0 for 5
    if isinstance(limit, float) and limit.is_integer():
        limit = int(limit)
    if isinstance(limit, bool) or not isinstance(limit, int) or not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise _invalid(f"limit must be an integer between {MIN_LIMIT} and {MAX_LIMIT}")
    return limit


def _upstream_error(error: Optional[str]) -> None:
    if error:
        raise ToolCallError(ToolErrorKind.UPSTREAM_ERROR, f"Backend API error: {error}")


# =============================================================================
# Dispatcher
# =============================================================================
class ToolDispatcher:
    """Routes tool calls to the backend gateway and formats the replies."""

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[str]]] = {
            SOLVE_PROBLEM_FROM_IMAGE: self._solve,
            FIND_SIMILAR_PROBLEMS: self._find_similar,
            GET_RECOMMENDED_RESOURCES: self._recommend,
        }

    def list_tools(self) -> list[ToolDefinition]:
        return list_tools()

    async def invoke(self, tool_name: str, arguments: Optional[dict[str, Any]] = None) -> str:
        """Run one tool call and return its text, or raise ToolCallError."""
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise ToolCallError(ToolErrorKind.METHOD_NOT_FOUND, f"Unknown tool: {tool_name}")

        try:
            return await handler(arguments or {})
        except ToolCallError:
            raise
        except (BackendError, ImageNotFoundError) as exc:
            raise ToolCallError(ToolErrorKind.UPSTREAM_ERROR, str(exc)) from exc
        except Exception as exc:
            logger.exception("Error executing tool %s", tool_name)
            raise ToolCallError(
                ToolErrorKind.INTERNAL_ERROR, f"Error executing tool: {exc}"
            ) from exc

    async def _solve(self, arguments: dict[str, Any]) -> str:
        image_url = _require_image_url(arguments)
        context = _optional_context(arguments)
        result = await self.backend.solve_image(image_url, context)
        return result.solution

    async def _find_similar(self, arguments: dict[str, Any]) -> str:
        image_url = _require_image_url(arguments)
        limit = _limit(arguments)
        result = await self.backend.find_similar_problems_by_image(image_url, limit)
        _upstream_error(result.error)
        return format_problems(result.problems)

    async def _recommend(self, arguments: dict[str, Any]) -> str:
        image_url = _require_image_url(arguments)
        result = await self.backend.get_recommended_resources(image_url)
        _upstream_error(result.error)
        return format_resources(result.resources)
