"""Tests for the FastMCP server wiring, using the in-memory client."""
from unittest.mock import AsyncMock

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.backend import BackendClient
from tools import mcp_server
from tools.registry import IMAGE_URL_PATTERN, ToolCallError, ToolDispatcher, ToolErrorKind


class StubDispatcher:
    """Records invocations and replays a canned reply or error."""

    def __init__(self, reply="ok", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def invoke(self, tool_name, arguments=None):
        self.calls.append((tool_name, arguments))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def stub(monkeypatch):
    dispatcher = StubDispatcher()
    monkeypatch.setattr(mcp_server, "dispatcher", dispatcher)
    return dispatcher


class TestListTools:

    @pytest.mark.asyncio
    async def test_publishes_three_tools(self):
        async with Client(mcp_server.mcp) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        assert set(tools) == {"solve_problem_from_image", "find_similar_problems", "get_recommended_resources"}
        for tool in tools.values():
            assert tool.inputSchema["required"] == ["image_url"]
            assert tool.inputSchema["properties"]["image_url"]["pattern"] == IMAGE_URL_PATTERN

        limit = tools["find_similar_problems"].inputSchema["properties"]["limit"]
        assert limit["minimum"] == 1
        assert limit["maximum"] == 20
        assert limit["default"] == 1
        assert tools["solve_problem_from_image"].inputSchema["properties"]["additional_context"]["maxLength"] == 1000
        assert set(tools["get_recommended_resources"].inputSchema["properties"]) == {"image_url"}


class TestCallTool:

    @pytest.mark.asyncio
    async def test_returns_dispatcher_text(self, stub):
        stub.reply = "1. **Khan Academy** (video)\n   Fractions"

        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool("get_recommended_resources", {"image_url": "https://x.com/a.png"})

        assert result.content[0].text == stub.reply
        assert stub.calls == [("get_recommended_resources", {"image_url": "https://x.com/a.png"})]

    @pytest.mark.asyncio
    async def test_unset_optionals_not_forwarded(self, stub):
        async with Client(mcp_server.mcp) as client:
            await client.call_tool("solve_problem_from_image", {"image_url": "/tmp/q.png"})
            await client.call_tool("find_similar_problems", {"image_url": "/tmp/q.png"})

        assert stub.calls == [
            ("solve_problem_from_image", {"image_url": "/tmp/q.png"}),
            ("find_similar_problems", {"image_url": "/tmp/q.png"}),
        ]

    @pytest.mark.asyncio
    async def test_tool_call_error_becomes_tool_error(self, stub):
        stub.error = ToolCallError(ToolErrorKind.UPSTREAM_ERROR, "Backend API error: 500 - down")

        async with Client(mcp_server.mcp) as client:
            with pytest.raises(ToolError, match="UpstreamError: Backend API error: 500 - down"):
                await client.call_tool("solve_problem_from_image", {"image_url": "https://x.com/a.png"})


class TestArgumentValidation:
    """Bad arguments reach the dispatcher and come back as InvalidParams."""

    @pytest.fixture
    def backend(self, monkeypatch):
        backend = AsyncMock(spec=BackendClient)
        monkeypatch.setattr(mcp_server, "dispatcher", ToolDispatcher(backend))
        return backend

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tool", ["solve_problem_from_image", "find_similar_problems", "get_recommended_resources"]
    )
    async def test_missing_image_url(self, backend, tool):
        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool(tool, {}, raise_on_error=False)

        assert result.is_error
        assert result.content[0].text == "InvalidParams: image_url is required"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [{"image_url": ""}, {"image_url": 42}])
    async def test_empty_or_non_string_image_url(self, backend, arguments):
        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool("get_recommended_resources", arguments, raise_on_error=False)

        assert result.is_error
        assert result.content[0].text == "InvalidParams: image_url is required"
        backend.get_recommended_resources.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 21, "5"])
    async def test_limit_out_of_range(self, backend, limit):
        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool(
                "find_similar_problems", {"image_url": "https://x.com/a.png", "limit": limit}, raise_on_error=False
            )

        assert result.is_error
        assert result.content[0].text == "InvalidParams: limit must be an integer between 1 and 20"
        backend.find_similar_problems_by_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_context_too_long(self, backend):
        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool(
                "solve_problem_from_image",
                {"image_url": "https://x.com/a.png", "additional_context": "x" * 1001},
                raise_on_error=False,
            )

        assert result.is_error
        assert result.content[0].text.startswith("InvalidParams: additional_context")
        backend.solve_image.assert_not_called()
