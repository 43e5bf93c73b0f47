"""MCP server exposing the Linear tools over stdio."""

from typing import Annotated, Literal

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, ImageContent, TextContent
from pydantic import Field

from linear_mcp.content import TextBlock, ToolResponse
from linear_mcp.tools import LinearTools

SERVER_NAME = "linear-mcp-server"


def to_mcp_content(response: ToolResponse) -> CallToolResult:
    """Convert a tool response into an MCP tool result, keeping ``isError`` and the text as given."""
    content: list[TextContent | ImageContent] = []
    for block in response.content:
        if isinstance(block, TextBlock):
            content.append(TextContent(type="text", text=block.text))
        else:
            content.append(ImageContent(type="image", data=block.data, mimeType=block.mime_type))
    return CallToolResult(content=content, isError=response.is_error)


def create_server(tools: LinearTools) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="get_ticket", description="Get a Linear ticket by ID", structured_output=False)
    async def get_ticket(
        ticket_id: Annotated[str, Field(description="The Linear ticket ID (e.g., LAR-14)")],
    ) -> CallToolResult:
        return to_mcp_content(await tools.get_ticket(ticket_id))

    @mcp.tool(name="get_my_issues", description="Get your assigned Linear issues", structured_output=False)
    async def get_my_issues(
        state: Annotated[
            Literal["active", "backlog", "completed", "canceled", "all"],
            Field(description="Filter by issue state (active, backlog, completed, canceled, all)"),
        ] = "active",
    ) -> CallToolResult:
        return to_mcp_content(await tools.get_my_issues(state))

    @mcp.tool(name="add_comment", description="Add a comment to a Linear ticket", structured_output=False)
    async def add_comment(
        ticket_id: Annotated[str, Field(description="The Linear ticket ID (e.g., LAR-14)")],
        comment: Annotated[str, Field(description="The comment text to add")],
    ) -> CallToolResult:
        return to_mcp_content(await tools.add_comment(ticket_id, comment))

    @mcp.tool(name="create_issue", description="Create a new Linear issue", structured_output=False)
    async def create_issue(
        team_id: Annotated[str, Field(description="The Linear team ID (required)")],
        title: Annotated[str, Field(description="The title of the issue")],
        description: Annotated[str | None, Field(description="The description of the issue (optional)")] = None,
        priority: Annotated[
            int | None,
            Field(ge=0, le=4, description="Priority level (0-4): 0=No priority, 1=Urgent, 2=High, 3=Medium, 4=Low"),
        ] = None,
        assignee_id: Annotated[str | None, Field(description="The ID of the user to assign (optional)")] = None,
        parent_issue_id: Annotated[
            str | None,
            Field(description="Parent issue identifier (e.g., LAR-14) to create this as a sub-issue (optional)"),
        ] = None,
    ) -> CallToolResult:
        return to_mcp_content(
            await tools.create_issue(
                team_id=team_id,
                title=title,
                description=description,
                priority=priority,
                assignee_id=assignee_id,
                parent_issue_id=parent_issue_id,
            )
        )

    @mcp.tool(name="get_teams", description="Get available Linear teams", structured_output=False)
    async def get_teams() -> CallToolResult:
        return to_mcp_content(await tools.get_teams())

    @mcp.tool(
        name="search_issues",
        description="Search for Linear issues with various filters",
        structured_output=False,
    )
    async def search_issues(
        is_unassigned: Annotated[
            bool | None,
            Field(description="Filter for unassigned issues (true) or assigned issues (false)"),
        ] = None,
        team_identifier: Annotated[
            str | None, Field(description="Team identifier (e.g., 'ENG' for Engineering)")
        ] = None,
        status: Annotated[
            str | None, Field(description="Status name to filter by (e.g., 'Todo', 'In Progress')")
        ] = None,
        is_current_cycle: Annotated[
            bool | None, Field(description="Filter for issues in the current cycle")
        ] = None,
        limit: Annotated[
            int, Field(ge=1, le=100, description="Maximum number of issues to return (default: 20)")
        ] = 20,
    ) -> CallToolResult:
        return to_mcp_content(
            await tools.search_issues(
                is_unassigned=is_unassigned,
                team_identifier=team_identifier,
                status=status,
                is_current_cycle=is_current_cycle,
                limit=limit,
            )
        )

    return mcp
