"""The tool operations exposed to agents, independent of the MCP transport."""

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec

from linear_mcp.content import ResponseBuilder, ToolResponse, mime_type_for
from linear_mcp.enrichment import enrich_issues, resolve_issue_view
from linear_mcp.errors import NoActiveCycleError, NotFoundError
from linear_mcp.formatting import (
    render_created_issue,
    render_my_issues,
    render_search_results,
    render_teams,
    render_ticket,
)
from linear_mcp.media import MediaStore, resolve_markdown_images
from linear_mcp.models import IssueCreateInput
from linear_mcp.providers.base import TrackerClient
from linear_mcp.search import IssueStateFilter, SearchParams, build_search_predicate, my_issues_filter

logger = logging.getLogger(__name__)

P = ParamSpec("P")


def tool_boundary(
    failure: str,
) -> Callable[[Callable[P, Awaitable[ToolResponse]]], Callable[P, Awaitable[ToolResponse]]]:
    """Turn any exception escaping a tool into an error response prefixed with ``failure``."""

    def decorator(func: Callable[P, Awaitable[ToolResponse]]) -> Callable[P, Awaitable[ToolResponse]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ToolResponse:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                logger.exception("%s", failure)
                return ToolResponse.error(f"{failure}: {exc}")

        return wrapper

    return decorator


class LinearTools:
    """Binds a tracker client and an image store into the agent-facing operations."""

    def __init__(
        self,
        client: TrackerClient,
        media: MediaStore,
        *,
        page_size: int = 20,
        my_issues_concurrency: int = 3,
        search_concurrency: int = 5,
    ) -> None:
        self.client = client
        self.media = media
        self.page_size = page_size
        self.my_issues_concurrency = my_issues_concurrency
        self.search_concurrency = search_concurrency

    @tool_boundary("Error fetching ticket")
    async def get_ticket(self, ticket_id: str) -> ToolResponse:
        issue = await self.client.get_issue(ticket_id)
        if issue is None:
            return ToolResponse.error(f"Ticket {ticket_id} not found")

        comments, markdown, view = await asyncio.gather(
            self.client.list_comments(issue.id),
            resolve_markdown_images(issue.description, self.media),
            resolve_issue_view(self.client, issue, include_parent=False),
        )
        # Tracker delivers newest first; show the conversation in order
        oldest_first = list(reversed(comments))

        builder = ResponseBuilder().text(render_ticket(view, oldest_first))
        for media in markdown.images:
            try:
                data = await self.media.read(media)
            except OSError as exc:
                logger.warning("Error reading image file %s: %s", media.local_path, exc)
                continue
            builder.image(data, mime_type_for(media.url))
        return builder.build()

    @tool_boundary("Error fetching assigned issues")
    async def get_my_issues(self, state: IssueStateFilter = "active") -> ToolResponse:
        viewer = await self.client.get_viewer()
        if viewer is None:
            return ToolResponse.error("Could not determine the current user")

        issues = await self.client.list_issues(my_issues_filter(viewer.id, state), first=self.page_size)
        if not issues:
            return ToolResponse.ok(f"No {state} issues found assigned to you.")

        views = await enrich_issues(self.client, issues, self.my_issues_concurrency)
        return ToolResponse.ok(render_my_issues(state, views))

    @tool_boundary("Error adding comment")
    async def add_comment(self, ticket_id: str, comment: str) -> ToolResponse:
        issue = await self.client.get_issue(ticket_id)
        if issue is None:
            return ToolResponse.error(f"Ticket {ticket_id} not found")

        created = await self.client.create_comment(issue.id, comment)
        if created is None:
            return ToolResponse.error("Failed to create comment")
        return ToolResponse.ok(f"Successfully added comment to {ticket_id}. Comment ID: {created.id}")

    @tool_boundary("Error creating issue")
    async def create_issue(
        self,
        team_id: str,
        title: str,
        description: str | None = None,
        priority: int | None = None,
        assignee_id: str | None = None,
        parent_issue_id: str | None = None,
    ) -> ToolResponse:
        parent_id = None
        if parent_issue_id:
            parent = await self.client.get_issue(parent_issue_id)
            if parent is None:
                return ToolResponse.error(f"Parent issue {parent_issue_id} not found")
            parent_id = parent.id

        issue = await self.client.create_issue(
            IssueCreateInput(
                team_id=team_id,
                title=title,
                description=description or "",
                priority=priority,
                assignee_id=assignee_id,
                parent_id=parent_id,
            )
        )
        if issue is None:
            return ToolResponse.error("Failed to create issue")

        view = await resolve_issue_view(self.client, issue, include_children=False)
        return ToolResponse.ok(render_created_issue(view))

    @tool_boundary("Error fetching teams")
    async def get_teams(self) -> ToolResponse:
        teams = await self.client.list_teams()
        if not teams:
            return ToolResponse.ok("No teams found in this workspace.")
        return ToolResponse.ok(render_teams(teams))

    @tool_boundary("Error searching issues")
    async def search_issues(
        self,
        is_unassigned: bool | None = None,
        team_identifier: str | None = None,
        status: str | None = None,
        is_current_cycle: bool | None = None,
        limit: int | None = 20,
    ) -> ToolResponse:
        params = SearchParams(
            is_unassigned=is_unassigned,
            team_identifier=team_identifier,
            status=status,
            is_current_cycle=is_current_cycle,
            limit=limit,
        )
        try:
            predicate = await build_search_predicate(self.client, params)
        except NotFoundError as exc:
            return ToolResponse.error(str(exc))
        except NoActiveCycleError as exc:
            return ToolResponse.ok(str(exc))

        issues = await self.client.list_issues(predicate.to_filter(), first=predicate.first)
        if not issues:
            return ToolResponse.ok("No issues found matching the search criteria.")

        views = await enrich_issues(
            self.client,
            issues,
            self.search_concurrency,
            include_parent=False,
            include_children=False,
            include_cycle=True,
        )
        return ToolResponse.ok(
            render_search_results(
                views,
                is_unassigned=is_unassigned,
                team_identifier=team_identifier,
                status=status,
                is_current_cycle=is_current_cycle,
            )
        )
