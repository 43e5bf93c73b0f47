"""Resolve the related entities of issues into display-ready views."""

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import TypeVar

import httpx

from linear_mcp.concurrency import bounded_map
from linear_mcp.errors import TrackerError
from linear_mcp.formatting import UNASSIGNED, UNKNOWN, format_priority
from linear_mcp.models import ChildSummary, Issue, ResolvedIssueView
from linear_mcp.providers.base import TrackerClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _none() -> None:
    return None


async def _degrade(call: Awaitable[T], what: str, identifier: str, default: T) -> T:
    """Await an auxiliary lookup, falling back to ``default`` if it fails."""
    try:
        return await call
    except (TrackerError, httpx.HTTPError) as exc:
        logger.warning("Could not resolve %s for %s: %s", what, identifier, exc)
        return default


async def resolve_child(client: TrackerClient, child: Issue) -> ChildSummary:
    state, assignee = await asyncio.gather(
        _degrade(client.get_state(child.state_id) if child.state_id else _none(), "state", child.identifier, None),
        _degrade(
            client.get_user(child.assignee_id) if child.assignee_id else _none(), "assignee", child.identifier, None
        ),
    )
    return ChildSummary(
        identifier=child.identifier,
        title=child.title,
        state_name=state.name if state else UNKNOWN,
        assignee_name=assignee.display_name if assignee else UNASSIGNED,
        priority=format_priority(child.priority),
    )


async def _children(client: TrackerClient, issue: Issue) -> tuple[ChildSummary, ...]:
    children = await client.list_children(issue.id)
    if not children:
        return ()
    return tuple(await bounded_map(lambda child: resolve_child(client, child), children))


async def resolve_issue_view(
    client: TrackerClient,
    issue: Issue,
    *,
    include_parent: bool = True,
    include_children: bool = True,
    include_cycle: bool = False,
) -> ResolvedIssueView:
    """Fetch an issue's relations concurrently and flatten them into a view.

    A failing lookup degrades its field to the placeholder instead of raising.
    """
    ident = issue.identifier
    state, team, assignee, parent, children, cycle = await asyncio.gather(
        _degrade(client.get_state(issue.state_id) if issue.state_id else _none(), "state", ident, None),
        _degrade(client.get_team(issue.team_id) if issue.team_id else _none(), "team", ident, None),
        _degrade(client.get_user(issue.assignee_id) if issue.assignee_id else _none(), "assignee", ident, None),
        _degrade(
            client.get_issue(issue.parent_id) if include_parent and issue.parent_id else _none(), "parent", ident, None
        ),
        _degrade(_children(client, issue) if include_children else _none(), "children", ident, ()),
        _degrade(client.get_cycle(issue.cycle_id) if include_cycle and issue.cycle_id else _none(), "cycle", ident, None),
    )

    cycle_name = None
    if include_cycle and issue.cycle_id:
        cycle_name = cycle.name if cycle and cycle.name else UNKNOWN

    return ResolvedIssueView(
        id=issue.id,
        identifier=issue.identifier,
        title=issue.title,
        description=issue.description,
        branch_name=issue.branch_name,
        state_name=state.name if state else UNKNOWN,
        priority=format_priority(issue.priority),
        assignee_name=assignee.display_name if assignee else UNASSIGNED,
        team_name=team.name if team else None,
        created_at=issue.created_at,
        updated_at=issue.updated_at,
        parent_identifier=parent.identifier if parent else None,
        parent_title=parent.title if parent else None,
        children=children or (),
        cycle_name=cycle_name,
    )


async def enrich_issues(
    client: TrackerClient,
    issues: Sequence[Issue],
    limit: int,
    *,
    include_parent: bool = True,
    include_children: bool = True,
    include_cycle: bool = False,
) -> list[ResolvedIssueView]:
    """Resolve many issues with at most ``limit`` in flight; output follows input order."""
    return await bounded_map(
        lambda issue: resolve_issue_view(
            client,
            issue,
            include_parent=include_parent,
            include_children=include_children,
            include_cycle=include_cycle,
        ),
        issues,
        limit,
    )
