"""Translate semantic search parameters into Linear's native issue filter."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from linear_mcp.errors import NoActiveCycleError, NotFoundError
from linear_mcp.providers.base import TrackerClient

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

IssueStateFilter = Literal["active", "backlog", "completed", "canceled", "all"]

_STATE_TYPE_FILTERS: dict[str, dict] = {
    "active": {"type": {"in": ["started", "unstarted"]}},
    "backlog": {"type": {"eq": "backlog"}},
    "completed": {"type": {"eq": "completed"}},
    "canceled": {"type": {"eq": "canceled"}},
}


class SearchParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_unassigned: bool | None = None
    team_identifier: str | None = None  # team key, e.g. ENG
    status: str | None = None  # workflow state name, e.g. "In Progress"
    is_current_cycle: bool | None = None
    limit: int | None = DEFAULT_LIMIT


class SearchPredicate(BaseModel):
    """Resolved constraints, combined with logical AND. Holds internal ids only."""

    model_config = ConfigDict(frozen=True)

    assignee_null: bool | None = None
    team_id: str | None = None
    state_id: str | None = None
    cycle_ids: tuple[str, ...] | None = None
    first: int = DEFAULT_LIMIT

    def to_filter(self) -> dict:
        issue_filter: dict = {}
        if self.assignee_null is not None:
            issue_filter["assignee"] = {"null": self.assignee_null}
        if self.team_id:
            issue_filter["team"] = {"id": {"eq": self.team_id}}
        if self.state_id:
            issue_filter["state"] = {"id": {"eq": self.state_id}}
        if self.cycle_ids is not None:
            issue_filter["cycle"] = {"id": {"in": list(self.cycle_ids)}}
        return issue_filter


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, limit))


def my_issues_filter(viewer_id: str, state: IssueStateFilter) -> dict:
    """Filter for issues assigned to the viewer, optionally narrowed by state type."""
    issue_filter: dict = {"assignee": {"id": {"eq": viewer_id}}}
    if state != "all":
        issue_filter["state"] = _STATE_TYPE_FILTERS[state]
    return issue_filter


async def build_search_predicate(client: TrackerClient, params: SearchParams) -> SearchPredicate:
    """Resolve team key, status name and current cycle into a predicate.

    Raises:
        NotFoundError: no team matches the key, or no workflow state matches the status.
        NoActiveCycleError: a current-cycle filter was requested but no cycle is active.
    """
    team_id = None
    if params.team_identifier:
        wanted = params.team_identifier.lower()
        teams = await client.list_teams()
        team = next((t for t in teams if t.key.lower() == wanted), None)
        if team is None:
            raise NotFoundError(
                "Team",
                params.team_identifier,
                f'Team with identifier "{params.team_identifier}" not found',
            )
        team_id = team.id

    state_id = None
    if params.status:
        wanted = params.status.lower()
        states = await client.list_workflow_states(team_id=team_id)
        state = next((s for s in states if s.name.lower() == wanted), None)
        if state is None:
            raise NotFoundError("Status", params.status, f'Status "{params.status}" not found')
        state_id = state.id

    cycle_ids = None
    if params.is_current_cycle:
        cycles = await client.list_cycles(team_id=team_id, active_only=True)
        if not cycles:
            raise NoActiveCycleError()
        cycle_ids = tuple(c.id for c in cycles)

    return SearchPredicate(
        assignee_null=params.is_unassigned,
        team_id=team_id,
        state_id=state_id,
        cycle_ids=cycle_ids,
        first=clamp_limit(params.limit),
    )
