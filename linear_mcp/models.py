"""Shared pydantic models, the contract between the tracker client and the tools."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    display_name: str


class Team(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: str  # short code, e.g. ENG


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str  # started | unstarted | backlog | completed | canceled | triage


class Cycle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    number: int | None = None


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    body: str | None = None
    created_at: datetime
    user_name: str | None = None


class Issue(BaseModel):
    """An issue as returned by the tracker. Relations are ids, resolved lazily."""

    model_config = ConfigDict(frozen=True)

    id: str  # tracker-internal UUID
    identifier: str  # ENG-123
    title: str
    description: str | None = None
    priority: int | None = None
    branch_name: str | None = None
    url: str | None = None
    created_at: datetime
    updated_at: datetime
    state_id: str | None = None
    team_id: str | None = None
    assignee_id: str | None = None
    parent_id: str | None = None
    cycle_id: str | None = None


class IssueCreateInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    team_id: str
    title: str
    description: str = ""
    priority: int | None = None
    assignee_id: str | None = None
    parent_id: str | None = None  # internal id, never the ENG-123 identifier


class ChildSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    title: str
    state_name: str
    assignee_name: str
    priority: str


class ResolvedIssueView(BaseModel):
    """Flattened, display-ready projection of an issue and its relations."""

    model_config = ConfigDict(frozen=True)

    id: str
    identifier: str
    title: str
    description: str | None = None
    branch_name: str | None = None
    state_name: str
    priority: str
    assignee_name: str
    team_name: str | None = None
    created_at: datetime
    updated_at: datetime
    parent_identifier: str | None = None
    parent_title: str | None = None
    children: tuple[ChildSummary, ...] = ()
    cycle_name: str | None = None


class CachedMedia(BaseModel):
    model_config = ConfigDict(frozen=True)

    cache_key: str  # url digest + extension
    local_path: str
    url: str
