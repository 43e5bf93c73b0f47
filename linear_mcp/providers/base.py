"""Abstract base class for issue-tracker clients."""

from abc import ABC, abstractmethod

from linear_mcp.models import Comment, Cycle, Issue, IssueCreateInput, Team, User, WorkflowState


class TrackerClient(ABC):
    @abstractmethod
    async def get_issue(self, issue_id: str) -> Issue | None: ...

    @abstractmethod
    async def get_viewer(self) -> User | None: ...

    @abstractmethod
    async def list_issues(self, filter: dict, first: int) -> list[Issue]: ...

    @abstractmethod
    async def list_comments(self, issue_id: str) -> list[Comment]:
        """Comments on an issue, newest first."""

    @abstractmethod
    async def list_children(self, issue_id: str) -> list[Issue]: ...

    @abstractmethod
    async def get_state(self, state_id: str) -> WorkflowState | None: ...

    @abstractmethod
    async def get_team(self, team_id: str) -> Team | None: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_cycle(self, cycle_id: str) -> Cycle | None: ...

    @abstractmethod
    async def list_teams(self) -> list[Team]: ...

    @abstractmethod
    async def list_workflow_states(self, team_id: str | None = None) -> list[WorkflowState]: ...

    @abstractmethod
    async def list_cycles(self, team_id: str | None = None, active_only: bool = True) -> list[Cycle]: ...

    @abstractmethod
    async def create_comment(self, issue_id: str, body: str) -> Comment | None: ...

    @abstractmethod
    async def create_issue(self, params: IssueCreateInput) -> Issue | None: ...

    @abstractmethod
    async def fetch_attachment(self, url: str) -> bytes:
        """Download an uploaded file using the tracker credential."""
