"""Linear GraphQL API provider."""

import httpx

from linear_mcp.errors import TrackerAPIError
from linear_mcp.models import Comment, Cycle, Issue, IssueCreateInput, Team, User, WorkflowState
from linear_mcp.providers.base import TrackerClient

ENDPOINT = "https://api.linear.app/graphql"
TIMEOUT = 30

_ISSUE_FIELDS = """
    id
    identifier
    title
    description
    priority
    branchName
    url
    createdAt
    updatedAt
    state { id }
    team { id }
    assignee { id }
    parent { id }
    cycle { id }
"""

_GET_ISSUE = f"""
query GetIssue($id: String!) {{
  issue(id: $id) {{ {_ISSUE_FIELDS} }}
}}
"""

_LIST_ISSUES = f"""
query ListIssues($filter: IssueFilter, $first: Int) {{
  issues(filter: $filter, first: $first) {{
    nodes {{ {_ISSUE_FIELDS} }}
  }}
}}
"""

_LIST_CHILDREN = f"""
query ListChildren($id: String!) {{
  issue(id: $id) {{
    children {{
      nodes {{ {_ISSUE_FIELDS} }}
    }}
  }}
}}
"""

_LIST_COMMENTS = """
query ListComments($id: String!) {
  issue(id: $id) {
    comments {
      nodes {
        id
        body
        createdAt
        user { name }
      }
    }
  }
}
"""

_VIEWER = """
query Viewer {
  viewer { id name displayName }
}
"""

_GET_USER = """
query GetUser($id: String!) {
  user(id: $id) { id name displayName }
}
"""

_GET_STATE = """
query GetState($id: String!) {
  workflowState(id: $id) { id name type }
}
"""

_GET_TEAM = """
query GetTeam($id: String!) {
  team(id: $id) { id name key }
}
"""

_GET_CYCLE = """
query GetCycle($id: String!) {
  cycle(id: $id) { id name number }
}
"""

_LIST_TEAMS = """
query ListTeams {
  teams {
    nodes { id name key }
  }
}
"""

_LIST_STATES = """
query ListWorkflowStates($filter: WorkflowStateFilter) {
  workflowStates(filter: $filter) {
    nodes { id name type }
  }
}
"""

_LIST_CYCLES = """
query ListCycles($filter: CycleFilter) {
  cycles(filter: $filter) {
    nodes { id name number }
  }
}
"""

_CREATE_COMMENT = """
mutation CreateComment($issueId: String!, $body: String!) {
  commentCreate(input: { issueId: $issueId, body: $body }) {
    success
    comment {
      id
      body
      createdAt
      user { name }
    }
  }
}
"""

_CREATE_ISSUE = f"""
mutation CreateIssue($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{
    success
    issue {{ {_ISSUE_FIELDS} }}
  }}
}}
"""


def _ref_id(node: dict, key: str) -> str | None:
    ref = node.get(key)
    return ref["id"] if ref else None


def _is_not_found(errors: list[dict]) -> bool:
    return any("not found" in (e.get("message") or "").lower() for e in errors)


class LinearProvider(TrackerClient):
    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise RuntimeError("LINEAR_API_KEY is required")
        self._api_key = api_key

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": self._api_key}

    async def _gql(self, query: str, variables: dict | None = None) -> dict:
        async with httpx.AsyncClient(timeout=TIMEOUT) as http:
            response = await http.post(
                ENDPOINT,
                json={"query": query, "variables": variables or {}},
                headers={**self._headers, "Content-Type": "application/json"},
            )
        response.raise_for_status()
        data = response.json()
        if "errors" in data:
            raise TrackerAPIError(f"Linear API error: {data['errors']}", errors=data["errors"])
        return data["data"]

    def _issue_from_node(self, node: dict) -> Issue:
        return Issue(
            id=node["id"],
            identifier=node["identifier"],
            title=node["title"],
            description=node.get("description"),
            priority=node.get("priority"),
            branch_name=node.get("branchName"),
            url=node.get("url"),
            created_at=node["createdAt"],
            updated_at=node["updatedAt"],
            state_id=_ref_id(node, "state"),
            team_id=_ref_id(node, "team"),
            assignee_id=_ref_id(node, "assignee"),
            parent_id=_ref_id(node, "parent"),
            cycle_id=_ref_id(node, "cycle"),
        )

    @staticmethod
    def _comment_from_node(node: dict) -> Comment:
        user = node.get("user")
        return Comment(
            id=node["id"],
            body=node.get("body"),
            created_at=node["createdAt"],
            user_name=user["name"] if user else None,
        )

    @staticmethod
    def _user_from_node(node: dict) -> User:
        return User(id=node["id"], name=node["name"], display_name=node.get("displayName") or node["name"])

    async def get_issue(self, issue_id: str) -> Issue | None:
        try:
            data = await self._gql(_GET_ISSUE, {"id": issue_id})
        except TrackerAPIError as exc:
            # Linear reports unknown ids as an "Entity not found" error, not a null node
            if _is_not_found(exc.errors):
                return None
            raise
        node = data.get("issue")
        return self._issue_from_node(node) if node else None

    async def get_viewer(self) -> User | None:
        data = await self._gql(_VIEWER)
        node = data.get("viewer")
        return self._user_from_node(node) if node else None

    async def list_issues(self, filter: dict, first: int) -> list[Issue]:
        data = await self._gql(_LIST_ISSUES, {"filter": filter, "first": first})
        return [self._issue_from_node(n) for n in data["issues"]["nodes"]]

    async def list_comments(self, issue_id: str) -> list[Comment]:
        data = await self._gql(_LIST_COMMENTS, {"id": issue_id})
        issue = data.get("issue")
        if not issue:
            return []
        return [self._comment_from_node(n) for n in issue["comments"]["nodes"]]

    async def list_children(self, issue_id: str) -> list[Issue]:
        data = await self._gql(_LIST_CHILDREN, {"id": issue_id})
        issue = data.get("issue")
        if not issue:
            return []
        return [self._issue_from_node(n) for n in issue["children"]["nodes"]]

    async def get_state(self, state_id: str) -> WorkflowState | None:
        data = await self._gql(_GET_STATE, {"id": state_id})
        node = data.get("workflowState")
        return WorkflowState(**node) if node else None

    async def get_team(self, team_id: str) -> Team | None:
        data = await self._gql(_GET_TEAM, {"id": team_id})
        node = data.get("team")
        return Team(**node) if node else None

    async def get_user(self, user_id: str) -> User | None:
        data = await self._gql(_GET_USER, {"id": user_id})
        node = data.get("user")
        return self._user_from_node(node) if node else None

    async def get_cycle(self, cycle_id: str) -> Cycle | None:
        data = await self._gql(_GET_CYCLE, {"id": cycle_id})
        node = data.get("cycle")
        return Cycle(**node) if node else None

    async def list_teams(self) -> list[Team]:
        data = await self._gql(_LIST_TEAMS)
        return [Team(id=n["id"], name=n["name"], key=n["key"]) for n in data["teams"]["nodes"]]

    async def list_workflow_states(self, team_id: str | None = None) -> list[WorkflowState]:
        variables = {"filter": {"team": {"id": {"eq": team_id}}}} if team_id else {}
        data = await self._gql(_LIST_STATES, variables)
        return [WorkflowState(**n) for n in data["workflowStates"]["nodes"]]

    async def list_cycles(self, team_id: str | None = None, active_only: bool = True) -> list[Cycle]:
        cycle_filter: dict = {}
        if team_id:
            cycle_filter["team"] = {"id": {"eq": team_id}}
        if active_only:
            cycle_filter["isActive"] = {"eq": True}
        data = await self._gql(_LIST_CYCLES, {"filter": cycle_filter})
        return [Cycle(**n) for n in data["cycles"]["nodes"]]

    async def create_comment(self, issue_id: str, body: str) -> Comment | None:
        data = await self._gql(_CREATE_COMMENT, {"issueId": issue_id, "body": body})
        result = data["commentCreate"]
        if not result["success"] or not result.get("comment"):
            return None
        return self._comment_from_node(result["comment"])

    async def create_issue(self, params: IssueCreateInput) -> Issue | None:
        issue_input: dict = {
            "teamId": params.team_id,
            "title": params.title,
            "description": params.description,
        }
        if params.priority is not None:
            issue_input["priority"] = params.priority
        if params.assignee_id:
            issue_input["assigneeId"] = params.assignee_id
        if params.parent_id:
            issue_input["parentId"] = params.parent_id
        data = await self._gql(_CREATE_ISSUE, {"input": issue_input})
        result = data["issueCreate"]
        if not result["success"] or not result.get("issue"):
            return None
        return self._issue_from_node(result["issue"])

    async def fetch_attachment(self, url: str) -> bytes:
        async with httpx.AsyncClient(timeout=TIMEOUT, follow_redirects=True) as http:
            response = await http.get(url, headers=self._headers)
        response.raise_for_status()
        return response.content
