"""Plain-text rendering of issues, comments and teams for tool responses."""

from collections.abc import Sequence
from datetime import datetime

from linear_mcp.models import ChildSummary, Comment, ResolvedIssueView, Team

UNKNOWN = "Unknown"
UNASSIGNED = "Unassigned"
NO_TEAM = "None"
NO_DESCRIPTION = "No description provided."
NO_COMMENTS = "No comments on this ticket."
NO_COMMENT_BODY = "No comment body"
DETAILS_HINT = "For more details on any issue, use the get_ticket tool with the issue ID."

_PRIORITY_LABEL = {0: "No priority", 1: "Urgent", 2: "High", 3: "Medium", 4: "Low"}


def format_priority(priority: int | None) -> str:
    if priority is None:
        return "None"
    return _PRIORITY_LABEL.get(priority, f"Priority {priority}")


def format_timestamp(value: datetime) -> str:
    """Local time in the process locale's preferred date and time representation."""
    return value.astimezone().strftime("%c")


def _child_lines(child: ChildSummary, indent: str) -> list[str]:
    return [
        f"{indent}- **{child.identifier}**: {child.title}",
        f"{indent}  Status: {child.state_name} | Assignee: {child.assignee_name} | Priority: {child.priority}",
    ]


def render_ticket(view: ResolvedIssueView, comments: Sequence[Comment]) -> str:
    """Render the single-ticket view. ``comments`` must already be oldest-first."""
    lines = [
        f"# {view.identifier}: {view.title}",
        "",
        "## Status",
        f"State: {view.state_name}",
        f"Priority: {view.priority}",
        f"Assignee: {view.assignee_name}",
        f"Team: {view.team_name or NO_TEAM}",
        f"Created: {format_timestamp(view.created_at)}",
        f"Updated: {format_timestamp(view.updated_at)}",
        f"Git branch name: {view.branch_name}",
        "",
        "## Description",
        view.description or NO_DESCRIPTION,
        "",
    ]

    if view.children:
        lines.append(f"## Child Issues ({len(view.children)})")
        blocks = ["\n".join(_child_lines(child, "")) for child in view.children]
        lines += ["\n\n".join(blocks), ""]

    lines.append("## Comments")
    if comments:
        blocks = [
            f"### {c.user_name or UNKNOWN} ({format_timestamp(c.created_at)})\n{c.body or NO_COMMENT_BODY}"
            for c in comments
        ]
        lines.append("\n\n".join(blocks))
    else:
        lines.append(NO_COMMENTS)

    return "\n".join(lines)


def render_my_issues(state: str, views: Sequence[ResolvedIssueView]) -> str:
    entries = []
    for view in views:
        lines = [
            f"- **{view.identifier}**: {view.title}",
            f"  Status: {view.state_name} | Team: {view.team_name or UNKNOWN} | Priority: {view.priority}"
            f" | Updated: {format_timestamp(view.updated_at)}",
        ]
        if view.parent_identifier:
            lines.append(f"  Parent: {view.parent_identifier}")
        if view.children:
            lines.append("  Sub-issues:")
            for child in view.children:
                lines += _child_lines(child, "    ")
        entries.append("\n".join(lines))

    return "\n".join(
        [
            f"# Your {state} Linear Issues ({len(views)})",
            "",
            "\n\n".join(entries),
            "",
            DETAILS_HINT,
        ]
    )


def render_search_results(
    views: Sequence[ResolvedIssueView],
    is_unassigned: bool | None = None,
    team_identifier: str | None = None,
    status: str | None = None,
    is_current_cycle: bool | None = None,
) -> str:
    lines = [f"# Linear Issues Search Results ({len(views)})"]
    if is_unassigned is not None:
        lines.append(f"Filtered by: {'Unassigned' if is_unassigned else 'Assigned'} issues")
    if team_identifier:
        lines.append(f"Team: {team_identifier}")
    if status:
        lines.append(f"Status: {status}")
    if is_current_cycle:
        lines.append("In current cycle only")

    entries = [
        f"- **{view.identifier}**: {view.title}\n"
        f"  Status: {view.state_name} | Team: {view.team_name or UNKNOWN} | Priority: {view.priority}\n"
        f"  Assignee: {view.assignee_name} | Created: {format_timestamp(view.created_at)}"
        f" | Cycle: {view.cycle_name or 'None'}"
        for view in views
    ]
    lines += ["", "\n\n".join(entries), "", DETAILS_HINT]
    return "\n".join(lines)


def render_created_issue(view: ResolvedIssueView) -> str:
    lines = [
        f"# Issue Created: {view.identifier} - {view.title}",
        "",
        f"Status: {view.state_name}",
        f"Team: {view.team_name or UNKNOWN}",
        f"Priority: {view.priority}",
        f"Assignee: {view.assignee_name}",
    ]
    if view.parent_identifier:
        lines.append(f"Parent Issue: {view.parent_identifier} - {view.parent_title}")
    lines += [
        f"Created: {format_timestamp(view.created_at)}",
        "",
        "## Description",
        view.description or NO_DESCRIPTION,
        "",
        f"Use the get_ticket tool with ID {view.identifier} to view this issue in detail.",
    ]
    return "\n".join(lines)


def render_teams(teams: Sequence[Team]) -> str:
    lines = ["# Available Linear Teams", ""]
    lines += [f"- **{team.name}** (ID: {team.id})" for team in teams]
    lines += ["", "Use the team ID when creating a new issue with the create_issue tool."]
    return "\n".join(lines)
