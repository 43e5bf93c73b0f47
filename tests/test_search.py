"""Tests for the search filter builder."""

import pytest

from fakes import FakeTracker
from linear_mcp.errors import NoActiveCycleError, NotFoundError
from linear_mcp.models import Cycle
from linear_mcp.search import (
    SearchParams,
    SearchPredicate,
    build_search_predicate,
    clamp_limit,
    my_issues_filter,
)


class TestMyIssuesFilter:
    def test_active(self) -> None:
        assert my_issues_filter("u1", "active") == {
            "assignee": {"id": {"eq": "u1"}},
            "state": {"type": {"in": ["started", "unstarted"]}},
        }

    @pytest.mark.parametrize("state", ["backlog", "completed", "canceled"])
    def test_single_type(self, state: str) -> None:
        assert my_issues_filter("u1", state)["state"] == {"type": {"eq": state}}  # type: ignore[arg-type]

    def test_all_has_no_state(self) -> None:
        assert my_issues_filter("u1", "all") == {"assignee": {"id": {"eq": "u1"}}}


class TestClampLimit:
    @pytest.mark.parametrize(("limit", "expected"), [(None, 20), (0, 1), (-3, 1), (50, 50), (250, 100)])
    def test_bounds(self, limit: int | None, expected: int) -> None:
        assert clamp_limit(limit) == expected


class TestPredicateToFilter:
    def test_empty(self) -> None:
        assert SearchPredicate().to_filter() == {}

    def test_all_constraints(self) -> None:
        predicate = SearchPredicate(assignee_null=False, team_id="t1", state_id="s1", cycle_ids=("c1", "c2"))
        assert predicate.to_filter() == {
            "assignee": {"null": False},
            "team": {"id": {"eq": "t1"}},
            "state": {"id": {"eq": "s1"}},
            "cycle": {"id": {"in": ["c1", "c2"]}},
        }


@pytest.mark.asyncio
class TestBuildSearchPredicate:
    async def test_no_params(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams())
        assert predicate.to_filter() == {}
        assert predicate.first == 20
        assert tracker.calls == []

    async def test_unassigned(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams(is_unassigned=True))
        assert predicate.to_filter() == {"assignee": {"null": True}}

    async def test_team_key_case_insensitive(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams(team_identifier="eng"))
        assert predicate.team_id == "team-eng"

    async def test_unknown_team(self, tracker: FakeTracker) -> None:
        with pytest.raises(NotFoundError, match='"ZZZ"'):
            await build_search_predicate(tracker, SearchParams(team_identifier="ZZZ"))

    async def test_status_scoped_to_team(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams(team_identifier="ENG", status="in progress"))
        assert predicate.state_id == "state-progress"
        assert ("list_workflow_states", "team-eng") in tracker.calls

    async def test_unknown_status(self, tracker: FakeTracker) -> None:
        with pytest.raises(NotFoundError, match='Status "Shipped" not found'):
            await build_search_predicate(tracker, SearchParams(status="Shipped"))

    async def test_current_cycle(self, tracker: FakeTracker) -> None:
        tracker.active_cycles = [Cycle(id="c1", name="Sprint 1"), Cycle(id="c2")]
        predicate = await build_search_predicate(tracker, SearchParams(is_current_cycle=True))
        assert predicate.cycle_ids == ("c1", "c2")

    async def test_no_active_cycle(self, tracker: FakeTracker) -> None:
        with pytest.raises(NoActiveCycleError):
            await build_search_predicate(tracker, SearchParams(is_current_cycle=True))

    async def test_current_cycle_false_adds_nothing(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams(is_current_cycle=False))
        assert predicate.cycle_ids is None
        assert tracker.calls == []

    async def test_limit_clamped(self, tracker: FakeTracker) -> None:
        predicate = await build_search_predicate(tracker, SearchParams(limit=500))
        assert predicate.first == 100
