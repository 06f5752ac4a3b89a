"""Tests for the issue workspace entry point."""

import typing
from datetime import timedelta

import pytest

from issueboard.errors import NotFoundError, ValidationError
from issueboard.notifications import Notification, Notifier
from issueboard.query.filtering import FilterCriteria
from issueboard.query.sorting import SortDirection, SortField
from issueboard.schemas import Issue, IssueCreate, IssueStatus, IssueUpdate
from issueboard.workflow import BoardColumn
from issueboard.workspace import IssueWorkspace
from tests.conftest import BASE_TIME, make_issue


class BrokenNotifier(Notifier):
    async def notify(self, notification: Notification) -> None:
        raise RuntimeError("notifier down")


def test_annotations_resolve_to_builtin_list():
    assert typing.get_type_hints(IssueWorkspace.view)["return"] == list[Issue]
    assert typing.get_type_hints(IssueWorkspace.board)["return"] == list[BoardColumn]


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_issue(self, workspace, gateway, notifier):
        outcome = await workspace.create(
            IssueCreate(title="Crash on save", type="bug", priority="high")
        )

        issue = outcome.issue
        assert outcome.succeeded
        assert issue.id == 4
        assert issue.status == IssueStatus.BACKLOG
        assert issue.priority == "high"
        assert issue.labels == []
        assert 4 in gateway.issues
        assert notifier.kinds == ["issue_created"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   "])
    async def test_blank_title_rejected(self, workspace, gateway, title):
        with pytest.raises(ValidationError) as exc_info:
            await workspace.create(IssueCreate(title=title))
        assert exc_info.value.field == "title"
        assert ("create", 4) not in gateway.calls

    @pytest.mark.asyncio
    async def test_failed_create_reported(self, workspace, gateway, notifier):
        gateway.fail_all = True
        outcome = await workspace.create(IssueCreate(title="Crash on save"))
        assert not outcome.succeeded
        assert len(workspace.list()) == 3
        assert notifier.kinds == ["issue_create_failed"]


class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_fields(self, workspace, notifier):
        outcome = await workspace.edit(
            1, IssueUpdate(description="SSO and password", labels="auth, sso")
        )
        assert outcome.succeeded
        issue = workspace.get(1)
        assert issue.description == "SSO and password"
        assert issue.labels == ["auth", "sso"]
        assert issue.reporter == "Alex Rivera"
        assert notifier.kinds == ["issue_updated"]

    @pytest.mark.asyncio
    async def test_blank_title_rejected_before_mutation(self, workspace, gateway):
        with pytest.raises(ValidationError):
            await workspace.edit(1, IssueUpdate(title="  "))
        assert workspace.get(1).title == "Login Bug Report"
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_unknown_issue(self, workspace):
        with pytest.raises(NotFoundError):
            await workspace.edit(77, IssueUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_failed_edit_rolls_back(self, workspace, gateway, notifier):
        gateway.fail_all = True
        outcome = await workspace.edit(1, IssueUpdate(assignee="Kevin Zhang"))
        assert not outcome.succeeded
        assert workspace.get(1).assignee == "Sarah Chen"
        assert notifier.kinds == ["issue_update_failed"]


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, workspace, notifier):
        outcome = await workspace.delete(2)
        assert outcome.succeeded
        with pytest.raises(NotFoundError):
            workspace.get(2)
        assert notifier.kinds == ["issue_deleted"]

    @pytest.mark.asyncio
    async def test_unknown_issue(self, workspace):
        with pytest.raises(NotFoundError):
            await workspace.delete(99)


class TestComments:
    @pytest.mark.asyncio
    async def test_add_comment(self, workspace, gateway, notifier):
        outcome = await workspace.add_comment(1, "  Looks good  ", author="Sarah Chen")

        comments = workspace.get(1).comments
        assert outcome.succeeded
        assert [(c.id, c.author, c.content) for c in comments] == [
            ("c1", "Sarah Chen", "Looks good")
        ]
        assert gateway.issues[1].comments[0].content == "Looks good"
        assert notifier.kinds == ["comment_added"]

    @pytest.mark.asyncio
    async def test_comments_append_in_order_with_default_author(self, workspace):
        await workspace.add_comment(2, "first")
        await workspace.add_comment(2, "second: with colon")

        comments = workspace.get(2).comments
        assert [c.content for c in comments] == ["first", "second: with colon"]
        assert [c.id for c in comments] == ["c1", "c2"]
        assert {c.author for c in comments} == {"Current User"}

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, workspace):
        with pytest.raises(ValidationError):
            await workspace.add_comment(1, "   ")

    @pytest.mark.asyncio
    async def test_failed_comment_rolled_back(self, workspace, gateway, notifier):
        gateway.fail_fields = {"comments"}
        outcome = await workspace.add_comment(1, "Looks good")
        assert not outcome.succeeded
        assert workspace.get(1).comments == []
        assert notifier.kinds == ["comment_failed"]


class TestViews:
    def test_view_defaults_to_most_recently_updated(self, workspace):
        assert [i.id for i in workspace.view()] == [3, 2, 1]

    def test_view_filters_searches_and_sorts(self, workspace):
        criteria = FilterCriteria.from_mapping({"assignee": ["Sarah Chen"]})
        issues = workspace.view(criteria, SortField.PRIORITY, SortDirection.ASC, query="a")
        assert [i.id for i in issues] == [1, 3]

    def test_search_records_history(self, workspace):
        assert [i.id for i in workspace.search("bug")] == [1]
        workspace.search("  ")
        workspace.search("sso")
        assert workspace.search_history.queries == ["sso", "bug"]

    def test_view_does_not_record_history(self, workspace):
        workspace.view(query="bug")
        assert workspace.search_history.queries == []

    def test_board(self, workspace):
        criteria = FilterCriteria.from_mapping({"assignee": ["Sarah Chen"]})
        columns = {c.status: [i.id for i in c.issues] for c in workspace.board(criteria)}
        assert columns[IssueStatus.TODO] == [1]
        assert columns[IssueStatus.IN_PROGRESS] == [3]
        assert columns[IssueStatus.BACKLOG] == []

    def test_summary(self, workspace):
        summary = workspace.summary(now=BASE_TIME + timedelta(days=2))
        assert summary.total == 3
        assert summary.open == 3
        assert summary.critical == 1
        assert summary.status_distribution == {
            "backlog": 1,
            "todo": 1,
            "in-progress": 1,
            "review": 0,
            "done": 0,
        }
        assert [i.id for i in summary.recent] == [3, 2, 1]
        assert [i.id for i in summary.high_priority] == [1, 3]


class TestSummaryWindows:
    def test_recent_and_high_priority_limits(self):
        from issueboard.dashboard import summarize

        issues = [
            make_issue(n, priority="critical", status="done" if n == 1 else "todo")
            for n in range(1, 9)
        ]
        summary = summarize(issues, now=BASE_TIME + timedelta(days=3, hours=9))

        assert len(summary.recent) == 6
        assert summary.recent[0].id == 8
        assert [i.id for i in summary.high_priority] == [2, 3, 4, 5]
        assert summary.open == 7

    def test_old_issues_are_not_recent(self):
        from issueboard.dashboard import summarize

        summary = summarize([make_issue(1)], now=BASE_TIME + timedelta(days=10))
        assert summary.recent == []


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_loads_gateway_state(self, gateway, notifier):
        from issueboard.workspace import IssueWorkspace

        gateway.issues[10] = make_issue(10, title="Remote only")
        workspace = IssueWorkspace(gateway=gateway, notifier=notifier)

        assert await workspace.refresh()
        assert workspace.get(10).title == "Remote only"
        created = await workspace.create(IssueCreate(title="Next"))
        assert created.issue.id == 11

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_store(self, workspace, gateway, notifier):
        gateway.fail_all = True
        assert not await workspace.refresh()
        assert len(workspace.list()) == 3
        assert notifier.kinds == ["load_failed"]


class TestNotifierFailures:
    @pytest.mark.asyncio
    async def test_transition_outcome_survives_broken_notifier(self, store, gateway):
        workspace = IssueWorkspace(gateway=gateway, notifier=BrokenNotifier(), store=store)

        outcome = await workspace.transition(2, IssueStatus.DONE)

        assert outcome.succeeded
        assert workspace.get(2).status == IssueStatus.DONE
        assert gateway.issues[2].status == IssueStatus.DONE

    @pytest.mark.asyncio
    async def test_failure_notifications_also_guarded(self, store, gateway, caplog):
        gateway.fail_all = True
        workspace = IssueWorkspace(gateway=gateway, notifier=BrokenNotifier(), store=store)

        outcome = await workspace.create(IssueCreate(title="Crash on save"))

        assert not outcome.succeeded
        assert "BrokenNotifier failed on issue_create_failed" in caplog.text
