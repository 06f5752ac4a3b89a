"""Test configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from issueboard.errors import PersistenceError
from issueboard.gateway import PersistenceGateway
from issueboard.notifications import Notification, Notifier
from issueboard.query.filtering import FilterCriteria, filter_issues
from issueboard.query.search import search_issues
from issueboard.schemas import Issue, IssueUpdate, utc_now
from issueboard.store import IssueStore
from issueboard.workspace import IssueWorkspace

BASE_TIME = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def make_issue(issue_id: int, **fields) -> Issue:
    """Create an issue with deterministic timestamps and optional overrides."""
    defaults = {
        "id": issue_id,
        "title": f"Issue {issue_id}",
        "created_at": BASE_TIME + timedelta(hours=issue_id),
        "updated_at": BASE_TIME + timedelta(hours=issue_id),
    }
    defaults.update(fields)
    return Issue(**defaults)


class FakeGateway(PersistenceGateway):
    """In-memory gateway with failure injection.

    ``fail_fields`` makes updates touching those fields fail and ``reject``
    fails updates whose changed values it accepts. ``hold_fields`` maps a
    field to an event the update waits on before answering.
    """

    def __init__(self, issues=()):
        self.issues: dict[int, Issue] = {i.id: i.model_copy(deep=True) for i in issues}
        self.fail_all = False
        self.fail_fields: set[str] = set()
        self.hold_fields: dict[str, asyncio.Event] = {}
        self.reject: Optional[Callable[[dict], bool]] = None
        self.delete_result: Optional[bool] = None
        self.calls: list[tuple] = []

    def _check(self):
        if self.fail_all:
            raise PersistenceError("gateway unavailable")

    async def fetch_all(self) -> list[Issue]:
        self.calls.append(("fetch_all",))
        self._check()
        return [i.model_copy(deep=True) for i in self.issues.values()]

    async def fetch_by_id(self, issue_id: int) -> Optional[Issue]:
        self.calls.append(("fetch_by_id", issue_id))
        self._check()
        issue = self.issues.get(issue_id)
        return issue.model_copy(deep=True) if issue else None

    async def create(self, issue: Issue) -> Issue:
        self.calls.append(("create", issue.id))
        self._check()
        self.issues[issue.id] = issue.model_copy(deep=True)
        return issue.model_copy(deep=True)

    async def update(self, issue_id: int, changes: IssueUpdate) -> Issue:
        fields = changes.changes()
        self.calls.append(("update", issue_id, set(fields)))
        for name in fields:
            if name in self.hold_fields:
                await self.hold_fields[name].wait()
        self._check()
        if self.fail_fields & set(fields) or (self.reject and self.reject(fields)):
            raise PersistenceError(f"rejected update of {sorted(fields)}")

        stored = self.issues.get(issue_id)
        if stored is None:
            raise PersistenceError(f"Issue {issue_id} not found")
        for name, value in fields.items():
            setattr(stored, name, value)
        stored.updated_at = utc_now()
        return stored.model_copy(deep=True)

    async def delete(self, issue_id: int) -> bool:
        self.calls.append(("delete", issue_id))
        self._check()
        if self.delete_result is not None:
            return self.delete_result
        return self.issues.pop(issue_id, None) is not None

    async def search(self, query: str) -> list[Issue]:
        return search_issues(await self.fetch_all(), query)

    async def filter(self, criteria: FilterCriteria) -> list[Issue]:
        return filter_issues(await self.fetch_all(), criteria)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.notifications: list[Notification] = []

    async def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def kinds(self) -> list[str]:
        return [n.kind.value for n in self.notifications]


@pytest.fixture
def sample_issues() -> list[Issue]:
    return [
        make_issue(
            1,
            title="Login Bug Report",
            description="Users cannot sign in with SSO",
            type="bug",
            priority="high",
            status="todo",
            assignee="Sarah Chen",
            reporter="Alex Rivera",
            labels=["auth", "frontend"],
        ),
        make_issue(
            2,
            title="Feature Request",
            description="Dark mode for the dashboard",
            type="feature",
            priority="low",
            status="backlog",
            assignee="David Kim",
            reporter="Jessica Wong",
            labels=["ui"],
        ),
        make_issue(
            3,
            title="Upgrade database driver",
            type="task",
            priority="critical",
            status="in-progress",
            assignee="Sarah Chen",
            reporter="Tom Anderson",
        ),
    ]


@pytest.fixture
def gateway(sample_issues) -> FakeGateway:
    return FakeGateway(sample_issues)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store(sample_issues) -> IssueStore:
    return IssueStore(sample_issues)


@pytest.fixture
def workspace(gateway, notifier, store) -> IssueWorkspace:
    return IssueWorkspace(gateway=gateway, notifier=notifier, store=store)
