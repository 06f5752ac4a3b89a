"""In-memory issue store.

The store owns every Issue instance. Readers always get deep copies, so the
only way to change an issue is through the store's mutation methods.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from issueboard.errors import NotFoundError
from issueboard.schemas import DEFAULT_REPORTER, Issue, IssueCreate, IssueUpdate, utc_now

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class IssueStore:
    def __init__(
        self,
        issues: Iterable[Issue] = (),
        clock: Callable[[], datetime] = utc_now,
        default_reporter: str = DEFAULT_REPORTER,
    ):
        self._issues: dict[int, Issue] = {}
        self._last_id = 0
        self._clock = clock
        self.default_reporter = default_reporter
        self.load(issues)

    def __len__(self) -> int:
        return len(self._issues)

    def __contains__(self, issue_id: int) -> bool:
        return issue_id in self._issues

    def _require(self, issue_id: int) -> Issue:
        issue = self._issues.get(issue_id)
        if issue is None:
            raise NotFoundError(issue_id)
        return issue

    def _next_timestamp(self, issue: Issue) -> datetime:
        # updated_at must strictly increase even when the clock does not move
        now = self._clock()
        if now <= issue.updated_at:
            now = issue.updated_at + _TICK
        return now

    def load(self, issues: Iterable[Issue]) -> None:
        """Replace the contents with ``issues``. Ids already issued stay used."""
        self._issues = {issue.id: issue.model_copy(deep=True) for issue in issues}
        if self._issues:
            self._last_id = max(self._last_id, max(self._issues))

    def list(self) -> list[Issue]:
        return [issue.model_copy(deep=True) for issue in self._issues.values()]

    def get(self, issue_id: int) -> Issue:
        return self._require(issue_id).model_copy(deep=True)

    def create(self, draft: Optional[IssueCreate] = None) -> Issue:
        draft = draft or IssueCreate()
        now = self._clock()
        self._last_id += 1

        issue = Issue(
            id=self._last_id,
            title=draft.title,
            description=draft.description,
            type=draft.type,
            priority=draft.priority,
            status=draft.status,
            assignee=draft.assignee,
            reporter=draft.reporter or self.default_reporter,
            labels=list(draft.labels),
            comments=[],
            created_at=now,
            updated_at=now,
        )
        self._issues[issue.id] = issue
        logger.debug("Created issue", extra={"issue_id": issue.id})
        return issue.model_copy(deep=True)

    def update(self, issue_id: int, changes: IssueUpdate) -> Issue:
        """Shallow-merge the fields set on ``changes`` and refresh updated_at."""
        return self.write_fields(issue_id, changes.changes())

    def write_fields(
        self,
        issue_id: int,
        fields: dict[str, Any],
        updated_at: Optional[datetime] = None,
    ) -> Issue:
        """Assign raw field values.

        Without ``updated_at`` the issue gets a fresh timestamp; with it the
        timestamp is set verbatim (used when reconciling or rolling back).
        """
        issue = self._require(issue_id)
        for name, value in fields.items():
            if name in ("id", "reporter", "created_at", "updated_at"):
                raise ValueError(f"Field {name!r} cannot be written")
            setattr(issue, name, value)

        issue.updated_at = updated_at if updated_at is not None else self._next_timestamp(issue)
        return issue.model_copy(deep=True)

    def delete(self, issue_id: int) -> Issue:
        self._require(issue_id)
        return self._issues.pop(issue_id)

    def restore(self, issue: Issue) -> None:
        """Put a deleted issue back under its original id."""
        self._issues[issue.id] = issue.model_copy(deep=True)
        self._last_id = max(self._last_id, issue.id)

    def discard(self, issue_id: int) -> None:
        """Drop an issue without error if it is already gone."""
        self._issues.pop(issue_id, None)
