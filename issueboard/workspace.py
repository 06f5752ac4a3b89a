"""Issue workspace: the entry point callers use.

Wires the store, the optimistic update protocol, the status workflow and the
query pipeline together around one persistence gateway and an optional
notifier.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from issueboard.dashboard import summarize
from issueboard.errors import ValidationError
from issueboard.gateway import PersistenceGateway
from issueboard.notifications import NotificationKind, Notifier, emit
from issueboard.optimistic import OptimisticUpdater, UpdateOutcome
from issueboard.query.filtering import FilterCriteria, filter_issues
from issueboard.query.search import SearchHistory, search_issues
from issueboard.query.sorting import SortDirection, SortField, sort_issues
from issueboard.schemas import (
    Comment,
    DashboardSummary,
    Issue,
    IssueCreate,
    IssuePriority,
    IssueStatus,
    IssueUpdate,
)
from issueboard.store import IssueStore
from issueboard.workflow import BoardColumn, DragOperation, StatusWorkflow, board_columns

logger = logging.getLogger(__name__)


def _require_title(title: Optional[str]) -> None:
    if title is None or not title.strip():
        raise ValidationError("title", "Title is required")


def _next_comment_id(comments: list[Comment]) -> str:
    taken = {comment.id for comment in comments}
    n = len(comments) + 1
    while f"c{n}" in taken:
        n += 1
    return f"c{n}"


class IssueWorkspace:
    def __init__(
        self,
        gateway: PersistenceGateway,
        notifier: Optional[Notifier] = None,
        store: Optional[IssueStore] = None,
    ):
        self.store = store if store is not None else IssueStore()
        self.gateway = gateway
        self.notifier = notifier
        self.updater = OptimisticUpdater(self.store, gateway)
        self.workflow = StatusWorkflow(self.updater, notifier)
        self.search_history = SearchHistory()

    async def refresh(self) -> bool:
        """Reload the store from the gateway. On failure the store is kept."""
        try:
            issues = await self.gateway.fetch_all()
        except Exception as exc:
            logger.error(f"Failed to load issues: {exc}", exc_info=True)
            await emit(self.notifier, NotificationKind.LOAD_FAILED, "Failed to load issues")
            return False

        self.store.load(issues)
        logger.info(f"Loaded {len(issues)} issues")
        return True

    def get(self, issue_id: int) -> Issue:
        return self.store.get(issue_id)

    def list(self) -> list[Issue]:
        return self.store.list()

    def view(
        self,
        criteria: Optional[FilterCriteria] = None,
        sort_field: SortField = SortField.UPDATED_AT,
        direction: SortDirection = SortDirection.DESC,
        query: Optional[str] = None,
    ) -> list[Issue]:
        """Filter, search and sort the current issues. Changes nothing."""
        issues = search_issues(filter_issues(self.store.list(), criteria), query)
        return sort_issues(issues, sort_field, direction)

    def search(
        self,
        query: str,
        criteria: Optional[FilterCriteria] = None,
        sort_field: SortField = SortField.UPDATED_AT,
        direction: SortDirection = SortDirection.DESC,
    ) -> list[Issue]:
        """Run a user search: record ``query`` in the history, then view."""
        self.search_history.record(query)
        return self.view(criteria, sort_field, direction, query)

    def board(self, criteria: Optional[FilterCriteria] = None) -> list[BoardColumn]:
        return board_columns(filter_issues(self.store.list(), criteria))

    def summary(self, now: Optional[datetime] = None) -> DashboardSummary:
        return summarize(self.store.list(), now)

    async def create(self, draft: IssueCreate) -> UpdateOutcome:
        _require_title(draft.title)

        outcome = await self.updater.create(draft)
        if outcome.succeeded:
            await emit(
                self.notifier,
                NotificationKind.ISSUE_CREATED,
                f"Issue created successfully: {outcome.issue.title}",
                outcome.issue.id,
            )
        else:
            await emit(self.notifier, NotificationKind.ISSUE_CREATE_FAILED, "Failed to save issue")
        return outcome

    async def edit(self, issue_id: int, changes: IssueUpdate) -> UpdateOutcome:
        """Commit an edit. A blank title is rejected before anything changes."""
        if "title" in changes.model_fields_set:
            _require_title(changes.title)

        outcome = await self.updater.update(issue_id, changes)
        if outcome.succeeded:
            await emit(
                self.notifier,
                NotificationKind.ISSUE_UPDATED,
                "Issue updated successfully",
                issue_id,
            )
        else:
            await emit(
                self.notifier,
                NotificationKind.ISSUE_UPDATE_FAILED,
                "Failed to save issue",
                issue_id,
            )
        return outcome

    async def delete(self, issue_id: int) -> UpdateOutcome:
        outcome = await self.updater.delete(issue_id)
        if outcome.succeeded:
            await emit(self.notifier, NotificationKind.ISSUE_DELETED, "Issue deleted", issue_id)
        else:
            await emit(
                self.notifier,
                NotificationKind.ISSUE_DELETE_FAILED,
                "Failed to delete issue",
                issue_id,
            )
        return outcome

    async def transition(self, issue_id: int, status: IssueStatus) -> UpdateOutcome:
        return await self.workflow.transition(issue_id, status)

    def start_drag(self, issue_id: int) -> DragOperation:
        return self.workflow.start_drag(issue_id)

    async def drop(
        self, drag: Optional[DragOperation], target_column: Optional[IssueStatus]
    ) -> Optional[UpdateOutcome]:
        return await self.workflow.drop(drag, target_column)

    async def set_priority(self, issue_id: int, priority: IssuePriority) -> UpdateOutcome:
        return await self.workflow.set_priority(issue_id, priority)

    async def add_comment(
        self, issue_id: int, content: str, author: Optional[str] = None
    ) -> UpdateOutcome:
        content = (content or "").strip()
        if not content:
            raise ValidationError("content", "Comment cannot be empty")

        issue = self.store.get(issue_id)
        comment = Comment(
            id=_next_comment_id(issue.comments),
            author=author or self.store.default_reporter,
            content=content,
        )

        outcome = await self.updater.update(
            issue_id, IssueUpdate(comments=[*issue.comments, comment])
        )
        if outcome.succeeded:
            await emit(self.notifier, NotificationKind.COMMENT_ADDED, "Comment added", issue_id)
        else:
            await emit(
                self.notifier,
                NotificationKind.COMMENT_FAILED,
                "Failed to add comment",
                issue_id,
            )
        return outcome

