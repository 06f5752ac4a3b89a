"""Status workflow and kanban board controller.

Every status can move to every other status in one step; the board imposes
no adjacency rules. A move to the status an issue already has is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from issueboard.notifications import NotificationKind, Notifier, emit
from issueboard.optimistic import OptimisticUpdater, UpdateOutcome
from issueboard.schemas import Issue, IssuePriority, IssueStatus, IssueUpdate

logger = logging.getLogger(__name__)

COLUMN_TITLES = {
    IssueStatus.BACKLOG: "Backlog",
    IssueStatus.TODO: "To Do",
    IssueStatus.IN_PROGRESS: "In Progress",
    IssueStatus.REVIEW: "Review",
    IssueStatus.DONE: "Done",
}


@dataclass(frozen=True)
class BoardColumn:
    status: IssueStatus
    title: str
    issues: list[Issue]

    @property
    def count(self) -> int:
        return len(self.issues)


@dataclass(frozen=True)
class DragOperation:
    """An issue picked up from the column of ``source_status``."""

    issue_id: int
    source_status: IssueStatus


def allowed_targets(current: IssueStatus) -> list[IssueStatus]:
    """Statuses reachable from ``current`` in one move: all of the others."""
    current = IssueStatus(current)
    return [status for status in IssueStatus if status != current]


def board_columns(issues: list[Issue]) -> list[BoardColumn]:
    """Group issues into board columns in workflow order, keeping input order."""
    grouped: dict[IssueStatus, list[Issue]] = {status: [] for status in IssueStatus}
    for issue in issues:
        grouped[IssueStatus(issue.status)].append(issue)
    return [
        BoardColumn(status=status, title=COLUMN_TITLES[status], issues=grouped[status])
        for status in IssueStatus
    ]


class StatusWorkflow:
    def __init__(self, updater: OptimisticUpdater, notifier: Optional[Notifier] = None):
        self.updater = updater
        self.notifier = notifier

    async def transition(self, issue_id: int, target: IssueStatus) -> UpdateOutcome:
        """Move an issue to ``target``.

        Raises ``NotFoundError`` for an unknown issue. Moving to the current
        status succeeds without touching ``updated_at``.
        """
        target = IssueStatus(target)
        current = self.updater.store.get(issue_id)
        if current.status == target:
            return UpdateOutcome(True, current)

        outcome = await self.updater.update(issue_id, IssueUpdate(status=target))
        if outcome.succeeded:
            logger.info(
                f"Issue {issue_id} moved from {current.status.value} to {target.value}",
                extra={"issue_id": issue_id},
            )
            await emit(
                self.notifier,
                NotificationKind.STATUS_UPDATED,
                f"Issue moved to {target.value.replace('-', ' ')}",
                issue_id,
            )
        else:
            await emit(
                self.notifier,
                NotificationKind.STATUS_UPDATE_FAILED,
                "Failed to update issue status",
                issue_id,
            )
        return outcome

    def start_drag(self, issue_id: int) -> DragOperation:
        issue = self.updater.store.get(issue_id)
        return DragOperation(issue_id=issue.id, source_status=issue.status)

    async def drop(
        self, drag: Optional[DragOperation], target_column: Optional[IssueStatus]
    ) -> Optional[UpdateOutcome]:
        """Finish a drag. Returns ``None`` when the drop is a no-op.

        Dropping outside any column (``target_column=None``) or back onto the
        originating column does nothing.
        """
        if drag is None or target_column is None:
            return None
        target_column = IssueStatus(target_column)
        if target_column == drag.source_status:
            return None
        return await self.transition(drag.issue_id, target_column)

    async def set_priority(self, issue_id: int, priority: IssuePriority) -> UpdateOutcome:
        priority = IssuePriority(priority)
        current = self.updater.store.get(issue_id)
        if current.priority == priority:
            return UpdateOutcome(True, current)

        outcome = await self.updater.update(issue_id, IssueUpdate(priority=priority))
        if outcome.succeeded:
            await emit(
                self.notifier,
                NotificationKind.PRIORITY_UPDATED,
                "Priority updated successfully",
                issue_id,
            )
        else:
            await emit(
                self.notifier,
                NotificationKind.PRIORITY_UPDATE_FAILED,
                "Failed to update priority",
                issue_id,
            )
        return outcome
