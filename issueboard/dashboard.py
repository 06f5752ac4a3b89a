"""Dashboard metrics over the issue collection."""

from datetime import datetime
from typing import Optional

from issueboard.query.sorting import SortDirection, SortField, sort_issues
from issueboard.schemas import DashboardSummary, Issue, IssuePriority, IssueStatus, utc_now

RECENT_DAYS = 3
RECENT_LIMIT = 6
HIGH_PRIORITY_LIMIT = 4


def summarize(issues: list[Issue], now: Optional[datetime] = None) -> DashboardSummary:
    now = now or utc_now()

    status_distribution = {status.value: 0 for status in IssueStatus}
    for issue in issues:
        status_distribution[IssueStatus(issue.status).value] += 1

    recent = [issue for issue in issues if (now - issue.updated_at).days <= RECENT_DAYS]
    recent = sort_issues(recent, SortField.UPDATED_AT, SortDirection.DESC)[:RECENT_LIMIT]

    high_priority = [
        issue
        for issue in issues
        if issue.priority in (IssuePriority.HIGH, IssuePriority.CRITICAL)
        and issue.status != IssueStatus.DONE
    ][:HIGH_PRIORITY_LIMIT]

    return DashboardSummary(
        total=len(issues),
        open=sum(1 for issue in issues if issue.status != IssueStatus.DONE),
        critical=sum(1 for issue in issues if issue.priority == IssuePriority.CRITICAL),
        status_distribution=status_distribution,
        recent=recent,
        high_priority=high_priority,
    )
