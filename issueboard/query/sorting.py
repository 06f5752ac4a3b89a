"""Pure sorting logic for issue views."""

from enum import Enum

from issueboard.schemas import Issue, IssuePriority, IssueStatus


class SortField(str, Enum):
    UPDATED_AT = "updated_at"
    CREATED_AT = "created_at"
    TITLE = "title"
    PRIORITY = "priority"
    STATUS = "status"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


PRIORITY_RANK = {
    IssuePriority.LOW.value: 1,
    IssuePriority.MEDIUM.value: 2,
    IssuePriority.HIGH.value: 3,
    IssuePriority.CRITICAL.value: 4,
}

STATUS_RANK = {status.value: rank for rank, status in enumerate(IssueStatus, start=1)}


def _rank(table: dict[str, int], value) -> int:
    # Unrecognised values rank 0 and sort first ascending
    return table.get(getattr(value, "value", value), 0)


def _sort_key(sort_field: SortField):
    if sort_field == SortField.PRIORITY:
        return lambda issue: _rank(PRIORITY_RANK, issue.priority)
    if sort_field == SortField.STATUS:
        return lambda issue: _rank(STATUS_RANK, issue.status)
    if sort_field == SortField.TITLE:
        return lambda issue: issue.title
    if sort_field == SortField.CREATED_AT:
        return lambda issue: issue.created_at
    return lambda issue: issue.updated_at


def sort_issues(
    issues: list[Issue],
    sort_field: SortField = SortField.UPDATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> list[Issue]:
    """Sort issues by ``sort_field``.

    Returns a new list; the input is not modified. The sort is stable in both
    directions, so issues with equal keys keep their input order.
    """
    sort_field = SortField(sort_field)
    direction = SortDirection(direction)

    # sorted(reverse=True) keeps equal elements in input order
    return sorted(issues, key=_sort_key(sort_field), reverse=direction == SortDirection.DESC)
