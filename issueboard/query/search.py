"""Free-text issue search and match highlighting."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from issueboard.schemas import Issue

SEARCH_HISTORY_LIMIT = 5


@dataclass(frozen=True)
class MatchSpan:
    """Half-open ``[start, end)`` range of a match inside a text."""

    start: int
    end: int


def _searchable_fields(issue: Issue) -> list[str]:
    return [issue.title, issue.description, *issue.labels, issue.assignee, issue.reporter]


def search_issues(issues: list[Issue], query: str | None) -> list[Issue]:
    """Filter issues by case-insensitive substring match.

    Matches against title, description, each label, assignee and reporter.
    Returns all issues if the query is empty or only whitespace.
    """
    if not query or not query.strip():
        return issues

    query_lower = query.lower()
    return [
        issue
        for issue in issues
        if any(query_lower in text.lower() for text in _searchable_fields(issue))
    ]


def locate_matches(text: str | None, query: str | None) -> list[MatchSpan]:
    """Find every non-overlapping occurrence of ``query`` in ``text``.

    The query is literal text, so characters such as ``(`` or ``*`` match
    themselves.
    """
    if not text or not query:
        return []

    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return [MatchSpan(match.start(), match.end()) for match in pattern.finditer(text)]


@dataclass
class SearchHistory:
    """Most recent distinct queries, newest first."""

    limit: int = SEARCH_HISTORY_LIMIT
    queries: list[str] = field(default_factory=list)

    def record(self, query: str) -> None:
        query = query.strip()
        if not query:
            return
        self.queries = [query, *(q for q in self.queries if q != query)][: self.limit]
