"""Pure filter, sort and search logic over issue collections."""

from issueboard.query.filtering import FilterCriteria, filter_issues
from issueboard.query.search import MatchSpan, SearchHistory, locate_matches, search_issues
from issueboard.query.sorting import SortDirection, SortField, sort_issues

__all__ = [
    "FilterCriteria",
    "MatchSpan",
    "SearchHistory",
    "SortDirection",
    "SortField",
    "filter_issues",
    "locate_matches",
    "search_issues",
    "sort_issues",
]
