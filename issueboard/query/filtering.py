"""Pure filtering logic for issue views."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping

from issueboard.schemas import Issue

FILTER_CATEGORIES = ("status", "priority", "type", "assignee")


def _plain(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@dataclass(frozen=True)
class FilterCriteria:
    """Accepted values per category. An empty category does not restrict.

    Categories combine with AND, values inside one category with OR.
    """

    status: frozenset[str] = field(default_factory=frozenset)
    priority: frozenset[str] = field(default_factory=frozenset)
    type: frozenset[str] = field(default_factory=frozenset)
    assignee: frozenset[str] = field(default_factory=frozenset)

    @staticmethod
    def from_mapping(mapping: Mapping[str, Iterable] | None) -> FilterCriteria:
        mapping = mapping or {}
        unknown = set(mapping) - set(FILTER_CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown filter categories: {sorted(unknown)}")
        return FilterCriteria(
            **{
                category: frozenset(_plain(v) for v in (mapping.get(category) or ()))
                for category in FILTER_CATEGORIES
            }
        )

    def as_dict(self) -> dict[str, list[str]]:
        return {category: sorted(getattr(self, category)) for category in FILTER_CATEGORIES}

    @property
    def is_empty(self) -> bool:
        return self.active_count == 0

    @property
    def active_count(self) -> int:
        return sum(len(getattr(self, category)) for category in FILTER_CATEGORIES)

    def toggle(self, category: str, value) -> FilterCriteria:
        """Return new criteria with ``value`` added to or removed from ``category``."""
        if category not in FILTER_CATEGORIES:
            raise ValueError(f"Unknown filter category: {category}")
        current = getattr(self, category)
        value = _plain(value)
        updated = current - {value} if value in current else current | {value}
        return replace(self, **{category: updated})

    def cleared(self) -> FilterCriteria:
        return FilterCriteria()

    def accepts(self, issue: Issue) -> bool:
        for category in FILTER_CATEGORIES:
            accepted = getattr(self, category)
            if accepted and _plain(getattr(issue, category)) not in accepted:
                return False
        return True


def filter_issues(issues: list[Issue], criteria: FilterCriteria | None) -> list[Issue]:
    """Keep the issues accepted by ``criteria``, in input order.

    Empty criteria return the input unchanged.
    """
    if criteria is None or criteria.is_empty:
        return issues
    return [issue for issue in issues if criteria.accepts(issue)]
