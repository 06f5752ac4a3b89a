"""Persistence gateway interface.

The gateway is the remote source of truth behind the in-memory store. Every
call may fail; implementations raise ``PersistenceError`` (or any other
exception, which callers treat the same way).
"""

from typing import Optional

from issueboard.query.filtering import FilterCriteria
from issueboard.schemas import Issue, IssueUpdate


class PersistenceGateway:
    """Abstract base for issue persistence backends."""

    async def fetch_all(self) -> list[Issue]:
        raise NotImplementedError

    async def fetch_by_id(self, issue_id: int) -> Optional[Issue]:
        raise NotImplementedError

    async def create(self, issue: Issue) -> Issue:
        """Persist a locally created issue under its local id."""
        raise NotImplementedError

    async def update(self, issue_id: int, changes: IssueUpdate) -> Issue:
        """Apply ``changes`` remotely and return the stored issue.

        The returned ``updated_at`` is the server's value and may differ from
        the local one.
        """
        raise NotImplementedError

    async def delete(self, issue_id: int) -> bool:
        raise NotImplementedError

    async def search(self, query: str) -> list[Issue]:
        raise NotImplementedError

    async def filter(self, criteria: FilterCriteria) -> list[Issue]:
        raise NotImplementedError
