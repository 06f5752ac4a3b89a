"""Optimistic update protocol.

A mutation is applied to the local store first, then confirmed with the
persistence gateway. Each update is recorded as per-field intents
(``FieldChange``) so that a failed confirmation rolls back only the fields it
wrote, and only where nothing newer has replaced them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from issueboard.errors import PersistenceError
from issueboard.gateway import PersistenceGateway
from issueboard.schemas import Issue, IssueCreate, IssueUpdate
from issueboard.store import IssueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldChange:
    field: str
    prior: Any
    new: Any


@dataclass
class UpdateOutcome:
    """Result of one optimistic operation.

    ``issue`` is the local state after confirmation or rollback (``None`` if
    the issue no longer exists locally).
    """

    succeeded: bool
    issue: Optional[Issue] = None
    error: Optional[PersistenceError] = None
    changes: list[FieldChange] = field(default_factory=list)


def _as_persistence_error(exc: Exception) -> PersistenceError:
    if isinstance(exc, PersistenceError):
        return exc
    return PersistenceError(f"{type(exc).__name__}: {exc}")


class OptimisticUpdater:
    def __init__(self, store: IssueStore, gateway: PersistenceGateway):
        self.store = store
        self.gateway = gateway

    def _current(self, issue_id: int) -> Optional[Issue]:
        return self.store.get(issue_id) if issue_id in self.store else None

    async def update(self, issue_id: int, changes: IssueUpdate) -> UpdateOutcome:
        """Apply ``changes`` locally, then confirm them remotely.

        Raises ``NotFoundError`` before anything is sent if the issue is
        unknown.
        """
        before = self.store.get(issue_id)
        fields = changes.changes()
        intents = [FieldChange(name, getattr(before, name), value) for name, value in fields.items()]

        stamped = self.store.write_fields(issue_id, fields).updated_at

        try:
            confirmed = await self.gateway.update(issue_id, changes)
            if confirmed is None:
                raise PersistenceError(f"Update of issue {issue_id} was not acknowledged")
        except Exception as exc:
            error = _as_persistence_error(exc)
            logger.warning(
                f"Persisting issue {issue_id} failed, rolling back: {error}",
                extra={"issue_id": issue_id, "fields": sorted(fields)},
                exc_info=True,
            )
            self._rollback(issue_id, intents, stamped, before.updated_at)
            return UpdateOutcome(False, self._current(issue_id), error, intents)

        self._reconcile(issue_id, stamped, before.updated_at, confirmed)
        return UpdateOutcome(True, self._current(issue_id), None, intents)

    def _rollback(
        self,
        issue_id: int,
        intents: list[FieldChange],
        stamped: datetime,
        prior_updated_at: datetime,
    ) -> None:
        current = self._current(issue_id)
        if current is None:
            return

        # Only undo fields that still hold the value this change wrote
        restore = {
            change.field: change.prior
            for change in intents
            if getattr(current, change.field) == change.new
        }
        # updated_at goes back with any reverted field; a newer change that
        # owns every field keeps its own stamp
        if restore or current.updated_at == stamped:
            self.store.write_fields(issue_id, restore, updated_at=prior_updated_at)

    def _reconcile(
        self,
        issue_id: int,
        stamped: datetime,
        prior_updated_at: datetime,
        confirmed: Issue,
    ) -> None:
        current = self._current(issue_id)
        if current is None or current.updated_at != stamped:
            # a later local mutation wins
            return
        server_updated_at = confirmed.updated_at
        if server_updated_at != stamped and server_updated_at > prior_updated_at:
            self.store.write_fields(issue_id, {}, updated_at=server_updated_at)

    async def create(self, draft: IssueCreate) -> UpdateOutcome:
        issue = self.store.create(draft)
        try:
            await self.gateway.create(issue)
        except Exception as exc:
            error = _as_persistence_error(exc)
            logger.warning(
                f"Persisting new issue {issue.id} failed, discarding it: {error}",
                extra={"issue_id": issue.id},
                exc_info=True,
            )
            self.store.discard(issue.id)
            return UpdateOutcome(False, None, error)
        return UpdateOutcome(True, self._current(issue.id))

    async def delete(self, issue_id: int) -> UpdateOutcome:
        snapshot = self.store.delete(issue_id)
        try:
            deleted = await self.gateway.delete(issue_id)
            if not deleted:
                raise PersistenceError(f"Issue {issue_id} was not deleted remotely")
        except Exception as exc:
            error = _as_persistence_error(exc)
            logger.warning(
                f"Deleting issue {issue_id} failed, restoring it: {error}",
                extra={"issue_id": issue_id},
                exc_info=True,
            )
            self.store.restore(snapshot)
            return UpdateOutcome(False, self._current(issue_id), error)
        return UpdateOutcome(True, snapshot)
