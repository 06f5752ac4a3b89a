"""Persistence gateway backed by an async SQLAlchemy database."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from issueboard.comments import decode_comments, encode_comments
from issueboard.database import models
from issueboard.errors import PersistenceError
from issueboard.gateway import PersistenceGateway
from issueboard.query.filtering import FILTER_CATEGORIES, FilterCriteria
from issueboard.query.search import search_issues
from issueboard.schemas import Issue, IssueUpdate, utc_now

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _column_value(name: str, value):
    if name == "labels":
        return ",".join(value)
    if name == "comments":
        return encode_comments(value)
    if isinstance(value, Enum):
        return value.value
    return value


def to_issue(row: models.Issue) -> Issue:
    return Issue(
        id=row.id,
        title=row.title,
        description=row.description,
        type=row.type,
        priority=row.priority,
        status=row.status,
        assignee=row.assignee,
        reporter=row.reporter,
        labels=row.labels,
        comments=decode_comments(row.comments, _aware(row.updated_at)),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def to_row(issue: Issue) -> models.Issue:
    return models.Issue(
        id=issue.id,
        **{
            name: _column_value(name, getattr(issue, name))
            for name in (
                "title",
                "description",
                "type",
                "priority",
                "status",
                "assignee",
                "reporter",
                "labels",
                "comments",
                "created_at",
                "updated_at",
            )
        },
    )


class SqlAlchemyGateway(PersistenceGateway):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _select(self, statement) -> list[Issue]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement.order_by(models.Issue.id))
                return [to_issue(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            logger.error(f"Issue query failed: {exc}", exc_info=True)
            raise PersistenceError(f"Database error: {exc}") from exc

    async def fetch_all(self) -> list[Issue]:
        return await self._select(select(models.Issue))

    async def fetch_by_id(self, issue_id: int) -> Optional[Issue]:
        issues = await self._select(select(models.Issue).where(models.Issue.id == issue_id))
        return issues[0] if issues else None

    async def create(self, issue: Issue) -> Issue:
        try:
            async with self.session_factory() as session:
                row = to_row(issue)
                session.add(row)
                await session.commit()
                await session.refresh(row)
                logger.info("Issue persisted", extra={"issue_id": issue.id})
                return to_issue(row)
        except SQLAlchemyError as exc:
            logger.error(f"Error creating issue {issue.id}: {exc}", exc_info=True)
            raise PersistenceError(f"Database error: {exc}") from exc

    async def update(self, issue_id: int, changes: IssueUpdate) -> Issue:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(models.Issue).where(models.Issue.id == issue_id)
                )
                row = result.scalars().first()
                if not row:
                    raise PersistenceError(f"Issue {issue_id} not found in database")

                for name, value in changes.changes().items():
                    setattr(row, name, _column_value(name, value))
                row.updated_at = utc_now()

                await session.commit()
                await session.refresh(row)
                return to_issue(row)
        except SQLAlchemyError as exc:
            logger.error(f"Error updating issue {issue_id}: {exc}", exc_info=True)
            raise PersistenceError(f"Database error: {exc}") from exc

    async def delete(self, issue_id: int) -> bool:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(models.Issue).where(models.Issue.id == issue_id)
                )
                row = result.scalars().first()
                if not row:
                    return False

                await session.delete(row)
                await session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.error(f"Error deleting issue {issue_id}: {exc}", exc_info=True)
            raise PersistenceError(f"Database error: {exc}") from exc

    async def search(self, query: str) -> list[Issue]:
        if not query or not query.strip():
            return await self.fetch_all()

        pattern = f"%{query}%"
        candidates = await self._select(
            select(models.Issue).where(
                or_(
                    models.Issue.title.ilike(pattern),
                    models.Issue.description.ilike(pattern),
                    models.Issue.labels.ilike(pattern),
                    models.Issue.assignee.ilike(pattern),
                    models.Issue.reporter.ilike(pattern),
                )
            )
        )
        # labels are stored joined; re-check per label
        return search_issues(candidates, query)

    async def filter(self, criteria: FilterCriteria) -> list[Issue]:
        statement = select(models.Issue)
        for category in FILTER_CATEGORIES:
            accepted = getattr(criteria, category)
            if accepted:
                statement = statement.where(getattr(models.Issue, category).in_(sorted(accepted)))
        return await self._select(statement)
