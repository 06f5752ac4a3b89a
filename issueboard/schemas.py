from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssueStatus(str, Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class IssuePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueType(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    TASK = "task"


DEFAULT_REPORTER = "Current User"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_labels(value) -> list[str]:
    """Normalise labels from a list or a comma-separated string.

    Blank tags are dropped and duplicates keep their first position.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    labels: list[str] = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in labels:
            labels.append(tag)
    return labels


class Comment(BaseModel):
    id: str
    author: str
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class Issue(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(gt=0)
    title: str = ""
    description: str = ""
    type: IssueType = IssueType.TASK
    priority: IssuePriority = IssuePriority.MEDIUM
    status: IssueStatus = IssueStatus.BACKLOG
    assignee: str = ""
    reporter: str = DEFAULT_REPORTER
    labels: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("labels", mode="before")
    @classmethod
    def normalize_labels(cls, value):
        return parse_labels(value)


class IssueCreate(BaseModel):
    """Draft for a new issue; every field may be left out."""

    model_config = ConfigDict(extra="forbid")

    title: str = ""
    description: str = ""
    type: IssueType = IssueType.TASK
    priority: IssuePriority = IssuePriority.MEDIUM
    status: IssueStatus = IssueStatus.BACKLOG
    assignee: str = ""
    reporter: Optional[str] = None
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def normalize_labels(cls, value):
        return parse_labels(value)


class IssueUpdate(BaseModel):
    """Partial update: only fields explicitly set are applied.

    ``id``, ``reporter`` and ``created_at`` cannot be edited and are absent.
    Explicit ``None`` counts as "not set".
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[IssueType] = None
    priority: Optional[IssuePriority] = None
    status: Optional[IssueStatus] = None
    assignee: Optional[str] = None
    labels: Optional[list[str]] = None
    comments: Optional[list[Comment]] = None

    @field_validator("labels", mode="before")
    @classmethod
    def normalize_labels(cls, value):
        if value is None:
            return None
        return parse_labels(value)

    def changes(self) -> dict:
        """Fields the caller set, as attribute values (enums kept)."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class CommentCreate(BaseModel):
    content: str
    author: Optional[str] = None


class TransitionRequest(BaseModel):
    status: IssueStatus


class UpdateOutcomeResponse(BaseModel):
    succeeded: bool
    issue: Optional[Issue] = None
    error: Optional[str] = None


class DashboardSummary(BaseModel):
    total: int
    open: int
    critical: int
    status_distribution: dict[str, int]
    recent: list[Issue]
    high_priority: list[Issue]
