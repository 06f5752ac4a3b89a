from sqlalchemy import Column, DateTime, Enum, Integer, String, Text

from issueboard.database.config import Base
from issueboard.schemas import IssuePriority, IssueStatus, IssueType


def _values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=False, index=True)
    title = Column(String, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    type = Column(Enum(*_values(IssueType), name="issue_type"), nullable=False)
    priority = Column(Enum(*_values(IssuePriority), name="issue_priority"), nullable=False)
    status = Column(Enum(*_values(IssueStatus), name="issue_status"), nullable=False)
    assignee = Column(String, nullable=False, default="")
    reporter = Column(String, nullable=False)

    # Comma-joined label list
    labels = Column(String, nullable=False, default="")
    # Comment blob, one "author: content" line per comment
    comments = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
