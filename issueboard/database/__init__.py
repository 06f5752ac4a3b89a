"""Database configuration, models, and the SQLAlchemy persistence gateway."""

from issueboard.database.config import engine, Base, AsyncSessionLocal
from issueboard.database import models
from issueboard.database.gateway import SqlAlchemyGateway

__all__ = ["engine", "Base", "AsyncSessionLocal", "models", "SqlAlchemyGateway"]
