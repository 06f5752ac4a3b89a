"""API route modules for FastAPI endpoints."""

from issueboard.routes.issues import router as issues_router

__all__ = ["issues_router"]
