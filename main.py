import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file before the database config reads them
load_dotenv()

from issueboard.database.config import engine, Base, AsyncSessionLocal
from issueboard.database.gateway import SqlAlchemyGateway
from issueboard.notifications import get_notifier
from issueboard.routes.issues import router as issues_router
from issueboard.schemas import DEFAULT_REPORTER
from issueboard.store import IssueStore
from issueboard.workspace import IssueWorkspace

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables and load the issue store
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = IssueStore(default_reporter=os.getenv("DEFAULT_REPORTER", DEFAULT_REPORTER))
    workspace = IssueWorkspace(
        gateway=SqlAlchemyGateway(AsyncSessionLocal),
        notifier=get_notifier(),
        store=store,
    )
    if not await workspace.refresh():
        logger.warning("Starting with an empty issue store")
    app.state.workspace = workspace

    yield

    # Shutdown: Flush pending notifications and dispose of the engine
    if workspace.notifier is not None:
        await workspace.notifier.drain()
    await engine.dispose()

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s | %(name)s | %(message)s",
)

app.include_router(issues_router)
