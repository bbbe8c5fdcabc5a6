"""
LivePlan - personal planner engine with recurrence, completion tracking and
widget summaries.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from liveplan.config import get_settings
from liveplan.database import get_planner
from liveplan.routes import dependencies, projects, summary, tags, tasks, views
from liveplan.exceptions import register_exception_handlers
from liveplan.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting LivePlan API...")
    get_planner()
    logger.info("Store initialized")
    yield
    logger.info("Shutting down LivePlan API...")


app = FastAPI(
    title=get_settings().app_name,
    description="Personal planner engine: recurrence, completion log, dependency checks and summaries",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tags.router, prefix="/tags", tags=["Tags"])
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])
app.include_router(views.router, prefix="/views", tags=["Views"])
app.include_router(summary.router, tags=["Summary"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
