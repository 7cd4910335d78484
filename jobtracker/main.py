"""
FastAPI application entry point.

- Mounts all routers under /api
- Adds CORS for the browser frontend
- Renders every service error as {"error": ..., "kind": ...}
- Auto-creates database tables on startup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobtracker.config import settings
from jobtracker.database import Base, engine
from jobtracker.errors import register_error_handlers
from jobtracker.routers import (
    analytics, applications, auth, contacts, cover_letters, interviews, jobs, outreach, resumes,
)
from jobtracker.routers import settings as settings_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup (if they don't exist yet)."""
    Base.metadata.create_all(bind=engine)
    logger.info("Job Tracker API ready (LLM provider: %s)", settings.LLM_PROVIDER)
    yield


app = FastAPI(
    title="Job Tracker",
    description="Track saved jobs, applications and interviews, with AI-written resumes, letters and outreach",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Mount all routers under /api
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(jobs.router, prefix="/api", tags=["jobs"])
app.include_router(applications.router, prefix="/api", tags=["applications"])
app.include_router(interviews.router, prefix="/api", tags=["interviews"])
app.include_router(contacts.router, prefix="/api", tags=["contacts"])
app.include_router(resumes.router, prefix="/api", tags=["resumes"])
app.include_router(cover_letters.router, prefix="/api", tags=["cover-letters"])
app.include_router(outreach.router, prefix="/api", tags=["outreach"])
app.include_router(settings_router.router, prefix="/api", tags=["settings"])
app.include_router(analytics.router, prefix="/api", tags=["analytics"])


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Job Tracker API is running"}
