"""
CampusLink Mentorship - Main Application

FastAPI backend with:
- MongoDB for every mentorship document
- DeepSeek AI for content moderation
- JWT bearer tokens from the campus identity provider
- WebSocket push for live chats

Run: uvicorn campuslink.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure

from campuslink.api.routes import api_router
from campuslink.core.config import get_settings
from campuslink.core.exceptions import MentorshipError, TransientStoreError
from campuslink.db.mongodb import init_mongo_indexes, test_mongo_connection

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="CampusLink Mentorship",
    description="""
    Skill-based mentor matching and moderated private chats for campus students.

    ## Features
    - **Profiles**: Skills you can teach and skills you want to learn
    - **Mentors**: Ranked search by skill match
    - **Mentor Requests**: Send, accept, reject; accepting opens a private chat
    - **Chats**: AI-moderated messages with live updates over WebSocket
    - **Reports**: Freeze a chat into a report for reviewers
    - **Admin**: Metadata-only dashboards and report review
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MentorshipError)
async def mentorship_error_handler(request: Request, exc: MentorshipError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code}
    )


@app.exception_handler(ConnectionFailure)
async def store_unavailable_handler(request: Request, exc: ConnectionFailure):
    logger.error("MongoDB unavailable during %s %s: %s", request.method, request.url.path, exc)
    return await mentorship_error_handler(request, TransientStoreError("Document store unavailable"))


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
