"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from campuslink.api.routes.profile_routes import router as profile_router
from campuslink.api.routes.mentor_routes import router as mentor_router
from campuslink.api.routes.request_routes import router as request_router
from campuslink.api.routes.chat_routes import router as chat_router
from campuslink.api.routes.admin_routes import router as admin_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(profile_router)
api_router.include_router(mentor_router)
api_router.include_router(request_router)
api_router.include_router(chat_router)
api_router.include_router(admin_router)
