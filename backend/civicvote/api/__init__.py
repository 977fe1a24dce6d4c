"""
API routers
"""

from fastapi import APIRouter
from .convention_routes import router as convention_router
from .admin_routes import router as admin_router
from .voting_routes import router as voting_router
from .notification_routes import router as notification_router
from .websocket_routes import router as ws_router

# main router
api_router = APIRouter()

api_router.include_router(convention_router, prefix="/conventions", tags=["Conventions"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
api_router.include_router(voting_router, prefix="/voting", tags=["Voting"])
api_router.include_router(notification_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(ws_router, prefix="/ws", tags=["WebSocket"])
