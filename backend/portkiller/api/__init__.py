"""API routes for PortKiller."""

from fastapi import APIRouter

from portkiller.api.config import router as config_router
from portkiller.api.ports import router as ports_router

api_router = APIRouter(prefix="/api")
api_router.include_router(ports_router, tags=["ports"])
api_router.include_router(config_router, tags=["config"])

__all__ = ["api_router"]
