"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from fxstudio.api.v1.health import router as health_router
from fxstudio.api.v1.effects import router as effects_router
from fxstudio.api.v1.jobs import router as jobs_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(effects_router, tags=["effects"])
v1_router.include_router(jobs_router, tags=["jobs"])
