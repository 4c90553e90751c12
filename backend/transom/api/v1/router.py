from __future__ import annotations

from fastapi import APIRouter

from .endpoints import auth, content, export, health, notes, projects, tags

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
api_router.include_router(content.router, prefix="/content", tags=["content"])
