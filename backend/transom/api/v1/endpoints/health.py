from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from transom.background.autosave import AutosaveController
from transom.config import settings
from transom.db.base import NOTES_TABLE, create_request_supabase_client
from transom.dependencies import get_autosave_controller

router = APIRouter()

SERVICE_NAME = "transom-api"
VERSION = "0.1.0"


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": VERSION,
        }
    )


@router.get("/ready")
async def readiness_check(autosave: AutosaveController = Depends(get_autosave_controller)):
    """Readiness check endpoint."""
    db_status = "connected"
    try:
        client = create_request_supabase_client()
        await asyncio.to_thread(lambda: client.table(NOTES_TABLE).select("id").limit(1).execute())
    except Exception as e:
        db_status = f"error: {str(e)}"

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "database": db_status,
            "open_drafts": len(autosave),
            "cors_origins": settings.cors_origins,
            "api_prefix": settings.api_prefix,
        }
    )
