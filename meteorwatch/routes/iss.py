"""GET /api/iss — one-shot ISS position read."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from meteorwatch import iss
from meteorwatch.errors import FetchFailure
from meteorwatch.models import PositionSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/iss", response_model=PositionSnapshot)
async def get_iss_position():
    try:
        return await iss.get_client().fetch_position()
    except FetchFailure as exc:
        logger.warning("ISS position fetch failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": exc.message, "source": exc.source})
