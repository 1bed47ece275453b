"""FastAPI application — CORS, route registration, health check."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meteorwatch.models import HealthResponse
from meteorwatch.routes.iss import router as iss_router
from meteorwatch.routes.meteors import router as meteors_router
from meteorwatch.routes.websocket import router as ws_router

# Load .env before anything else
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Meteor Watch",
    description="Near-Earth object ranking and live ISS position feed",
    version="1.0.0",
)

# CORS — Expo web dev server and common origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8081",
        "http://localhost:19006",
        "http://127.0.0.1:8081",
        "http://127.0.0.1:19006",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(meteors_router)
app.include_router(iss_router)
app.include_router(ws_router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok")


def run() -> None:
    import uvicorn

    uvicorn.run("meteorwatch.main:app", host="0.0.0.0", port=8000)
