"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    cd backend
    uvicorn api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    GET  /v1/experiences
    GET  /v1/moods
    GET  /v1/heatmap
    POST /v1/itinerary/generate
    GET  /v1/itinerary/{itinerary_id}
    POST /v1/itinerary/{itinerary_id}/bookings
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import experiences, health, itinerary

app = FastAPI(
    title="LocalVibe Planner API",
    version="1.0.0",
    description=(
        "Experience discovery and mock itinerary generation: "
        "normalize, filter, rank and assemble local experiences."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# Allow the web client (any origin during development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,       prefix="/v1",            tags=["Health"])
app.include_router(experiences.router,  prefix="/v1",            tags=["Experiences"])
app.include_router(itinerary.router,    prefix="/v1/itinerary",  tags=["Itinerary"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
