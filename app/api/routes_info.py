# app/api/routes_info.py
"""
Service info and station catalog routes.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from simulation.geo import STATIONS
from simulation.routes import ROUTES

from ..streaming import FleetBroadcaster
from .routes_stream import get_broadcaster

router = APIRouter(prefix="/api", tags=["info"])


class StationResponse(BaseModel):
    """Station catalog entry."""
    code: str
    name: str
    city: str
    state: str
    lat: float
    lon: float


@router.get("/info")
async def get_info(
    broadcaster: FleetBroadcaster = Depends(get_broadcaster),
) -> Dict[str, Any]:
    """Describe the stream endpoint and its filters."""
    return {
        "status": "ok",
        "message": "US Railway Cargo SSE mock server",
        "sseEndpoint": "/SSE/Stream",
        "tick": broadcaster.clock.tick_count,
        "tickSeconds": broadcaster.tick_seconds,
        "simulatedHoursPerTick": broadcaster.clock.simulated_hours_per_tick,
        "subscribers": broadcaster.subscriber_count,
        "trains": len(broadcaster.fleet.trains),
        "example": {
            "allData": "/SSE/Stream",
            "filterByTrainName": "/SSE/Stream?trainName=Pacific",
            "filterByAwb": "/SSE/Stream?awb=AWB-R1001",
            "filterByCar": "/SSE/Stream?carNumber=R1001",
            "filterByStation": "/SSE/Stream?station=CHI",
            "filterByStatus": "/SSE/Stream?status=IN_TRANSIT",
        },
    }


@router.get("/stations", response_model=List[StationResponse])
async def list_stations() -> List[Dict[str, Any]]:
    """Station catalog."""
    return [s.to_dict() for s in STATIONS]


@router.get("/routes")
async def list_routes() -> Dict[str, Any]:
    """Route catalog."""
    return {"routes": [list(r) for r in ROUTES], "count": len(ROUTES)}
