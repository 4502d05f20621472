# app/api/routes_stream.py
"""
Streaming API routes.

GET /SSE/Stream pushes a filtered fleet snapshot on every simulation tick.
GET /api/snapshot returns the current filtered snapshot once.

Query params (all optional, read once per connection):
- awb / airwayBill: airway bill number (partial, case-insensitive)
- trainName: train name (partial, case-insensitive)
- carNumber: rail car number (partial, case-insensitive)
- station: origin, destination or offload station code (partial)
- status: LOADED, IN_TRANSIT or DELIVERED (case-insensitive)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from simulation.filters import FilterCriteria

from ..streaming import FleetBroadcaster, build_payload, event_stream

router = APIRouter(tags=["stream"])


def get_broadcaster(request: Request) -> FleetBroadcaster:
    """Shared broadcaster created in the app lifespan."""
    return request.app.state.broadcaster


def get_filter_criteria(
    awb: Optional[str] = Query(None, description="Airway bill number (partial match)"),
    airway_bill: Optional[str] = Query(None, alias="airwayBill"),
    train_name: Optional[str] = Query(None, alias="trainName"),
    car_number: Optional[str] = Query(None, alias="carNumber"),
    station: Optional[str] = Query(None, description="Station code (partial match)"),
    status: Optional[str] = Query(None, description="LOADED, IN_TRANSIT or DELIVERED"),
) -> FilterCriteria:
    """Build filter criteria from query parameters."""
    return FilterCriteria.from_query(
        awb=awb,
        airway_bill=airway_bill,
        train_name=train_name,
        car_number=car_number,
        station=station,
        status=status,
    )


@router.get("/SSE/Stream")
async def stream_fleet(
    request: Request,
    criteria: FilterCriteria = Depends(get_filter_criteria),
    broadcaster: FleetBroadcaster = Depends(get_broadcaster),
):
    """
    Stream fleet updates as Server-Sent Events.

    Sends one event immediately, then one per simulation tick until the
    client disconnects.
    """
    return StreamingResponse(
        event_stream(broadcaster, criteria, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/api/snapshot")
async def get_snapshot(
    criteria: FilterCriteria = Depends(get_filter_criteria),
    broadcaster: FleetBroadcaster = Depends(get_broadcaster),
) -> Dict[str, Any]:
    """Current fleet snapshot with the same filters as the stream."""
    return build_payload(broadcaster.frame, criteria)
