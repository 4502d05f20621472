"""API routes package."""

from .routes_stream import router as stream_router
from .routes_info import router as info_router

__all__ = [
    "stream_router",
    "info_router",
]
