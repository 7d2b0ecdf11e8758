"""Main API router."""
from fastapi import APIRouter

from roomrent.api.v1.endpoints import inquiries, live, profile, rooms

api_router = APIRouter()

api_router.include_router(
    rooms.router,
    prefix="/rooms",
    tags=["Rooms"]
)

api_router.include_router(
    inquiries.router,
    prefix="/inquiries",
    tags=["Inquiries"]
)

api_router.include_router(
    profile.router,
    tags=["Profile"]
)

api_router.include_router(
    live.router,
    tags=["Live"]
)
