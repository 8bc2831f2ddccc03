from __future__ import annotations

from fastapi import APIRouter

from api.routes import (
    allocations,
    capacity_conflicts,
    custom_titles,
    preferences,
    second_markers,
    settings,
    titles,
    users,
)


api_router = APIRouter()
api_router.include_router(allocations.router, prefix="/allocations", tags=["allocations"])
api_router.include_router(second_markers.router, prefix="/second-markers", tags=["second-markers"])
api_router.include_router(titles.router, prefix="/titles", tags=["titles"])
api_router.include_router(preferences.router, prefix="/preferences", tags=["preferences"])
api_router.include_router(custom_titles.router, prefix="/custom-titles", tags=["custom-titles"])
api_router.include_router(capacity_conflicts.router, prefix="/capacity-conflicts", tags=["capacity-conflicts"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
