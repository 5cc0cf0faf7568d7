"""
Nexus Forum Backend — Stats Route Handler
==========================================

What:  GET /api/stats — forum totals shown on the landing page.
"""

from fastapi import APIRouter, Depends

from nexus_forum.dependencies import get_store
from nexus_forum.schemas.forum import StatsResponse
from nexus_forum.services.store_base import ForumStore

router = APIRouter(prefix="/api", tags=["Stats"])


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Forum statistics",
    description="Users, topics and posts, plus users seen in the last 24 hours.",
)
async def get_stats(store: ForumStore = Depends(get_store)) -> StatsResponse:
    return await store.get_stats()
