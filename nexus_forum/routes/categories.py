"""
Nexus Forum Backend — Category Route Handlers
==============================================

What:  GET /api/categories — every category with its live topic count.
"""

from typing import List

from fastapi import APIRouter, Depends

from nexus_forum.dependencies import get_store
from nexus_forum.schemas.forum import CategoryResponse
from nexus_forum.services.store_base import ForumStore

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/categories",
    response_model=List[CategoryResponse],
    summary="List categories",
)
async def list_categories(store: ForumStore = Depends(get_store)) -> List[CategoryResponse]:
    return await store.list_categories()
