"""
Nexus Forum Backend — FastAPI Dependencies
===========================================

What:  Per-request providers injected into route handlers with Depends().

get_store:
    app.state.store set (memory backend, or a store injected by tests)
        → that instance is shared by every request
    app.state.store is None (sql backend)
        → a SQLForumStore over a fresh session; committed when the request
          succeeds, rolled back when it raises

get_token_user_id:
    Reads an optional `Authorization: Bearer <jwt>` header. No header means
    None; a header that fails verification is a 401.
"""

from typing import AsyncGenerator, Optional

from fastapi import Header, Request

from nexus_forum.database import session_scope
from nexus_forum.exceptions import ValidationError
from nexus_forum.services.auth_service import auth_service
from nexus_forum.services.sql_store import SQLForumStore
from nexus_forum.services.store_base import ForumStore


async def get_store(request: Request) -> AsyncGenerator[ForumStore, None]:
    store = getattr(request.app.state, "store", None)
    if store is not None:
        yield store
        return
    async with session_scope() as session:
        yield SQLForumStore(session)


def get_token_user_id(
    authorization: Optional[str] = Header(default=None),
) -> Optional[int]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    claims = auth_service.decode_token(token.strip())
    return claims.get("id")


def resolve_user_id(body_user_id: Optional[int], token_user_id: Optional[int]) -> int:
    """The acting user: explicit body field first, then the bearer token."""
    if body_user_id is not None:
        return body_user_id
    if token_user_id is not None:
        return token_user_id
    raise ValidationError(
        message="user_id is required (in the body or as a bearer token)", field="user_id"
    )
