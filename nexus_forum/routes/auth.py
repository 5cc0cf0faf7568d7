"""
Nexus Forum Backend — Auth Route Handlers
==========================================

What:  POST /api/register and POST /api/login.
How:   Validates the body, delegates to AuthService, returns {user, token}.
"""

import logging

from fastapi import APIRouter, Depends

from nexus_forum.dependencies import get_store
from nexus_forum.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from nexus_forum.schemas.common import ErrorResponse
from nexus_forum.services.auth_service import auth_service
from nexus_forum.services.store_base import ForumStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid input or username/email taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    store: ForumStore = Depends(get_store),
) -> AuthResponse:
    return await auth_service.register(store, body)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Sign in with username or email",
    description=(
        "Accepts either the username or the email as the identifier. "
        "A successful login updates the user's last-seen timestamp."
    ),
)
async def login(
    body: LoginRequest,
    store: ForumStore = Depends(get_store),
) -> AuthResponse:
    return await auth_service.login(store, body)
