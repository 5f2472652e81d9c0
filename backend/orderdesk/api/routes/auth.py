"""Identity endpoints: register, login, profile."""

from __future__ import annotations

from fastapi import APIRouter, status

from orderdesk.api.dependencies import CurrentPrincipal, Users, Verifier
from orderdesk.api.schemas import (
    CredentialsRequest,
    ErrorResponse,
    ProfileResponse,
    TokenResponse,
)
from orderdesk.auth.identity import Capability, authorize

router = APIRouter(tags=["Auth"])


@router.post(
    "/auth/register",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}},
)
async def register(
    body: CredentialsRequest,
    users: Users,
    verifier: Verifier,
) -> TokenResponse:
    """Create a user-role identity and return a bearer token for it."""
    user = await users.register(body.email, body.password)
    return TokenResponse(token=verifier.issue(user.user_id, user.role))


@router.post(
    "/auth/login",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}},
)
async def login(
    body: CredentialsRequest,
    users: Users,
    verifier: Verifier,
) -> TokenResponse:
    user = await users.authenticate(body.email, body.password)
    return TokenResponse(token=verifier.issue(user.user_id, user.role))


@router.get(
    "/user/profile",
    response_model=ProfileResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def profile(principal: CurrentPrincipal, users: Users) -> ProfileResponse:
    authorize(principal, Capability.VIEW_PROFILE)
    return ProfileResponse.from_user(await users.get(principal.user_id))
