"""FastAPI dependency providers.

Components live on app.state (built once in create_app); handlers receive
them through Depends() rather than closing over them.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, Header, Request

from orderdesk.auth.identity import IdentityVerifier, Principal, extract_credential
from orderdesk.auth.users import UserStore
from orderdesk.orders.lifecycle import OrderLifecycleManager


def get_lifecycle(request: Request) -> OrderLifecycleManager:
    lifecycle: OrderLifecycleManager = request.app.state.lifecycle
    return lifecycle


def get_user_store(request: Request) -> UserStore:
    users: UserStore = request.app.state.users
    return users


def get_verifier(request: Request) -> IdentityVerifier:
    verifier: IdentityVerifier = request.app.state.verifier
    return verifier


async def get_principal(
    verifier: Annotated[IdentityVerifier, Depends(get_verifier)],
    authorization: Annotated[str | None, Header()] = None,
    x_auth_token: Annotated[str | None, Header(alias="x-auth-token")] = None,
) -> Principal:
    """Verify the bearer credential on the request.

    Raises:
        UnauthenticatedError: Missing or invalid credential (401).
    """
    principal = verifier.verify(extract_credential(authorization, x_auth_token))
    structlog.contextvars.bind_contextvars(user_id=principal.user_id)
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]
Lifecycle = Annotated[OrderLifecycleManager, Depends(get_lifecycle)]
Users = Annotated[UserStore, Depends(get_user_store)]
Verifier = Annotated[IdentityVerifier, Depends(get_verifier)]
