"""Identity verification and the capability gate.

Bearer credentials are HS-signed JWTs carrying the user id (``sub``) and
role. Every lifecycle operation calls authorize() with the capability it
needs before touching the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

import jwt
import structlog

from orderdesk.config import AuthConfig
from orderdesk.errors import ForbiddenError, UnauthenticatedError
from orderdesk.utils.time import Clock, utc_now

log = structlog.get_logger()


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Capability(str, Enum):
    """Operations gated by role."""

    PLACE_ORDER = "place_order"
    CANCEL_OWN_ORDER = "cancel_own_order"
    LIST_OWN_ORDERS = "list_own_orders"
    VIEW_PROFILE = "view_profile"
    LIST_ALL_ORDERS = "list_all_orders"
    UPDATE_ORDER_STATUS = "update_order_status"


_USER_CAPABILITIES = frozenset(
    {
        Capability.PLACE_ORDER,
        Capability.CANCEL_OWN_ORDER,
        Capability.LIST_OWN_ORDERS,
        Capability.VIEW_PROFILE,
    }
)

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: _USER_CAPABILITIES,
    Role.ADMIN: _USER_CAPABILITIES
    | frozenset(
        {
            Capability.LIST_ALL_ORDERS,
            Capability.UPDATE_ORDER_STATUS,
        }
    ),
}


@dataclass(frozen=True)
class Principal:
    """Verified caller identity."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES[self.role]


def authorize(principal: Principal, capability: Capability) -> None:
    """Raise ForbiddenError unless the principal's role grants ``capability``."""
    if not principal.can(capability):
        log.info(
            "capability_denied",
            user_id=principal.user_id,
            role=principal.role.value,
            capability=capability.value,
        )
        raise ForbiddenError(
            "Forbidden: You do not have administrator access"
            if capability not in _USER_CAPABILITIES
            else "Forbidden"
        )


class IdentityVerifier:
    """Issues and verifies bearer tokens."""

    def __init__(self, config: AuthConfig, clock: Clock = utc_now) -> None:
        if not config.jwt_secret:
            raise ValueError("auth.jwt_secret must be set")
        self._secret = config.jwt_secret
        self._algorithm = config.jwt_algorithm
        self._ttl = timedelta(hours=config.token_ttl_hours)
        self._clock = clock

    def issue(self, user_id: str, role: Role) -> str:
        """Sign a token for ``user_id`` valid for the configured lifetime."""
        now: datetime = self._clock()
        payload = {
            "sub": user_id,
            "role": role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, credential: str | None) -> Principal:
        """Decode ``credential`` into a Principal.

        Raises:
            UnauthenticatedError: If the credential is missing, malformed,
                badly signed, expired, or carries an unknown role.
        """
        if not credential:
            raise UnauthenticatedError("No token, authorization denied")
        try:
            claims = jwt.decode(
                credential,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            log.info("token_rejected", reason=type(exc).__name__)
            raise UnauthenticatedError("Token is not valid") from exc

        try:
            role = Role(claims.get("role", Role.USER.value))
        except ValueError:
            log.info("token_rejected", reason="unknown_role")
            raise UnauthenticatedError("Token is not valid") from None

        user_id = claims["sub"]
        if not isinstance(user_id, str) or not user_id:
            raise UnauthenticatedError("Token is not valid")
        return Principal(user_id=user_id, role=role)


def extract_credential(
    authorization: str | None,
    legacy_token: str | None = None,
) -> str | None:
    """Pull the raw token from an Authorization header or x-auth-token.

    ``Authorization: Bearer <token>`` wins when both are present.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        return None
    if legacy_token and legacy_token.strip():
        return legacy_token.strip()
    return None
