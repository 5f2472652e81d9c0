"""Tests for token verification and the capability gate."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from orderdesk.auth.identity import (
    ROLE_CAPABILITIES,
    Capability,
    IdentityVerifier,
    Principal,
    Role,
    authorize,
    extract_credential,
)
from orderdesk.config import AuthConfig
from orderdesk.errors import ForbiddenError, UnauthenticatedError
from tests.factories import TEST_JWT_SECRET, make_admin, make_principal


def _sign(claims: dict[str, object], secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def _future() -> int:
    return int((datetime.now(UTC) + timedelta(hours=1)).timestamp())


class TestCapabilities:
    def test_user_capabilities(self) -> None:
        assert ROLE_CAPABILITIES[Role.USER] == {
            Capability.PLACE_ORDER,
            Capability.CANCEL_OWN_ORDER,
            Capability.LIST_OWN_ORDERS,
            Capability.VIEW_PROFILE,
        }

    def test_admin_is_superset(self) -> None:
        assert ROLE_CAPABILITIES[Role.USER] < ROLE_CAPABILITIES[Role.ADMIN]
        assert Capability.UPDATE_ORDER_STATUS in ROLE_CAPABILITIES[Role.ADMIN]
        assert Capability.LIST_ALL_ORDERS in ROLE_CAPABILITIES[Role.ADMIN]

    def test_principal_helpers(self) -> None:
        assert make_admin().is_admin is True
        assert make_principal().is_admin is False
        assert make_principal().can(Capability.LIST_ALL_ORDERS) is False


class TestAuthorize:
    def test_allowed(self) -> None:
        authorize(make_principal(), Capability.PLACE_ORDER)

    @pytest.mark.parametrize(
        "capability",
        [Capability.LIST_ALL_ORDERS, Capability.UPDATE_ORDER_STATUS],
    )
    def test_user_denied_admin_capabilities(self, capability: Capability) -> None:
        with pytest.raises(ForbiddenError):
            authorize(make_principal(), capability)

    def test_admin_allowed_everything(self) -> None:
        for capability in Capability:
            authorize(make_admin(), capability)


class TestVerifier:
    def test_requires_secret(self) -> None:
        with pytest.raises(ValueError):
            IdentityVerifier(AuthConfig(jwt_secret=""))

    def test_issue_then_verify(self, verifier: IdentityVerifier) -> None:
        token = verifier.issue("user-9", Role.ADMIN)
        assert verifier.verify(token) == Principal(user_id="user-9", role=Role.ADMIN)

    def test_issued_token_expiry(self, auth_config: AuthConfig) -> None:
        issued_at = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
        verifier = IdentityVerifier(auth_config, clock=lambda: issued_at)
        token = verifier.issue("user-1", Role.USER)
        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims["sub"] == "user-1"
        assert claims["role"] == "user"
        assert claims["exp"] - claims["iat"] == auth_config.token_ttl_hours * 3600

    @pytest.mark.parametrize("credential", [None, ""])
    def test_missing_credential(
        self, verifier: IdentityVerifier, credential: str | None
    ) -> None:
        with pytest.raises(UnauthenticatedError) as exc_info:
            verifier.verify(credential)
        assert exc_info.value.message == "No token, authorization denied"

    def test_garbage_token(self, verifier: IdentityVerifier) -> None:
        with pytest.raises(UnauthenticatedError) as exc_info:
            verifier.verify("not-a-jwt")
        assert exc_info.value.message == "Token is not valid"

    def test_wrong_secret(self, verifier: IdentityVerifier) -> None:
        token = _sign({"sub": "u", "exp": _future()}, secret="other-secret")
        with pytest.raises(UnauthenticatedError):
            verifier.verify(token)

    def test_expired_token(self, verifier: IdentityVerifier) -> None:
        past = int((datetime.now(UTC) - timedelta(minutes=5)).timestamp())
        with pytest.raises(UnauthenticatedError):
            verifier.verify(_sign({"sub": "u", "exp": past}))

    def test_missing_exp_rejected(self, verifier: IdentityVerifier) -> None:
        with pytest.raises(UnauthenticatedError):
            verifier.verify(_sign({"sub": "u"}))

    def test_unknown_role_rejected(self, verifier: IdentityVerifier) -> None:
        token = _sign({"sub": "u", "role": "superuser", "exp": _future()})
        with pytest.raises(UnauthenticatedError):
            verifier.verify(token)

    def test_missing_role_defaults_to_user(self, verifier: IdentityVerifier) -> None:
        principal = verifier.verify(_sign({"sub": "u", "exp": _future()}))
        assert principal.role == Role.USER


class TestExtractCredential:
    def test_bearer(self) -> None:
        assert extract_credential("Bearer abc") == "abc"

    def test_bearer_case_insensitive(self) -> None:
        assert extract_credential("bearer abc") == "abc"

    def test_legacy_header(self) -> None:
        assert extract_credential(None, "abc") == "abc"

    def test_bearer_wins_over_legacy(self) -> None:
        assert extract_credential("Bearer one", "two") == "one"

    def test_non_bearer_scheme(self) -> None:
        assert extract_credential("Basic dXNlcjpwdw==") is None

    def test_empty_bearer(self) -> None:
        assert extract_credential("Bearer ") is None

    def test_nothing(self) -> None:
        assert extract_credential(None, None) is None
