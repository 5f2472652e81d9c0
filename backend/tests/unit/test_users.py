"""Tests for UserStore -- registration, login and profile lookup."""

from __future__ import annotations

import pytest

from orderdesk.auth.identity import Role
from orderdesk.auth.users import (
    MAX_PASSWORD_BYTES,
    UserStore,
    check_password,
    hash_password,
)
from orderdesk.errors import InvalidInputError, NotFoundError
from tests.factories import BASE_TIME


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("hunter2", rounds=4)
        assert hashed != "hunter2"
        assert hashed.startswith("$2")

    def test_check_password(self) -> None:
        hashed = hash_password("hunter2", rounds=4)
        assert check_password("hunter2", hashed) is True
        assert check_password("hunter3", hashed) is False

    def test_overlong_password_never_matches(self) -> None:
        hashed = hash_password("x" * MAX_PASSWORD_BYTES, rounds=4)
        assert check_password("x" * (MAX_PASSWORD_BYTES + 8), hashed) is False


class TestRegister:
    async def test_register_returns_user(self, users: UserStore) -> None:
        user = await users.register("Diner@Example.com ", "pw")
        assert user.email == "diner@example.com"
        assert user.role == Role.USER
        assert user.registered_at == BASE_TIME
        assert user.user_id

    async def test_register_admin(self, users: UserStore) -> None:
        user = await users.register("chef@example.com", "pw", Role.ADMIN)
        assert user.role == Role.ADMIN

    async def test_duplicate_email_rejected(self, users: UserStore) -> None:
        await users.register("diner@example.com", "pw")
        with pytest.raises(InvalidInputError) as exc_info:
            await users.register("DINER@example.com", "other")
        assert exc_info.value.message == "User with this email already exists"

    @pytest.mark.parametrize(("email", "password"), [("", "pw"), ("a@b.c", "")])
    async def test_blank_input_rejected(
        self, users: UserStore, email: str, password: str
    ) -> None:
        with pytest.raises(InvalidInputError):
            await users.register(email, password)

    async def test_password_at_byte_limit_accepted(self, users: UserStore) -> None:
        await users.register("diner@example.com", "x" * MAX_PASSWORD_BYTES)
        await users.authenticate("diner@example.com", "x" * MAX_PASSWORD_BYTES)

    @pytest.mark.parametrize(
        "password",
        ["x" * (MAX_PASSWORD_BYTES + 1), "\u00e9" * 40],
        ids=["ascii", "multibyte"],
    )
    async def test_overlong_password_rejected(
        self, users: UserStore, password: str
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await users.register("diner@example.com", password)
        assert exc_info.value.message == "Password must be at most 72 bytes"


class TestAuthenticate:
    async def test_valid_credentials(self, users: UserStore) -> None:
        registered = await users.register("diner@example.com", "pw")
        assert await users.authenticate("DINER@example.com", "pw") == registered

    async def test_wrong_password(self, users: UserStore) -> None:
        await users.register("diner@example.com", "pw")
        with pytest.raises(InvalidInputError) as exc_info:
            await users.authenticate("diner@example.com", "nope")
        assert exc_info.value.message == "Invalid credentials"

    async def test_unknown_email_same_message(self, users: UserStore) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await users.authenticate("ghost@example.com", "pw")
        assert exc_info.value.message == "Invalid credentials"

    async def test_overlong_password_is_invalid_credentials(
        self, users: UserStore
    ) -> None:
        await users.register("diner@example.com", "pw")
        with pytest.raises(InvalidInputError) as exc_info:
            await users.authenticate("diner@example.com", "x" * 200)
        assert exc_info.value.message == "Invalid credentials"


class TestGet:
    async def test_get_by_id(self, users: UserStore) -> None:
        registered = await users.register("diner@example.com", "pw")
        assert await users.get(registered.user_id) == registered

    async def test_unknown_id(self, users: UserStore) -> None:
        with pytest.raises(NotFoundError):
            await users.get("missing")
