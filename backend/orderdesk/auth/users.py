"""Identity records: registration, login and profile lookup."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

import bcrypt
import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderdesk.auth.identity import Role
from orderdesk.errors import InvalidInputError, NotFoundError, StoreError
from orderdesk.models.user import UserModel
from orderdesk.utils.time import Clock, format_timestamp, parse_timestamp, utc_now

log = structlog.get_logger()

_DUPLICATE_EMAIL = "User with this email already exists"
_INVALID_CREDENTIALS = "Invalid credentials"

# bcrypt only hashes the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class User:
    """Identity record without the password hash."""

    user_id: str
    email: str
    role: Role
    registered_at: datetime


def hash_password(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "ascii"
    )


def check_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(raw, password_hash.encode("ascii"))


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        email=model.email,
        role=Role(model.role),
        registered_at=parse_timestamp(model.registered_at),
    )


class UserStore:
    """Async persistence for identity records."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        bcrypt_rounds: int = 12,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock

    async def register(
        self,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """Create an identity.

        Raises:
            InvalidInputError: On blank input, a password over
                MAX_PASSWORD_BYTES bytes or an already registered email.
        """
        email = _normalize_email(email)
        if not email or not password:
            raise InvalidInputError("Email and password are required")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidInputError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        # bcrypt blocks; run it off the event loop
        password_hash = await asyncio.to_thread(
            hash_password, password, self._bcrypt_rounds
        )
        model = UserModel(
            user_id=str(uuid4()),
            email=email,
            password_hash=password_hash,
            role=role.value,
            registered_at=format_timestamp(self._clock()),
        )
        try:
            async with self._session_factory() as session, session.begin():
                existing = await session.execute(
                    select(UserModel.id).where(UserModel.email == email)
                )
                if existing.scalar_one_or_none() is not None:
                    raise InvalidInputError(_DUPLICATE_EMAIL)
                session.add(model)
        except IntegrityError as exc:
            raise InvalidInputError(_DUPLICATE_EMAIL) from exc
        except SQLAlchemyError as exc:
            log.exception("store_error", operation="register_user")
            raise StoreError("Failed to access user storage") from exc

        log.info("user_registered", user_id=model.user_id, role=role.value)
        return _to_user(model)

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials.

        Raises:
            InvalidInputError: Unknown email or wrong password (same message).
        """
        model = await self._find_by_email(_normalize_email(email))
        if model is None:
            raise InvalidInputError(_INVALID_CREDENTIALS)
        matches = await asyncio.to_thread(
            check_password, password, model.password_hash
        )
        if not matches:
            raise InvalidInputError(_INVALID_CREDENTIALS)
        return _to_user(model)

    async def get(self, user_id: str) -> User:
        """Look up an identity by id.

        Raises:
            NotFoundError: If no such user exists.
        """
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UserModel).where(UserModel.user_id == user_id)
                )
                model = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            log.exception("store_error", operation="get_user")
            raise StoreError("Failed to access user storage") from exc
        if model is None:
            raise NotFoundError("User not found")
        return _to_user(model)

    async def _find_by_email(self, email: str) -> UserModel | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UserModel).where(UserModel.email == email)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            log.exception("store_error", operation="find_user")
            raise StoreError("Failed to access user storage") from exc
