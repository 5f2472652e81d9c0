"""FastAPI application factory.

create_app() wires config -> engine/session factory -> stores -> lifecycle
manager and hangs them on app.state. Tests pass their own session factory
and clock.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from orderdesk.api.routes import auth, health, orders
from orderdesk.auth.identity import IdentityVerifier
from orderdesk.auth.users import UserStore
from orderdesk.config import AppConfig
from orderdesk.errors import ErrorCode, OrderDeskError
from orderdesk.models.base import create_engine, make_session_factory
from orderdesk.orders.lifecycle import OrderLifecycleManager
from orderdesk.orders.store import OrderStore
from orderdesk.utils.logging import bind_request
from orderdesk.utils.time import Clock, utc_now

log = structlog.get_logger()

HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INVALID_STATUS: 400,
    ErrorCode.WINDOW_CLOSED: 400,
    ErrorCode.CONFLICT: 409,
    ErrorCode.PERSISTENCE: 500,
}

REQUEST_ID_HEADER = "X-Request-ID"


async def _handle_domain_error(request: Request, exc: OrderDeskError) -> JSONResponse:
    status_code = HTTP_STATUS_BY_CODE.get(exc.code, 500)
    # Persistence details stay in the log, never in the response
    message = exc.message if status_code < 500 else "Internal server error"
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "code": exc.code.value},
    )


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "message": "Invalid request",
            "code": ErrorCode.INVALID_INPUT.value,
            "errors": jsonable_encoder(exc.errors()),
        },
    )


def create_app(
    config: AppConfig | None = None,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Build the application.

    Raises:
        ValueError: If auth.jwt_secret is not configured.
    """
    config = config or AppConfig()

    engine: AsyncEngine | None = None
    if session_factory is None:
        Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(config.database_url, config.db_busy_timeout_ms)
        session_factory = make_session_factory(engine)

    verifier = IdentityVerifier(config.auth)
    order_store = OrderStore(session_factory)
    lifecycle = OrderLifecycleManager(order_store, config.orders, clock=clock)
    users = UserStore(session_factory, config.auth.bcrypt_rounds, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "app_starting",
            db_path=config.db_path,
            api_prefix=config.web.api_prefix,
            enforce_transitions=config.orders.enforce_transitions,
        )
        yield
        if engine is not None:
            await engine.dispose()
        log.info("app_stopped")

    app = FastAPI(
        title="orderdesk",
        description="Restaurant ordering backend with a timed cancellation window.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.session_factory = session_factory
    app.state.verifier = verifier
    app.state.order_store = order_store
    app.state.lifecycle = lifecycle
    app.state.users = users

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def bind_request_context(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        bind_request(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            # Unexpected errors stop here; none reach ServerErrorMiddleware
            log.exception("unhandled_error", path=request.url.path)
            response = JSONResponse(
                status_code=500, content={"message": "Internal server error"}
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        log.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    app.add_exception_handler(OrderDeskError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _handle_validation_error,  # type: ignore[arg-type]
    )

    prefix = config.web.api_prefix
    app.include_router(orders.router, prefix=prefix)
    app.include_router(auth.router, prefix=prefix)
    app.include_router(health.router, prefix=prefix)
    return app
