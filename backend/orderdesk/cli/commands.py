"""Click CLI commands for orderdesk."""

from __future__ import annotations

import asyncio
import sys
import time

import click
import httpx

from orderdesk.client import (
    OrderDeskClient,
    OrderDeskClientError,
    TrackedOrder,
    local_time_remaining,
    locally_cancellable,
)
from orderdesk.config import AppConfig


def _api_url(config: AppConfig) -> str:
    return f"http://{config.web.host}:{config.web.port}{config.web.api_prefix}"


@click.group()
def cli() -> None:
    """orderdesk: restaurant ordering backend."""


@cli.command()
def serve() -> None:
    """Run the HTTP API."""
    import uvicorn

    from orderdesk.api.app import create_app
    from orderdesk.utils.logging import setup_logging

    config = AppConfig()
    setup_logging(level=config.log_level, log_format=config.log_format)
    try:
        app = create_app(config)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    uvicorn.run(app, host=config.web.host, port=config.web.port, log_config=None)


@cli.command("init-db")
def init_db() -> None:
    """Create the database tables (development; production uses Alembic)."""
    config = AppConfig()
    asyncio.run(_init_db(config))
    click.echo(f"Database ready at {config.db_path}")


async def _init_db(config: AppConfig) -> None:
    from pathlib import Path

    from orderdesk.models.base import create_all, create_engine

    Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(config.database_url, config.db_busy_timeout_ms)
    try:
        await create_all(engine)
    finally:
        await engine.dispose()


@cli.command("create-user")
@click.option("--email", required=True, help="Login email.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Login password (prompted when omitted).",
)
@click.option(
    "--role",
    type=click.Choice(["user", "admin"]),
    default="user",
    show_default=True,
)
def create_user(email: str, password: str, role: str) -> None:
    """Register an identity, e.g. the first administrator."""
    from orderdesk.errors import OrderDeskError

    config = AppConfig()
    try:
        user_id = asyncio.run(_create_user(config, email, password, role))
    except OrderDeskError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"Created {role} {email} (id: {user_id})")


async def _create_user(config: AppConfig, email: str, password: str, role: str) -> str:
    from orderdesk.auth.identity import Role
    from orderdesk.auth.users import UserStore
    from orderdesk.models.base import create_engine, make_session_factory

    engine = create_engine(config.database_url, config.db_busy_timeout_ms)
    try:
        users = UserStore(make_session_factory(engine), config.auth.bcrypt_rounds)
        user = await users.register(email, password, Role(role))
    finally:
        await engine.dispose()
    return user.user_id


@cli.command()
def status() -> None:
    """Show API health."""
    config = AppConfig()
    url = f"{_api_url(config)}/health"
    try:
        resp = httpx.get(url, timeout=5.0)
        click.echo(resp.text)
    except (httpx.ConnectError, httpx.ReadError, httpx.TimeoutException):
        click.echo("API is not running (could not connect).")
        sys.exit(1)


@cli.command()
def config() -> None:
    """Show current configuration."""
    cfg = AppConfig()

    click.echo("=== orderdesk Configuration ===\n")

    click.echo(f"Log Level:    {cfg.log_level}")
    click.echo(f"Log Format:   {cfg.log_format}")
    click.echo(f"DB Path:      {cfg.db_path}")
    click.echo("")

    click.echo("[Web]")
    click.echo(f"  Host:        {cfg.web.host}")
    click.echo(f"  Port:        {cfg.web.port}")
    click.echo(f"  API Prefix:  {cfg.web.api_prefix}")
    click.echo("")

    click.echo("[Auth]")
    click.echo(f"  JWT Secret:  {'set' if cfg.auth.jwt_secret else 'NOT SET'}")
    click.echo(f"  Algorithm:   {cfg.auth.jwt_algorithm}")
    click.echo(f"  Token TTL:   {cfg.auth.token_ttl_hours}h")
    click.echo("")

    click.echo("[Orders]")
    click.echo(f"  Enforce Transitions:  {cfg.orders.enforce_transitions}")
    click.echo(f"  Max Update Attempts:  {cfg.orders.max_update_attempts}")


# --- API client commands ---


@cli.group()
@click.option("--url", default=None, help="API base URL (default: from config).")
@click.option(
    "--token",
    envvar="ORDERDESK_TOKEN",
    required=True,
    help="Bearer token (or ORDERDESK_TOKEN).",
)
@click.pass_context
def orders(ctx: click.Context, url: str | None, token: str) -> None:
    """Talk to a running API as a signed-in user."""

    client = OrderDeskClient(url or _api_url(AppConfig()), token)
    ctx.obj = ctx.with_resource(client)


def _format_order_line(order_id: str, status: str, total: object, remaining: int) -> str:
    countdown = f"cancel within {remaining}s" if remaining > 0 else "not cancellable"
    return f"{order_id}  {status:<10} total={total}  {countdown}"


@orders.command("list")
@click.pass_obj
def list_orders(client: OrderDeskClient) -> None:
    """List your orders with their cancellation countdown."""

    try:
        tracked = client.my_orders()
    except OrderDeskClientError as e:
        raise click.ClickException(str(e)) from e
    except httpx.TransportError as e:
        raise click.ClickException(f"API is not reachable: {e}") from e
    if not tracked:
        click.echo("No orders.")
        return
    for order in tracked:
        click.echo(
            _format_order_line(
                order.order_id, order.status, order.total, local_time_remaining(order)
            )
        )


@orders.command("cancel")
@click.argument("order_id")
@click.pass_obj
def cancel_order(client: OrderDeskClient, order_id: str) -> None:
    """Cancel one of your orders."""

    try:
        click.echo(client.cancel(order_id))
    except OrderDeskClientError as e:
        raise click.ClickException(e.message) from e
    except httpx.TransportError as e:
        raise click.ClickException(f"API is not reachable: {e}") from e


@orders.command("watch")
@click.option("--interval", default=1.0, show_default=True, help="Refresh seconds.")
@click.option(
    "--refetch-every",
    default=10,
    show_default=True,
    help="Ticks between server refreshes.",
)
@click.option("--ticks", default=0, help="Stop after N ticks (0 = until no countdown).")
@click.pass_obj
def watch_orders(
    client: OrderDeskClient,
    interval: float,
    refetch_every: int,
    ticks: int,
) -> None:
    """Live countdown, re-projected locally between server refreshes."""

    tick = 0
    tracked: list[TrackedOrder] = []
    while True:
        if tick % max(1, refetch_every) == 0:
            try:
                tracked = client.my_orders()
            except OrderDeskClientError as e:
                raise click.ClickException(str(e)) from e
            except httpx.TransportError as e:
                raise click.ClickException(f"API is not reachable: {e}") from e

        now = time.monotonic()
        click.echo(f"--- tick {tick} ---")
        for order in tracked:
            remaining = local_time_remaining(order, now)
            click.echo(_format_order_line(order.order_id, order.status, order.total, remaining))

        tick += 1
        if ticks and tick >= ticks:
            break
        if not ticks and not any(locally_cancellable(o, now) for o in tracked):
            break
        time.sleep(interval)
