"""Gameshelf CLI — run the server and do small admin chores.

Usage:
    gameshelf serve                       # Run the API with uvicorn
    gameshelf init-db                     # Create tables (dev / SQLite)
    gameshelf gen-secret                  # Print a fresh JWT secret
    gameshelf check-token <token>         # Is this token ours and unexpired?
    gameshelf me --token <access token>   # Call /users/me on a running server
"""

from __future__ import annotations

import asyncio
import json
import os
import secrets
import sys

import click
import httpx

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("GAMESHELF_API_URL", DEFAULT_API_URL).rstrip("/")


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


@click.group()
def cli():
    """Gameshelf — accounts, collections, and reviews for board-game players."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: settings.host)")
@click.option("--port", default=None, type=int, help="Port (default: settings.port)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    from gameshelf.config import settings

    uvicorn.run(
        "gameshelf.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command("init-db")
def init_db():
    """Create all tables directly from the models.

    Production databases should use `alembic upgrade head` instead.
    """
    from gameshelf.db.engine import engine
    from gameshelf.db.models import Base

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create())
    click.secho("Tables created.", fg="green")


@cli.command("gen-secret")
def gen_secret():
    """Print a random secret suitable for GAMESHELF_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(48))


@cli.command("check-token")
@click.argument("token")
def check_token(token: str):
    """Verify a token against the configured secret."""
    from gameshelf.auth.jwt import Invalid
    from gameshelf.main import build_token_codec
    from gameshelf.config import settings

    result = build_token_codec(settings).check(token)
    if isinstance(result, Invalid):
        click.secho("invalid", fg="red", err=True)
        sys.exit(1)

    payload = result.payload
    click.echo(
        _pretty_json(
            {
                "subject": payload.subject,
                "type": payload.token_type.value,
                "email": payload.email,
                "issued_at": payload.issued_at,
                "expires_at": payload.expires_at,
            }
        )
    )


@cli.command()
@click.option("--token", envvar="GAMESHELF_TOKEN", required=True, help="Access token")
def me(token: str):
    """Show the profile behind an access token."""
    try:
        r = httpx.get(
            f"{_api_url()}/api/v1/users/me",
            headers={"Authorization": f"Bearer {token}"},
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        click.secho(f"Error: cannot reach {_api_url()}: {e}", fg="red", err=True)
        sys.exit(1)

    if r.status_code != 200:
        click.secho(f"Error {r.status_code}: {r.text}", fg="red", err=True)
        sys.exit(1)
    click.echo(_pretty_json(r.json()))


def main():
    cli()


if __name__ == "__main__":
    main()
