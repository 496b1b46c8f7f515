# embed_gateway/cli.py
"""CLI commands for client management."""
import click
from sqlalchemy import update

from embed_gateway.database import Base, SessionLocal, engine
from embed_gateway.errors import GatewayError
from embed_gateway.models import Client
from embed_gateway.quota import quota_status
from embed_gateway.registry import get_client_by_origin, register_client, utc_today


@click.group()
def cli():
    """Embedding gateway administration."""
    Base.metadata.create_all(bind=engine)


@cli.command()
@click.option("--origin", required=True, help="Origin to register, e.g. https://example.com")
@click.option("--daily-limit", type=int, default=None, help="Daily request limit")
@click.option("--total-limit", type=int, default=None, help="Lifetime request limit")
def register(origin: str, daily_limit, total_limit):
    """Register an origin and print its API token."""
    db = SessionLocal()
    try:
        client, token = register_client(db, origin, daily_limit, total_limit)
        click.echo(f"Client {client.id} registered for {client.origin}")
        click.echo(f"API token: {token}")
    except GatewayError as e:
        raise click.ClickException(e.detail)
    finally:
        db.close()


@cli.command()
@click.option("--origin", required=True, help="Registered origin")
def show(origin: str):
    """Show quota usage for a client."""
    db = SessionLocal()
    try:
        client = get_client_by_origin(db, origin)
        if client is None:
            raise click.ClickException(f"No client registered for {origin}")
        status = quota_status(client)
        click.echo(f"Client {client.id} ({client.origin}), token {client.token_prefix}...")
        click.echo(f"Daily: {status['used_daily']}/{client.daily_limit}")
        click.echo(f"Total: {status['used_total']}/{client.total_limit}")
    finally:
        db.close()


@cli.command("reset-usage")
@click.option("--origin", required=True, help="Registered origin")
def reset_usage(origin: str):
    """Zero a client's daily usage counter."""
    db = SessionLocal()
    try:
        client = get_client_by_origin(db, origin)
        if client is None:
            raise click.ClickException(f"No client registered for {origin}")
        db.execute(
            update(Client)
            .where(Client.id == client.id)
            .values(used_daily=0, last_reset=utc_today())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        click.echo(f"Daily usage reset for {client.origin}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
