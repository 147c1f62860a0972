"""CLI commands for API management.

This module provides commands for running the Timecard REST API and issuing
the bearer tokens its callers present.
"""

from pathlib import Path
from typing import Optional

import click  # type: ignore[import-not-found]

from timecard.api.auth import create_token_for_user
from timecard.cli.context import fail, get_config


@click.group()  # type: ignore[misc]
def api() -> None:
    """API server management commands."""
    pass


@api.command()  # type: ignore[misc]
@click.option("--host", default=None, help="Host address (default: from config)")  # type: ignore[misc]
@click.option("--port", type=int, default=None, help="Port number (default: from config)")  # type: ignore[misc]
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")  # type: ignore[misc]
@click.option("--ssl-cert", type=click.Path(exists=True), help="Path to SSL certificate file")  # type: ignore[misc]
@click.option("--ssl-key", type=click.Path(exists=True), help="Path to SSL key file")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def serve(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    reload: bool,
    ssl_cert: Optional[str],
    ssl_key: Optional[str],
) -> None:
    """Start the API server.

    Examples:
        timecard api serve
        timecard api serve --host 0.0.0.0 --port 8080
        timecard api serve --reload  # Development mode
    """
    from timecard.api.server import run_server

    config = get_config(ctx)

    if config.get("api.authentication.enabled", True):
        config.ensure_api_secret_key()

    final_host = host or config.get("api.host", "localhost")
    final_port = port or config.get("api.port", 8000)

    ssl_cert_path = Path(ssl_cert) if ssl_cert and ssl_key else None
    ssl_key_path = Path(ssl_key) if ssl_cert and ssl_key else None

    protocol = "https" if ssl_cert_path else "http"
    click.echo("Starting Timecard API server...")
    click.echo(f"   URL: {protocol}://{final_host}:{final_port}")
    click.echo(f"   Docs: {protocol}://{final_host}:{final_port}/docs")
    click.echo(f"   Store: {config.get('store.backend', 'salesforce')}")
    if reload:
        click.echo("   Mode: Development (auto-reload enabled)")
    click.echo()

    try:
        run_server(
            config=config,
            host=final_host,
            port=final_port,
            reload=reload,
            workers=config.get("api.workers", 1),
            ssl_certfile=ssl_cert_path,
            ssl_keyfile=ssl_key_path,
        )
    except KeyboardInterrupt:
        click.echo("\nShutting down API server...")
    except (OSError, ValueError) as e:
        fail(f"Error starting server: {e}")


@api.group()  # type: ignore[misc]
def token() -> None:
    """Manage API authentication tokens."""
    pass


@token.command("create")  # type: ignore[misc]
@click.option("--email", required=True, help="Email of the user the token identifies")  # type: ignore[misc]
@click.option("--name", default=None, help="Display name shown on time cards")  # type: ignore[misc]
@click.option(  # type: ignore[misc]
    "--expires",
    type=int,
    help="Token expiry time in hours (default: from config)",
)
@click.option("--save", is_flag=True, help="Store the token as the CLI's client.token")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def create_token_cmd(
    ctx: click.Context, email: str, name: Optional[str], expires: Optional[int], save: bool
) -> None:
    """Create a new authentication token.

    Examples:
        timecard api token create --email ada@example.com --name "Ada Lovelace"
        timecard api token create --email ada@example.com --expires 48 --save
    """
    if "@" not in email:
        fail(f"Not an email address: {email}")

    config = get_config(ctx)
    token_data = create_token_for_user(config, email=email, name=name, expires_hours=expires)
    hours = token_data["expires_in"] // 3600

    click.echo("Token created successfully!")
    click.echo()
    click.echo(f"Token: {token_data['access_token']}")
    click.echo(f"Expires in: {hours} hours")
    click.echo()
    click.echo("Use this token in API requests:")
    click.echo(f"  Authorization: Bearer {token_data['access_token']}")

    if save:
        config.set("client.token", token_data["access_token"])
        click.echo()
        click.echo(f"Saved as client.token in {config.config_path}")
