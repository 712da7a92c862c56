"""Command-line interface for northbase."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

import click

from northbase import (
    AuthenticationError,
    CacheIndex,
    InvalidPathError,
    NorthbaseError,
    NotAuthenticatedError,
    SessionManager,
    SessionRefreshFailedError,
    SessionRevokedError,
    SessionStore,
    SyncEngine,
)
from northbase.config import Settings, get_settings


def get_session_manager(settings: Settings) -> SessionManager:
    """Create a SessionManager for the configured session file."""
    return SessionManager(SessionStore(settings.session_path))


def get_engine(settings: Settings) -> SyncEngine:
    """Create a SyncEngine over the configured mirror, index and session."""
    return SyncEngine(
        get_session_manager(settings),
        CacheIndex(settings.index_path),
        settings.files_dir,
        concurrency=settings.concurrency,
    )


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="NORTHBASE %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str) -> NoReturn:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


def _fail_for(error: Exception) -> NoReturn:
    """Report an unrecovered error the way every command does."""
    if isinstance(error, (NotAuthenticatedError, SessionRevokedError)):
        _fail(str(error))
    if isinstance(error, SessionRefreshFailedError):
        _fail(f"Session refresh failed: {error}")
    if isinstance(error, InvalidPathError):
        _fail(f"Invalid path: {error}")
    _fail(f"Error: {error}")


def _format_expiry(expires_at: int) -> str:
    if not expires_at:
        return "unknown"
    return datetime.fromtimestamp(expires_at, tz=timezone.utc).isoformat()


@click.group()
@click.version_option(package_name="northbase")
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="NORTHBASE_HOME",
    default=None,
    help="Configuration directory (default: ~/.northbase)",
)
@click.option("--debug", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, home: Path | None, debug: bool) -> None:
    """northbase - keep a local mirror of your remote files."""
    # Without the flag, NORTHBASE_DEBUG decides.
    settings = get_settings(home=home, debug=True if debug else None)
    _configure_logging(settings.debug)
    ctx.obj = settings


@main.command()
@click.option("--email", "-e", prompt=True, help="Account email")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Account password")
@click.pass_obj
def login(settings: Settings, email: str, password: str) -> None:
    """Log in and store the session locally."""
    try:
        credential = get_session_manager(settings).login(email, password)
    except AuthenticationError as e:
        _fail(f"Login failed: {e}")
    except (NorthbaseError, OSError) as e:
        _fail_for(e)
    click.echo(click.style(f"Logged in as {credential.email or email}.", fg="green"))


@main.command()
@click.pass_obj
def logout(settings: Settings) -> None:
    """Sign out and remove the local session."""
    get_session_manager(settings).logout()
    click.echo("Logged out.")


@main.command()
@click.pass_obj
def whoami(settings: Settings) -> None:
    """Show the logged-in user (no network access)."""
    user = get_session_manager(settings).current_user()
    if user is None:
        click.echo("Not logged in.")
        return
    email = user.get("email") or "(unknown)"
    user_id = user.get("id") or "(unknown)"
    click.echo(f"Logged in as {email} ({user_id})")


@main.command()
@click.pass_obj
def session(settings: Settings) -> None:
    """Show the stored session's expiry (no network access)."""
    try:
        status = get_session_manager(settings).status()
    except NotAuthenticatedError as e:
        _fail_for(e)

    click.echo(f"User:       {status.user.get('email') or '(unknown)'}")
    click.echo(f"Expires at: {_format_expiry(status.expires_at)}")
    if status.seconds_remaining is not None:
        click.echo(f"Remaining:  {status.seconds_remaining}s")
    refresh = "yes" if status.needs_refresh else "no"
    click.echo(f"Refresh on next use: {refresh}")


@main.command("list")
@click.argument("prefix", required=False)
@click.pass_obj
def list_files(settings: Settings, prefix: str | None) -> None:
    """List remote files, optionally under PREFIX.

    Files whose local copy is current are marked with *.

    Examples:

        northbase list

        northbase list notes/
    """
    try:
        listing = get_engine(settings).list_remote(prefix)
    except (NorthbaseError, OSError) as e:
        _fail_for(e)

    if not listing:
        click.echo("(no files)")
        return
    for record, current in listing:
        mark = click.style("*", fg="green") if current else " "
        click.echo(f"{mark} {record.path}  {record.marker or '-'}")


@main.command()
@click.argument("prefix", required=False)
@click.option(
    "--concurrency",
    "-c",
    type=click.IntRange(min=1),
    default=None,
    help="Parallel downloads (default: NORTHBASE_CONCURRENCY or 4)",
)
@click.pass_obj
def pull(settings: Settings, prefix: str | None, concurrency: int | None) -> None:
    """Download every remote file that changed, optionally under PREFIX."""
    engine = get_engine(settings)
    if concurrency is not None:
        engine.concurrency = concurrency
    try:
        result = engine.pull(prefix)
    except (NorthbaseError, OSError) as e:
        _fail_for(e)
    click.echo(
        f"Pulled total={result.total} downloaded={result.downloaded} skipped={result.skipped}"
    )


@main.command()
@click.argument("path")
@click.pass_obj
def get(settings: Settings, path: str) -> None:
    """Print the content of PATH, downloading it only if it changed."""
    try:
        content = get_engine(settings).get(path)
    except (NorthbaseError, OSError) as e:
        _fail_for(e)
    stdout = click.get_binary_stream("stdout")
    stdout.write(content)
    stdout.flush()


@main.command()
@click.argument("path")
@click.pass_obj
def put(settings: Settings, path: str) -> None:
    """Upload standard input to PATH.

    Examples:

        echo "hello" | northbase put notes/hello.md
    """
    content = click.get_binary_stream("stdin").read()
    try:
        result = get_engine(settings).put(path, content)
    except (NorthbaseError, OSError) as e:
        _fail_for(e)
    click.echo(f"PUT ok {result.path} bytes={result.byte_size} updated_at={result.marker}")


if __name__ == "__main__":
    main()
