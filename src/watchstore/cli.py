"""CLI interface: thin operator wrapper over DbManager."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer
from pydantic import ValidationError

from watchstore.errors import StorageError
from watchstore.models import AdminConfig
from watchstore.service import DbManager, get_db

T = TypeVar("T")

app = typer.Typer(
    name="watchstore",
    help="Inspect and maintain stored watch state, users and site config.",
    no_args_is_help=True,
)


def _get_db() -> DbManager:
    """Return the manager bound to the configured backend."""
    return get_db()


def _run(action: Callable[[DbManager], Awaitable[T]]) -> T:
    """Run one storage action to completion, exiting with code 1 on storage errors."""
    db = _get_db()

    async def main() -> T:
        try:
            return await action(db)
        finally:
            await db.close()

    try:
        return asyncio.run(main())
    except StorageError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log backend activity."),
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def backend() -> None:
    """Show which storage backend is active."""
    db = _get_db()
    typer.echo(f"Backend: {db.backend_name}")
    if db.backend_name == "none":
        typer.echo("⚠️  No storage configured: reads are empty and writes are discarded.")


@app.command()
def users() -> None:
    """List registered users."""
    names = _run(lambda db: db.get_all_users())
    if not names:
        typer.echo("No users registered.")
        return
    for i, name in enumerate(sorted(names), 1):
        typer.echo(f"  {i}. {name}")


@app.command()
def add_user(
    name: str = typer.Argument(..., help="User name."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Register a new user."""

    async def action(db: DbManager) -> bool:
        if await db.check_user_exist(name):
            return False
        await db.register_user(name, password)
        return True

    if not _run(action):
        typer.echo(f"⚠️  User already exists: {name}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ Registered: {name}")


@app.command()
def passwd(
    name: str = typer.Argument(..., help="User name."),
    password: str = typer.Option(..., prompt="New password", hide_input=True, confirmation_prompt=True),
) -> None:
    """Change a user's password."""

    async def action(db: DbManager) -> bool:
        if not await db.check_user_exist(name):
            return False
        await db.change_password(name, password)
        return True

    if not _run(action):
        typer.echo(f"❌ User not found: {name}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"✅ Password changed: {name}")


@app.command()
def remove_user(name: str = typer.Argument(..., help="User name.")) -> None:
    """Delete a user and all of their watch state."""

    async def action(db: DbManager) -> bool:
        if not await db.check_user_exist(name):
            return False
        await db.delete_user(name)
        return True

    if not _run(action):
        typer.echo(f"❌ User not found: {name}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"🗑️  Removed: {name}")


@app.command()
def records(name: str = typer.Argument(..., help="User name.")) -> None:
    """List a user's play records, most recently saved first."""
    found = _run(lambda db: db.get_all_play_records(name))
    if not found:
        typer.echo("No play records.")
        return
    ordered = sorted(found.items(), key=lambda item: item[1].save_time, reverse=True)
    for key, r in ordered:
        mins, secs = divmod(int(r.play_time), 60)
        typer.echo(f"  {key:<30s}  ep {r.index}/{r.total_episodes}  [{mins:02d}:{secs:02d}]  {r.title}")


@app.command()
def favorites(name: str = typer.Argument(..., help="User name.")) -> None:
    """List a user's favorites."""
    found = _run(lambda db: db.get_all_favorites(name))
    if not found:
        typer.echo("No favorites.")
        return
    for key, f in sorted(found.items(), key=lambda item: item[1].save_time, reverse=True):
        year = f" ({f.year})" if f.year else ""
        typer.echo(f"  {key:<30s}  {f.title}{year}  [{f.source_name}]")


@app.command()
def history(name: str = typer.Argument(..., help="User name.")) -> None:
    """Show a user's search history, newest first."""
    keywords = _run(lambda db: db.get_search_history(name))
    if not keywords:
        typer.echo("Search history is empty.")
        return
    for i, keyword in enumerate(keywords, 1):
        typer.echo(f"  {i}. {keyword}")


@app.command()
def clear_history(
    name: str = typer.Argument(..., help="User name."),
    keyword: str | None = typer.Option(None, "--keyword", "-k", help="Remove only this keyword."),
) -> None:
    """Clear a user's search history, or a single keyword from it."""
    _run(lambda db: db.delete_search_history(name, keyword))
    if keyword is None:
        typer.echo(f"🗑️  Cleared search history: {name}")
    else:
        typer.echo(f"🗑️  Removed '{keyword}' from {name}'s search history")


@app.command()
def export_config(
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
) -> None:
    """Export the admin config as JSON."""
    config = _run(lambda db: db.get_admin_config())
    if config is None:
        typer.echo("⚠️  No admin config stored.", err=True)
        raise typer.Exit(code=1)
    text = json.dumps(config.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"✅ Admin config written to {output}")


@app.command()
def import_config(path: Path = typer.Argument(..., help="JSON file to load.", exists=True, dir_okay=False)) -> None:
    """Replace the admin config with the contents of a JSON file."""
    try:
        config = AdminConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        typer.echo(f"❌ Invalid admin config: {e}", err=True)
        raise typer.Exit(code=1)
    _run(lambda db: db.save_admin_config(config))
    typer.echo(f"✅ Admin config imported from {path}")


@app.command()
def wipe(yes: bool = typer.Option(False, "--yes", help="Confirm deletion of all data.")) -> None:
    """Delete every user, all watch state and the admin config."""
    if not yes:
        typer.echo("⚠️  This deletes all stored data. Re-run with --yes to confirm.", err=True)
        raise typer.Exit(code=1)
    _run(lambda db: db.clear_all_data())
    typer.echo("🗑️  All data cleared.")


if __name__ == "__main__":
    app()
