"""Masterdata CLI - serve, seed, user and import commands."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .errors import MasterdataError

app = typer.Typer(
    name="masterdata",
    help="HR masterdata service",
    no_args_is_help=True,
)
console = Console()


def _run(coro):
    try:
        return asyncio.run(coro)
    except MasterdataError as exc:
        console.print(f"[red]{exc.code}: {exc.message}[/red]")
        raise typer.Exit(1)


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the masterdata API."""
    import uvicorn

    console.print(f"[bold cyan]Starting HR Masterdata at http://{host}:{port}[/bold cyan]")
    uvicorn.run("masterdata.app:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_db():
    """Create tables and seed the built-in masterdata columns."""
    from .database import async_session_factory, create_tables
    from .services import column_svc

    async def _init():
        await create_tables()
        async with async_session_factory() as db:
            return await column_svc.seed_masterdata_columns(db)

    created = _run(_init())
    console.print(f"[green]Database ready, {created} masterdata columns seeded[/green]")


@app.command("seed")
def seed():
    """Insert any missing masterdata columns."""
    from .database import async_session_factory
    from .services import column_svc

    async def _seed():
        async with async_session_factory() as db:
            return await column_svc.seed_masterdata_columns(db)

    created = _run(_seed())
    console.print(f"[green]{created} masterdata columns created[/green]")


@app.command("create-user")
def create_user(
    email: str = typer.Argument(..., help="Login email"),
    role: str = typer.Option(..., "--role", "-r", help="hr_admin, sodexo, omc, payroll or toplux"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
):
    """Create a user account."""
    from .database import async_session_factory
    from .services import user_svc

    async def _create():
        async with async_session_factory() as db:
            return await user_svc.create_user(db, email=email, password=password, role=role)

    user = _run(_create())
    console.print(f"[green]Created {user.email} ({user.role})[/green]")


@app.command("columns")
def list_columns(
    role: str = typer.Option(None, "--role", "-r", help="Only columns this role can view"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List column definitions and their permission matrices."""
    from .database import async_session_factory
    from .services import column_svc

    async def _list():
        async with async_session_factory() as db:
            if role:
                return await column_svc.list_columns_for_role(db, role)
            return await column_svc.list_columns(db)

    columns = _run(_list())
    if json_output:
        console.print_json(json.dumps([
            {
                "column_name": c.column_name,
                "column_type": c.column_type,
                "is_masterdata": c.is_masterdata,
                "category": c.category,
                "display_order": c.display_order,
                "role_permissions": c.role_permissions,
            }
            for c in columns
        ]))
        return

    table = Table(title="Columns")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Permissions")
    for group, items in column_svc.group_columns_by_category(columns).items():
        for c in items:
            perms = ", ".join(
                f"{r}:{'rw' if p['edit'] else 'r' if p['view'] else '-'}"
                for r, p in sorted(c.role_permissions.items())
            )
            table.add_row(str(c.display_order), c.column_name, c.column_type, group, perms)
    console.print(table)


@app.command("import-employees")
def import_employees(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file"),
):
    """Import employees from a CSV file."""
    from .database import async_session_factory
    from .services import import_svc

    async def _import():
        async with async_session_factory() as db:
            return await import_svc.import_employees(db, path.read_bytes())

    _print_import(_run(_import()))


@app.command("import-dates")
def import_dates(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file"),
    mapping: str = typer.Option(None, "--mapping", help="JSON object of CSV header to field"),
):
    """Import important dates from a CSV file."""
    from .database import async_session_factory
    from .services import import_svc, important_date_svc

    async def _import():
        column_mapping = import_svc.parse_column_mapping(mapping)
        async with async_session_factory() as db:
            return await important_date_svc.import_dates(db, path.read_bytes(), column_mapping)

    _print_import(_run(_import()))


def _print_import(result) -> None:
    console.print(
        f"[green]Imported {result.imported}[/green], skipped {result.skipped}"
    )
    for err in result.to_dict()["errors"]:
        console.print(f"  [yellow]row {err['row']}[/yellow]: {err['message']}")


if __name__ == "__main__":
    app()
