"""
File browser commands: ls, get, put, mkdir, rm, mv, cat, edit
"""
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from ...core.logging import get_stdout_console
from ...domain.files.models import sort_entries
from ..storage import LocalDirectorySink, LocalFileSource
from .connection import connected_facade, prompts, wait_result
from .utils import format_size

console = get_stdout_console()

USER_OPTION = typer.Option(None, "--user", "-u", help="Username")
PORT_OPTION = typer.Option(None, "--port", "-p", help="SSH port")
TARGET_ARGUMENT = typer.Argument(..., help="Host (supports user@host[:port])")


def ls(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    path: str = typer.Argument(".", help="Remote directory"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """List a remote directory, directories first."""
    with connected_facade(ctx, target, user, port) as facade:
        result = wait_result(facade.list_directory(path))

    table = Table(title=escape(path), show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for entry in sort_entries(result.value):
        if entry.is_directory:
            table.add_row(f"[blue]{escape(entry.name)}/[/blue]", "-", entry.modified_time)
        else:
            table.add_row(escape(entry.name), format_size(entry.size), entry.modified_time)
    console.print(table)


def get(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    remote_path: str = typer.Argument(..., help="Remote file"),
    dest: Path = typer.Option(Path("."), "--dest", "-d", help="Local directory"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Local file name"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Download a remote file."""
    sink = LocalDirectorySink(dest)
    with connected_facade(ctx, target, user, port) as facade:
        result = wait_result(facade.download(remote_path, sink, name))
    prompts.success(f"{result.message} to {sink.written} ({format_size(result.value.bytes_transferred)})")


def put(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    local_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file"),
    dest: str = typer.Option(".", "--dest", "-d", help="Remote directory"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Remote file name"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Upload a local file."""
    source = LocalFileSource(local_path)
    with connected_facade(ctx, target, user, port) as facade:
        result = wait_result(facade.upload(source, dest, name))
    prompts.success(f"{result.message} ({format_size(result.value.bytes_transferred)})")


def mkdir(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    parent: str = typer.Argument(..., help="Remote parent directory"),
    name: str = typer.Argument(..., help="New directory name"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Create a remote directory."""
    with connected_facade(ctx, target, user, port) as facade:
        result = wait_result(facade.make_directory(parent, name))
    prompts.success(result.message)


def rm(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    path: str = typer.Argument(..., help="Remote file or empty directory"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Delete a remote file or empty directory."""
    with connected_facade(ctx, target, user, port) as facade:
        entry = wait_result(facade.stat(path)).value
        kind = "directory" if entry.is_directory else "file"
        if not yes and not prompts.confirm(f"Delete {kind} {entry.path}?"):
            raise typer.Exit(0)
        result = wait_result(facade.delete(entry))
    prompts.success(result.message)


def mv(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    path: str = typer.Argument(..., help="Remote path"),
    new_name: str = typer.Argument(..., help="New name within the same directory"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Rename a remote file or directory in place."""
    with connected_facade(ctx, target, user, port) as facade:
        entry = wait_result(facade.stat(path)).value
        result = wait_result(facade.rename(entry, new_name))
    prompts.success(result.message)


def cat(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    path: str = typer.Argument(..., help="Remote file"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Print a remote text file."""
    with connected_facade(ctx, target, user, port) as facade:
        result = wait_result(facade.read_file(path))
    typer.echo(result.value, nl=False)


def edit(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    path: str = typer.Argument(..., help="Remote file"),
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """Open a remote text file in $EDITOR and save it back."""
    with connected_facade(ctx, target, user, port) as facade:
        content = wait_result(facade.read_file(path)).value
        edited = typer.edit(content, extension=Path(path).suffix or ".txt")
        if edited is None or edited == content:
            console.print("No changes")
            return
        result = wait_result(facade.write_file(path, edited))
    prompts.success(result.message)


def register_file_commands(app: typer.Typer) -> None:
    """Register file browser commands on the main app"""
    for command in (ls, get, put, mkdir, rm, mv, cat, edit):
        app.command(name=command.__name__)(command)
