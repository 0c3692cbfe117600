"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger
from .files import register_file_commands
from .shell import register_shell_command

logger = get_logger(__name__)

# Create main app
app = typer.Typer(
    name="sshdeck",
    add_completion=False,
    help="Remote shell and SFTP file manager",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_shell_command(app)
register_file_commands(app)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
):
    """
    sshdeck - remote shell and SFTP file manager

    Use subcommands to perform different operations:
    - shell: Interactive terminal
    - ls / get / put / mkdir / rm / mv: File management
    - cat / edit: View and edit remote text files
    """
    setup_logging(level=log_level, log_file=log_file)
    ctx.obj = {"config_path": config}


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
