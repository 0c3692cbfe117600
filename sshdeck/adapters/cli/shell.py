"""
Interactive terminal command

Remote output is printed by the facade's reader thread. Local lines are
read from stdin on a daemon thread so the command returns as soon as the
remote shell exits, without waiting for another line of input.
"""
import queue
import sys
import threading
from concurrent.futures import Future
from typing import Optional

import typer

from ...core.logging import get_logger
from ...domain.session.facade import SessionFacade
from .connection import connected_facade, prompts
from .files import PORT_OPTION, TARGET_ARGUMENT, USER_OPTION

logger = get_logger(__name__)

# Seconds between checks for a finished remote shell
INPUT_POLL_INTERVAL = 0.1


def _write_output(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def _read_stdin(lines: "queue.Queue[Optional[str]]") -> None:
    """Feed stdin lines into ``lines``; ``None`` marks end of input"""
    while True:
        try:
            lines.put(input())
        except EOFError:
            lines.put(None)
            return


def relay_input(
    facade: SessionFacade,
    finished: Future,
    lines: "queue.Queue[Optional[str]]",
) -> None:
    """Send queued lines to the shell until input ends or the remote shell closes"""
    while not finished.done():
        try:
            line = lines.get(timeout=INPUT_POLL_INTERVAL)
        except queue.Empty:
            continue
        if line is None:
            return
        result = facade.send_line(line)
        if not result.success:
            prompts.error(result.message)
            return


def shell(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    user: Optional[str] = USER_OPTION,
    port: Optional[int] = PORT_OPTION,
) -> None:
    """
    Start an interactive remote shell.

    Lines typed locally are sent to the remote shell; press Ctrl-D to leave.
    """
    with connected_facade(ctx, target, user, port) as facade:
        finished = facade.start_shell(_write_output)
        lines: "queue.Queue[Optional[str]]" = queue.Queue()
        reader = threading.Thread(target=_read_stdin, args=(lines,), daemon=True, name="sshdeck-stdin")
        reader.start()
        try:
            relay_input(facade, finished, lines)
        except KeyboardInterrupt:
            print("\nInterrupted")
        finally:
            facade.close_shell()

        outcome = finished.result()
        logger.debug("Shell finished: %s", outcome)
        if not outcome.success:
            raise typer.Exit(1)


def register_shell_command(app: typer.Typer) -> None:
    app.command(name="shell")(shell)
