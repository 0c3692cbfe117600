"""
Connection helpers shared by CLI commands
"""
import os
from concurrent.futures import Future
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import typer

from ...config import SessionConfig
from ...core.client import Credentials
from ...core.constants import DEFAULT_SSH_PORT
from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from ...domain.session.facade import SessionFacade
from ...domain.session.models import OperationResult
from ..config.loader import ConfigLoader
from .host_parser import parse_host_string
from .prompts import RichPromptProvider

logger = get_logger(__name__)
prompts = RichPromptProvider()


def resolve_credentials(
    target: str,
    user: Optional[str],
    port: Optional[int],
    connection: Dict[str, Any],
) -> Credentials:
    """
    Build credentials from the target string, options and the ``connection`` table.

    The password is prompted for (hidden) when no source provides it.
    """
    host, parsed_user, parsed_port = parse_host_string(target, user, port)
    resolved_user = parsed_user or connection.get("user") or os.getenv("USER", "root")
    resolved_port = parsed_port or connection.get("port") or DEFAULT_SSH_PORT

    password = connection.get("password")
    if not password:
        password = prompts.prompt(f"Password for {resolved_user}@{host}", password=True)

    return Credentials(
        host=host or connection.get("host", ""),
        username=resolved_user,
        password=str(password),
        port=int(resolved_port),
    )


def wait_result(future: "Future[OperationResult]") -> OperationResult:
    """Block on a facade future; print the failure and exit 1 on error"""
    result = future.result()
    if not result.success:
        prompts.error(result.message)
        raise typer.Exit(1)
    return result


@contextmanager
def connected_facade(
    ctx: typer.Context,
    target: str,
    user: Optional[str] = None,
    port: Optional[int] = None,
) -> Iterator[SessionFacade]:
    """Load configuration, connect, and shut everything down on exit"""
    config_path: Optional[Path] = (ctx.obj or {}).get("config_path")
    loader = ConfigLoader()
    try:
        data = loader.load(toml_path=config_path)
        config = SessionConfig.from_dict(
            {key: value for key, value in data.items() if key != "connection"}
        )
    except ConfigError as e:
        prompts.error(str(e))
        raise typer.Exit(1)

    credentials = resolve_credentials(target, user, port, data.get("connection", {}))
    facade = SessionFacade(config)
    try:
        result = facade.connect(credentials).result()
        if not result.success:
            prompts.error(f"Connection error: {result.message}")
            raise typer.Exit(1)
        logger.debug("Connected to %s", result.value)
        yield facade
    finally:
        facade.shutdown()
