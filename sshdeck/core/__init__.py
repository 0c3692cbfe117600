"""
Core infrastructure layer
"""
from .client import Credentials, ConnectionState, TransportSession, ParamikoConnectionFactory
from .cancellation import CancelToken
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import ConnectionFactory, ByteSource, ByteSink, PromptProvider
from .utils import join_remote_path, replace_last_segment, last_segment, build_host_key_policy

__all__ = [
    "Credentials",
    "ConnectionState",
    "TransportSession",
    "ParamikoConnectionFactory",
    "CancelToken",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ConnectionFactory",
    "ByteSource",
    "ByteSink",
    "PromptProvider",
    "join_remote_path",
    "replace_last_segment",
    "last_segment",
    "build_host_key_policy",
]
