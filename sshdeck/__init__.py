"""
sshdeck - remote shell and SFTP session engine

One authenticated SSH connection, two usage modes:
- Interactive shell streaming (one long-lived channel)
- Request/response file operations (one SFTP channel per operation)
- Session facade with a bounded worker pool and explicit results
- Pluggable host key verification, strict by default
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    Credentials,
    ConnectionState,
    TransportSession,
    ParamikoConnectionFactory,
    CancelToken,
    ByteSource,
    ByteSink,
)
from .core.exceptions import (
    RemoteError,
    ConfigError,
    ConnectionError,
    NotConnectedError,
    HostKeyError,
    ChannelError,
    OperationError,
    StreamError,
)
from .config import SessionConfig, ShellConfig, TransferConfig

# Export domain components
from .domain.shell import ShellChannel, ShellState
from .domain.files import FileTransferChannel, RemoteFileEntry, TransferResult, sort_entries
from .domain.session import SessionFacade, OperationResult

# Export local adapters
from .adapters.storage import LocalFileSource, LocalDirectorySink, BytesSource, BytesSink

__all__ = [
    # Version
    "__version__",
    # Core
    "Credentials",
    "ConnectionState",
    "TransportSession",
    "ParamikoConnectionFactory",
    "CancelToken",
    "ByteSource",
    "ByteSink",
    # Errors
    "RemoteError",
    "ConfigError",
    "ConnectionError",
    "NotConnectedError",
    "HostKeyError",
    "ChannelError",
    "OperationError",
    "StreamError",
    # Configuration
    "SessionConfig",
    "ShellConfig",
    "TransferConfig",
    # Shell
    "ShellChannel",
    "ShellState",
    # Files
    "FileTransferChannel",
    "RemoteFileEntry",
    "TransferResult",
    "sort_entries",
    # Session
    "SessionFacade",
    "OperationResult",
    # Adapters
    "LocalFileSource",
    "LocalDirectorySink",
    "BytesSource",
    "BytesSink",
]
