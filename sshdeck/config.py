"""
Configuration models
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_HOST_KEY_POLICY,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SHELL_OPEN_TIMEOUT,
    DEFAULT_SHELL_POLL_INTERVAL,
    DEFAULT_SHELL_READ_SIZE,
    DEFAULT_TERM,
    DEFAULT_TERM_HEIGHT,
    DEFAULT_TERM_WIDTH,
    FALLBACK_UPLOAD_NAME,
    HOST_KEY_POLICIES,
)
from .core.exceptions import ConfigError


@dataclass
class ShellConfig:
    """Interactive shell settings"""
    term: str = DEFAULT_TERM
    width: int = DEFAULT_TERM_WIDTH
    height: int = DEFAULT_TERM_HEIGHT
    open_timeout: float = DEFAULT_SHELL_OPEN_TIMEOUT
    read_size: int = DEFAULT_SHELL_READ_SIZE
    poll_interval: float = DEFAULT_SHELL_POLL_INTERVAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "term": self.term,
            "width": self.width,
            "height": self.height,
            "open_timeout": self.open_timeout,
            "read_size": self.read_size,
            "poll_interval": self.poll_interval,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShellConfig":
        return cls(
            term=data.get("term", DEFAULT_TERM),
            width=int(data.get("width", DEFAULT_TERM_WIDTH)),
            height=int(data.get("height", DEFAULT_TERM_HEIGHT)),
            open_timeout=float(data.get("open_timeout", DEFAULT_SHELL_OPEN_TIMEOUT)),
            read_size=int(data.get("read_size", DEFAULT_SHELL_READ_SIZE)),
            poll_interval=float(data.get("poll_interval", DEFAULT_SHELL_POLL_INTERVAL)),
        )


@dataclass
class TransferConfig:
    """File transfer settings"""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    # Per-operation channel timeout in seconds; None waits forever
    operation_timeout: Optional[float] = None
    # Upper bound for whole-file reads; None reads any size
    max_read_bytes: Optional[int] = None
    fallback_upload_name: str = FALLBACK_UPLOAD_NAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_size": self.chunk_size,
            "operation_timeout": self.operation_timeout,
            "max_read_bytes": self.max_read_bytes,
            "fallback_upload_name": self.fallback_upload_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransferConfig":
        timeout = data.get("operation_timeout")
        max_read = data.get("max_read_bytes")
        return cls(
            chunk_size=int(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            operation_timeout=float(timeout) if timeout is not None else None,
            max_read_bytes=int(max_read) if max_read is not None else None,
            fallback_upload_name=data.get("fallback_upload_name", FALLBACK_UPLOAD_NAME),
        )


@dataclass
class SessionConfig:
    """Session facade configuration"""
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    host_key_policy: str = DEFAULT_HOST_KEY_POLICY
    known_hosts: Optional[str] = None
    max_workers: int = DEFAULT_MAX_WORKERS
    shell: ShellConfig = field(default_factory=ShellConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigError: If a value is out of range
        """
        if self.host_key_policy not in HOST_KEY_POLICIES:
            raise ConfigError(
                f"host_key_policy must be one of {', '.join(HOST_KEY_POLICIES)}, "
                f"got {self.host_key_policy!r}"
            )
        if self.connect_timeout <= 0:
            raise ConfigError("connect_timeout must be positive")
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")
        if self.transfer.chunk_size < 1:
            raise ConfigError("transfer.chunk_size must be at least 1")
        if self.shell.read_size < 1:
            raise ConfigError("shell.read_size must be at least 1")
        if self.shell.poll_interval <= 0:
            raise ConfigError("shell.poll_interval must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connect_timeout": self.connect_timeout,
            "host_key_policy": self.host_key_policy,
            "known_hosts": self.known_hosts,
            "max_workers": self.max_workers,
            "shell": self.shell.to_dict(),
            "transfer": self.transfer.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """
        Create from a (possibly partial) dictionary.

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        try:
            return cls(
                connect_timeout=float(data.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
                host_key_policy=data.get("host_key_policy", DEFAULT_HOST_KEY_POLICY),
                known_hosts=data.get("known_hosts"),
                max_workers=int(data.get("max_workers", DEFAULT_MAX_WORKERS)),
                shell=ShellConfig.from_dict(data.get("shell", {})),
                transfer=TransferConfig.from_dict(data.get("transfer", {})),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
