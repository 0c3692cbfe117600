"""
Transport session: one authenticated SSH connection and every channel opened on it
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Set

import paramiko

from .constants import DEFAULT_SSH_PORT, DEFAULT_CONNECT_TIMEOUT, DEFAULT_HOST_KEY_POLICY
from .exceptions import ChannelError, ConnectionError, HostKeyError, NotConnectedError
from .interfaces import ConnectionFactory
from .logging import get_logger
from .utils import build_host_key_policy

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    host: str
    username: str
    password: str = field(repr=False)
    port: int = DEFAULT_SSH_PORT

    @property
    def display(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ParamikoConnectionFactory(ConnectionFactory):
    """
    Builds password-authenticated ``paramiko.SSHClient`` instances.

    - System known_hosts are always loaded, plus ``known_hosts`` if given
    - Unknown host keys are handled by the configured policy (strict by default)
    - Key files and the SSH agent are never consulted
    """

    def __init__(
        self,
        host_key_policy: str = DEFAULT_HOST_KEY_POLICY,
        known_hosts: Optional[str] = None,
    ) -> None:
        # Validate eagerly so a typo fails before the first connect
        build_host_key_policy(host_key_policy)
        self.host_key_policy = host_key_policy
        self.known_hosts = known_hosts

    def create(self, credentials: Credentials, timeout: float) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        if self.known_hosts:
            path = Path(self.known_hosts).expanduser()
            if path.exists():
                client.load_host_keys(str(path))
        client.set_missing_host_key_policy(build_host_key_policy(self.host_key_policy))

        try:
            client.connect(
                hostname=credentials.host,
                port=credentials.port,
                username=credentials.username,
                password=credentials.password,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except Exception:
            client.close()
            raise
        return client


class TransportSession:
    """
    Owner of one SSH connection and all channels opened against it.

    Only ``connect`` and ``disconnect`` change the connection state. Channel
    acquisition may happen from any thread; an internal lock guards the state,
    the client handle and the channel registry.
    """

    def __init__(self, factory: Optional[ConnectionFactory] = None) -> None:
        self._factory = factory or ParamikoConnectionFactory()
        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._client: Any = None
        self._shell: Any = None
        self._channels: Set[Any] = set()
        self.credentials: Optional[Credentials] = None

    # --------------------
    # State
    # --------------------
    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        with self._lock:
            if self._state is not ConnectionState.CONNECTED or self._client is None:
                return False
            transport = self._client.get_transport()
            return transport is not None and transport.is_active()

    @property
    def channel_count(self) -> int:
        """Number of registered SFTP channels"""
        with self._lock:
            return len(self._channels)

    # --------------------
    # Connection management
    # --------------------
    def connect(self, credentials: Credentials, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> None:
        """
        Establish the connection, replacing any previous one.

        Raises:
            HostKeyError: If the host key is rejected
            ConnectionError: On authentication failure, unreachable host or timeout
        """
        self.disconnect()
        with self._lock:
            self._state = ConnectionState.CONNECTING
            self.credentials = credentials

        target = credentials.display
        logger.info("Connecting to %s", target)
        try:
            client = self._factory.create(credentials, timeout)
        except paramiko.BadHostKeyException as e:
            self._mark_failed()
            raise HostKeyError(f"Host key for {credentials.host} does not match known_hosts") from e
        except paramiko.AuthenticationException as e:
            self._mark_failed()
            raise ConnectionError(
                f"Authentication failed for {credentials.username}@{credentials.host}"
            ) from e
        except paramiko.SSHException as e:
            self._mark_failed()
            # RejectPolicy reports unknown hosts as a plain SSHException
            if "known_hosts" in str(e):
                raise HostKeyError(str(e)) from e
            raise ConnectionError(f"SSH negotiation with {target} failed: {e}") from e
        except TimeoutError as e:
            self._mark_failed()
            raise ConnectionError(f"Connection to {target} timed out after {timeout:g}s") from e
        except OSError as e:
            self._mark_failed()
            raise ConnectionError(f"Cannot reach {target}: {e}") from e
        except Exception as e:
            # e.g. UnicodeError from getaddrinfo on a malformed host name
            self._mark_failed()
            raise ConnectionError(f"Cannot connect to {target}: {e}") from e

        with self._lock:
            aborted = self._state is not ConnectionState.CONNECTING
            if not aborted:
                self._client = client
                self._state = ConnectionState.CONNECTED

        if aborted:
            client.close()
            raise ConnectionError(f"Connection to {target} aborted by disconnect")

        logger.info("Connected to %s", target)

    def disconnect(self) -> None:
        """
        Tear down the shell channel, then file channels, then the transport.

        Safe to call repeatedly and before any connect.
        """
        with self._lock:
            shell, self._shell = self._shell, None
            channels = list(self._channels)
            self._channels.clear()
            client, self._client = self._client, None
            self._state = ConnectionState.DISCONNECTED

        # Shell first: its reader must not block on a dead transport
        if shell is not None:
            shell.close()
        for channel in channels:
            self._close_quietly(channel)
        if client is not None:
            client.close()
            logger.info("Disconnected from %s", self.credentials.display if self.credentials else "host")

    def _mark_failed(self) -> None:
        with self._lock:
            if self._state is ConnectionState.CONNECTING:
                self._state = ConnectionState.FAILED

    def _require_transport(self) -> paramiko.Transport:
        """Return the live transport (lock must be held)"""
        if self._state is not ConnectionState.CONNECTED or self._client is None:
            raise NotConnectedError("Not connected")
        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise NotConnectedError("Connection closed by remote host")
        return transport

    # --------------------
    # Shell channel
    # --------------------
    def attach_shell(self, shell: Any) -> None:
        """
        Reserve the single shell slot of this session.

        Raises:
            NotConnectedError: If the session is not connected
            ChannelError: If another shell is already attached
        """
        with self._lock:
            self._require_transport()
            if self._shell is not None and self._shell is not shell:
                raise ChannelError("A shell channel is already open on this session")
            self._shell = shell

    def detach_shell(self, shell: Any) -> None:
        with self._lock:
            if self._shell is shell:
                self._shell = None

    def open_shell_channel(
        self,
        term: str,
        width: int,
        height: int,
        timeout: float,
    ) -> paramiko.Channel:
        """
        Open a pty-backed interactive shell channel.

        Raises:
            NotConnectedError: If the session is not connected
            ChannelError: If channel negotiation fails
        """
        with self._lock:
            transport = self._require_transport()

        channel = None
        try:
            channel = transport.open_session(timeout=timeout)
            channel.get_pty(term=term, width=width, height=height)
            channel.invoke_shell()
        except (paramiko.SSHException, OSError, EOFError) as e:
            if channel is not None:
                self._close_quietly(channel)
            raise ChannelError(f"Failed to open shell channel: {e}") from e
        return channel

    # --------------------
    # SFTP channels
    # --------------------
    def open_sftp(self, timeout: Optional[float] = None) -> paramiko.SFTPClient:
        """
        Open a fresh SFTP sub-channel registered with this session.

        Callers hand it back through ``release``.

        Raises:
            NotConnectedError: If the session is not connected
            ChannelError: If the SFTP subsystem cannot be started
        """
        with self._lock:
            self._require_transport()
            client = self._client

        try:
            sftp = client.open_sftp()
        except (paramiko.SSHException, OSError, EOFError) as e:
            with self._lock:
                dropped = self._client is not client
            if dropped:
                raise ConnectionError("Connection closed") from e
            raise ChannelError(f"Failed to open SFTP channel: {e}") from e

        if timeout:
            sftp.get_channel().settimeout(timeout)

        with self._lock:
            stale = self._client is not client
            if not stale:
                self._channels.add(sftp)
        if stale:
            self._close_quietly(sftp)
            raise ConnectionError("Connection closed")
        return sftp

    def release(self, channel: Any) -> None:
        """Unregister and close a channel obtained from ``open_sftp``"""
        with self._lock:
            self._channels.discard(channel)
        self._close_quietly(channel)

    @staticmethod
    def _close_quietly(channel: Any) -> None:
        try:
            channel.close()
        except Exception as e:
            logger.debug("Ignoring error while closing %r: %s", channel, e)

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> TransportSession:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.disconnect()
