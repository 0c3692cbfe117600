"""
Interactive shell channel
"""
import codecs
import socket
import threading
from typing import Iterator, Optional

import paramiko

from ...config import ShellConfig
from ...core.client import TransportSession
from ...core.constants import LINE_TERMINATOR
from ...core.exceptions import ChannelError, ConnectionError, StreamError
from ...core.logging import get_logger
from .models import ShellState

logger = get_logger(__name__)


class ShellChannel:
    """
    Long-lived duplex shell stream borrowed from a transport session.

    ``open`` negotiates the channel and returns a lazy iterator of decoded
    output chunks; ``send`` writes one command line. A channel instance is
    single-use: once closed, open a new one.
    """

    def __init__(self, session: TransportSession, config: Optional[ShellConfig] = None):
        """
        Initialize shell channel.

        Args:
            session: Connected transport session (borrowed, not owned)
            config: Shell configuration
        """
        self.session = session
        self.config = config or ShellConfig()
        self._state = ShellState.IDLE
        self._channel: Optional[paramiko.Channel] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ShellState:
        return self._state

    def open(self) -> Iterator[str]:
        """
        Negotiate the shell channel and return its output stream.

        Returns:
            Iterator yielding output chunks in receive order

        Raises:
            ChannelError: If this instance was already opened, or negotiation fails
            NotConnectedError: If the session is not connected
        """
        with self._lock:
            if self._state is not ShellState.IDLE:
                raise ChannelError(f"Shell channel cannot be opened from state {self._state.value}")
            self._state = ShellState.OPENING

        try:
            self.session.attach_shell(self)
            cfg = self.config
            channel = self.session.open_shell_channel(
                term=cfg.term,
                width=cfg.width,
                height=cfg.height,
                timeout=cfg.open_timeout,
            )
        except Exception:
            self.close()
            raise

        channel.settimeout(cfg.poll_interval)
        with self._lock:
            closed_meanwhile = self._state is ShellState.CLOSED
            if not closed_meanwhile:
                self._channel = channel
                self._state = ShellState.STREAMING
        if closed_meanwhile:
            channel.close()
            raise ConnectionError("Connection closed while opening shell")

        logger.debug("Shell channel open (%s %dx%d)", cfg.term, cfg.width, cfg.height)
        return self._stream(channel)

    def _stream(self, channel: paramiko.Channel) -> Iterator[str]:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                try:
                    data = channel.recv(self.config.read_size)
                except socket.timeout:
                    # Poll boundary: lets an explicit close end the stream
                    if self._state is ShellState.CLOSED:
                        break
                    continue
                except (OSError, EOFError, paramiko.SSHException) as e:
                    if self._state is ShellState.CLOSED:
                        break
                    raise StreamError(f"Shell read failed: {e}") from e

                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    yield text

            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
        finally:
            self.close()

    def send(self, line: str) -> None:
        """
        Send one command line, terminated and flushed.

        Raises:
            ChannelError: If the channel is not streaming
            StreamError: If the write fails
        """
        with self._lock:
            channel = self._channel
            state = self._state
        if state is not ShellState.STREAMING or channel is None:
            raise ChannelError("Shell channel is not open")

        data = (line + LINE_TERMINATOR).encode("utf-8")
        try:
            channel.sendall(data)
        except (OSError, EOFError, paramiko.SSHException) as e:
            raise StreamError(f"Failed to send to shell: {e}") from e

    def resize(self, width: int, height: int) -> None:
        """Forward a terminal size change to the remote pty"""
        with self._lock:
            channel = self._channel
        if self._state is not ShellState.STREAMING or channel is None:
            raise ChannelError("Shell channel is not open")
        try:
            channel.resize_pty(width=width, height=height)
        except (OSError, paramiko.SSHException) as e:
            raise StreamError(f"Failed to resize shell: {e}") from e

    def close(self) -> None:
        """Close the channel; further calls are no-ops"""
        with self._lock:
            if self._state is ShellState.CLOSED:
                return
            self._state = ShellState.CLOSED
            channel, self._channel = self._channel, None

        if channel is not None:
            channel.close()
            logger.debug("Shell channel closed")
        self.session.detach_shell(self)
