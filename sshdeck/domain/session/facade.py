"""
Session facade: the single entry point for connect, shell and file operations
"""
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, TypeVar, Union

from ...config import SessionConfig
from ...core.cancellation import CancelToken
from ...core.client import Credentials, ParamikoConnectionFactory, TransportSession
from ...core.constants import WORKER_THREAD_PREFIX
from ...core.exceptions import (
    ChannelError,
    NotConnectedError,
    OperationError,
    RemoteError,
    StreamError,
)
from ...core.interfaces import ByteSink, ByteSource, ConnectionFactory
from ...core.logging import get_logger
from ..files.channel import FileTransferChannel
from ..files.models import RemoteFileEntry, TransferResult
from ..shell.channel import ShellChannel
from ..shell.models import ShellState
from .models import OperationResult

logger = get_logger(__name__)

T = TypeVar("T")


class SessionFacade:
    """
    Owns at most one transport session and serializes its lifecycle.

    - ``connect`` always tears down the previous session (shell included)
    - File operations run on a bounded worker pool, each on its own SFTP channel
    - Every asynchronous call resolves to an ``OperationResult``
    - ``disconnect`` cancels queued work and fails in-flight work with a
      connection-closed error
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.config = config or SessionConfig()
        self._factory = factory or ParamikoConnectionFactory(
            host_key_policy=self.config.host_key_policy,
            known_hosts=self.config.known_hosts,
        )
        self._lock = threading.RLock()
        self._session: Optional[TransportSession] = None
        self._shell: Optional[ShellChannel] = None
        self._token = CancelToken()
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=WORKER_THREAD_PREFIX,
        )

    # --------------------
    # State
    # --------------------
    @property
    def session(self) -> Optional[TransportSession]:
        with self._lock:
            return self._session

    @property
    def is_connected(self) -> bool:
        session = self.session
        return session is not None and session.is_connected

    @property
    def shell_state(self) -> Optional[ShellState]:
        with self._lock:
            return self._shell.state if self._shell else None

    # --------------------
    # Connection management
    # --------------------
    def connect(
        self,
        credentials: Credentials,
        timeout: Optional[float] = None,
    ) -> Future[OperationResult[str]]:
        """
        Replace any current session with a new connection.

        Returns:
            Future resolving to the connected ``user@host:port`` or the failure
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("SessionFacade has been shut down")
            self._teardown_locked()
            session = TransportSession(self._factory)
            self._session = session
            token = self._token

        return self._executor.submit(
            self._connect,
            session,
            credentials,
            timeout or self.config.connect_timeout,
            token,
        )

    def _connect(
        self,
        session: TransportSession,
        credentials: Credentials,
        timeout: float,
        token: CancelToken,
    ) -> OperationResult[str]:
        try:
            token.raise_if_cancelled()
            session.connect(credentials, timeout=timeout)
        except RemoteError as e:
            logger.warning("Connect to %s failed: %s", credentials.display, e)
            return OperationResult.failure(e)
        return OperationResult.ok(credentials.display, message="Connection successful")

    def disconnect(self) -> None:
        """Close the shell, cancel outstanding work and drop the session. Idempotent."""
        with self._lock:
            self._teardown_locked()

    def _teardown_locked(self) -> None:
        self._token.cancel()
        self._token = CancelToken()
        shell, self._shell = self._shell, None
        session, self._session = self._session, None
        if shell is not None:
            shell.close()
        if session is not None:
            session.disconnect()

    def _require_session(self) -> TransportSession:
        """Return the connected session (lock must be held)"""
        if self._session is None or not self._session.is_connected:
            raise NotConnectedError("Not connected")
        return self._session

    # --------------------
    # Shell
    # --------------------
    def open_shell(self) -> Iterator[str]:
        """
        Open the interactive shell and return its output stream.

        The caller consumes the iterator on its own thread; each ``next``
        blocks until output arrives or the stream ends.

        Raises:
            NotConnectedError: If no session is connected
            ChannelError: If a shell is already open or negotiation fails
        """
        with self._lock:
            session = self._require_session()
            if self._shell is not None and self._shell.state is not ShellState.CLOSED:
                raise ChannelError("Shell channel is already open")
            shell = ShellChannel(session, self.config.shell)
            self._shell = shell
        return shell.open()

    def start_shell(
        self,
        on_output: Callable[[str], None],
        on_error: Optional[Callable[[RemoteError], None]] = None,
    ) -> Future[OperationResult[None]]:
        """
        Stream shell output to ``on_output`` from a dedicated reader thread.

        The shell is negotiated before this returns, so ``send_line`` may be
        called right away. Open and stream errors go to ``on_error``; without
        one they are appended to the output as ``"\\nError: <message>"``.

        Returns:
            Future resolving when the stream ends
        """
        future: Future[OperationResult[None]] = Future()

        def fail(error: RemoteError) -> None:
            logger.warning("Shell stream ended with error: %s", error)
            try:
                if on_error is not None:
                    on_error(error)
                else:
                    on_output(f"\nError: {error}")
            finally:
                future.set_result(OperationResult.failure(error))

        try:
            stream = self.open_shell()
        except RemoteError as e:
            fail(e)
            return future

        def pump() -> None:
            try:
                for chunk in stream:
                    on_output(chunk)
            except RemoteError as e:
                fail(e)
            except Exception as e:
                logger.exception("Shell stream failed")
                error = StreamError(f"Shell stream failed: {e}")
                error.__cause__ = e
                fail(error)
            else:
                future.set_result(OperationResult.ok(message="Shell closed"))

        session = self.session
        host = session.credentials.host if session and session.credentials else "unknown"
        thread = threading.Thread(target=pump, daemon=True, name=f"sshdeck-shell-{host}")
        thread.start()
        return future

    def send_line(self, text: str) -> OperationResult[None]:
        """Send one command line to the open shell"""
        with self._lock:
            session, shell = self._session, self._shell
        if session is None:
            return OperationResult.failure(NotConnectedError("Not connected"))
        if shell is None:
            return OperationResult.failure(ChannelError("Shell channel is not open"))
        try:
            shell.send(text)
        except RemoteError as e:
            logger.warning("Shell send failed: %s", e)
            return OperationResult.failure(e)
        return OperationResult.ok()

    def resize_shell(self, width: int, height: int) -> OperationResult[None]:
        with self._lock:
            shell = self._shell
        if shell is None:
            return OperationResult.failure(ChannelError("Shell channel is not open"))
        try:
            shell.resize(width, height)
        except RemoteError as e:
            return OperationResult.failure(e)
        return OperationResult.ok()

    def close_shell(self) -> None:
        with self._lock:
            shell, self._shell = self._shell, None
        if shell is not None:
            shell.close()

    # --------------------
    # File operations
    # --------------------
    def list_directory(self, path: str) -> Future[OperationResult[List[RemoteFileEntry]]]:
        return self._submit(f"list {path}", lambda channel: channel.list(path))

    def stat(self, path: str) -> Future[OperationResult[RemoteFileEntry]]:
        return self._submit(f"stat {path}", lambda channel: channel.stat(path))

    def upload(
        self,
        source: ByteSource,
        destination_dir: str,
        file_name: Optional[str] = None,
    ) -> Future[OperationResult[TransferResult]]:
        return self._submit(
            f"upload to {destination_dir}",
            lambda channel: channel.upload(source, destination_dir, file_name),
            lambda result: f"Uploaded {result.remote_path}",
        )

    def download(
        self,
        remote_path: str,
        sink: ByteSink,
        display_name: Optional[str] = None,
    ) -> Future[OperationResult[TransferResult]]:
        return self._submit(
            f"download {remote_path}",
            lambda channel: channel.download(remote_path, sink, display_name),
            lambda result: f"File '{display_name or result.remote_path}' downloaded",
        )

    def make_directory(self, parent_path: str, name: str) -> Future[OperationResult[str]]:
        return self._submit(
            f"mkdir {name}",
            lambda channel: channel.create_directory(parent_path, name),
            lambda path: f"Directory '{path}' created",
        )

    def delete(self, entry: RemoteFileEntry) -> Future[OperationResult[None]]:
        return self._submit(
            f"delete {entry.path}",
            lambda channel: channel.delete(entry),
            f"'{entry.name}' deleted",
        )

    def rename(self, entry: RemoteFileEntry, new_name: str) -> Future[OperationResult[str]]:
        return self._submit(
            f"rename {entry.path}",
            lambda channel: channel.rename(entry, new_name),
            lambda path: f"Renamed to '{path}'",
        )

    def read_file(self, remote_path: str) -> Future[OperationResult[str]]:
        return self._submit(f"read {remote_path}", lambda channel: channel.read_whole_file(remote_path))

    def write_file(self, remote_path: str, text: str) -> Future[OperationResult[int]]:
        return self._submit(
            f"write {remote_path}",
            lambda channel: channel.write_whole_file(remote_path, text),
            "File saved",
        )

    def _submit(
        self,
        action: str,
        operation: Callable[[FileTransferChannel], T],
        message: Union[str, Callable[[T], str], None] = None,
    ) -> Future[OperationResult[T]]:
        with self._lock:
            session, token, closed = self._session, self._token, self._closed

        if closed or session is None or not session.is_connected:
            future: Future[OperationResult[T]] = Future()
            future.set_result(OperationResult.failure(NotConnectedError(f"Not connected: cannot {action}")))
            return future

        return self._executor.submit(self._run, action, session, token, operation, message)

    def _run(
        self,
        action: str,
        session: TransportSession,
        token: CancelToken,
        operation: Callable[[FileTransferChannel], T],
        message: Union[str, Callable[[T], str], None],
    ) -> OperationResult[T]:
        channel = FileTransferChannel(session, self.config.transfer, token)
        try:
            value = operation(channel)
        except RemoteError as e:
            logger.warning("%s failed: %s", action, e)
            return OperationResult.failure(e)
        except Exception as e:
            logger.exception("%s failed unexpectedly", action)
            error = OperationError(f"{action} failed: {e}")
            error.__cause__ = e
            return OperationResult.failure(error)

        logger.debug("%s succeeded", action)
        text = message(value) if callable(message) else (message or "")
        return OperationResult.ok(value, message=text)

    # --------------------
    # Shutdown
    # --------------------
    def shutdown(self) -> None:
        """Disconnect and stop the worker pool"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._teardown_locked()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> SessionFacade:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown()
