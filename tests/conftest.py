from __future__ import annotations

import errno
import io
import queue
import socket
import stat
import threading
from typing import Dict, List, Optional, Set

import paramiko
import pytest

from sshdeck.config import SessionConfig, ShellConfig, TransferConfig
from sshdeck.core.client import Credentials, TransportSession
from sshdeck.core.interfaces import ConnectionFactory
from sshdeck.domain.session.facade import SessionFacade

PASSWORD = "s3cret"
MTIME = 1_700_000_000


# ============================================================
# Remote filesystem
# ============================================================

class FakeRemoteFS:
    """In-memory tree shared by every SFTP channel of one fake server"""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.dirs: Set[str] = {"/", "/home", "/home/u"}
        self.opened = 0
        self.closed = 0
        self.lock = threading.Lock()
        # When set, reads block until released or the channel closes
        self.read_gate: Optional[threading.Event] = None
        self.read_started = threading.Event()

    @staticmethod
    def norm(path: str) -> str:
        if path in ("", "."):
            return "/home/u"
        if not path.startswith("/"):
            path = "/home/u/" + path
        return path.rstrip("/") or "/"

    def parent(self, path: str) -> str:
        return path.rpartition("/")[0] or "/"

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.dirs

    def children(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        names = [
            p[len(prefix):]
            for p in list(self.files) + list(self.dirs)
            if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
        ]
        return names


def make_attr(name: str, size: int, is_dir: bool) -> paramiko.SFTPAttributes:
    attr = paramiko.SFTPAttributes()
    attr.filename = name
    attr.st_size = size
    attr.st_mode = (stat.S_IFDIR | 0o755) if is_dir else (stat.S_IFREG | 0o644)
    attr.st_mtime = MTIME
    kind = "d" if is_dir else "-"
    attr.longname = f"{kind}rw-r--r--    1 u        u        {size:>8} Nov 14 22:13 {name}"
    return attr


class FakeRemoteFile:
    def __init__(self, sftp: "FakeSFTPClient", path: str, mode: str) -> None:
        self.sftp = sftp
        self.path = path
        self.mode = mode
        self.pipelined = False
        if "r" in mode:
            self._buffer = io.BytesIO(sftp.fs.files[path])
        else:
            self._buffer = io.BytesIO()

    def set_pipelined(self, pipelined: bool = True) -> None:
        self.pipelined = pipelined

    def stat(self) -> paramiko.SFTPAttributes:
        return self.sftp.stat(self.path)

    def read(self, size: Optional[int] = None) -> bytes:
        fs = self.sftp.fs
        if fs.read_gate is not None:
            fs.read_started.set()
            while not fs.read_gate.wait(0.01):
                if self.sftp.closed:
                    raise EOFError("Channel closed")
        if self.sftp.closed:
            raise OSError("Socket is closed")
        return self._buffer.read() if size is None else self._buffer.read(size)

    def write(self, data: bytes) -> None:
        if self.sftp.closed:
            raise OSError("Socket is closed")
        self._buffer.write(data)

    def close(self) -> None:
        if "w" in self.mode:
            self.sftp.fs.files[self.path] = self._buffer.getvalue()

    def __enter__(self) -> "FakeRemoteFile":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class _ChannelStub:
    def __init__(self) -> None:
        self.timeout: Optional[float] = None

    def settimeout(self, timeout: float) -> None:
        self.timeout = timeout


class FakeSFTPClient:
    def __init__(self, fs: FakeRemoteFS) -> None:
        self.fs = fs
        self.closed = False
        self.channel = _ChannelStub()
        with fs.lock:
            fs.opened += 1

    def get_channel(self) -> _ChannelStub:
        return self.channel

    def _missing(self, path: str) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, "No such file", path)

    def listdir_attr(self, path: str) -> List[paramiko.SFTPAttributes]:
        target = self.fs.norm(path)
        if target not in self.fs.dirs:
            raise self._missing(path)
        attrs = [make_attr(".", 4096, True), make_attr("..", 4096, True)]
        for name in self.fs.children(target):
            child = f"{target.rstrip('/')}/{name}"
            if child in self.fs.dirs:
                attrs.append(make_attr(name, 4096, True))
            else:
                attrs.append(make_attr(name, len(self.fs.files[child]), False))
        return attrs

    def stat(self, path: str) -> paramiko.SFTPAttributes:
        target = self.fs.norm(path)
        if target in self.fs.dirs:
            attr = make_attr("", 4096, True)
        elif target in self.fs.files:
            attr = make_attr("", len(self.fs.files[target]), False)
        else:
            raise self._missing(path)
        # stat results carry no name or long name
        del attr.filename
        del attr.longname
        return attr

    def open(self, path: str, mode: str = "r") -> FakeRemoteFile:
        target = self.fs.norm(path)
        if "r" in mode and target not in self.fs.files:
            raise self._missing(path)
        if "w" in mode and self.fs.parent(target) not in self.fs.dirs:
            raise self._missing(path)
        return FakeRemoteFile(self, target, mode)

    def mkdir(self, path: str) -> None:
        target = self.fs.norm(path)
        if self.fs.exists(target):
            raise OSError("Failure")
        self.fs.dirs.add(target)

    def rmdir(self, path: str) -> None:
        target = self.fs.norm(path)
        if target not in self.fs.dirs:
            raise self._missing(path)
        if self.fs.children(target):
            raise OSError("Failure")
        self.fs.dirs.discard(target)

    def remove(self, path: str) -> None:
        target = self.fs.norm(path)
        if target not in self.fs.files:
            raise self._missing(path)
        del self.fs.files[target]

    def rename(self, old: str, new: str) -> None:
        source, dest = self.fs.norm(old), self.fs.norm(new)
        if not self.fs.exists(source):
            raise self._missing(old)
        if self.fs.exists(dest):
            raise OSError("Failure")
        if source in self.fs.files:
            self.fs.files[dest] = self.fs.files.pop(source)
        else:
            self.fs.dirs.discard(source)
            self.fs.dirs.add(dest)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        with self.fs.lock:
            self.fs.closed += 1


# ============================================================
# Shell channel
# ============================================================

class FakeShellChannel:
    """pty shell that answers ``echo`` commands"""

    def __init__(self, events: List[str]) -> None:
        self.events = events
        self.output: "queue.Queue[bytes]" = queue.Queue()
        self.sent: List[bytes] = []
        self.closed = False
        self.timeout: Optional[float] = None
        self.pty = None
        self.shell_started = False
        self.read_error: Optional[BaseException] = None

    def get_pty(self, term: str = "vt100", width: int = 80, height: int = 24) -> None:
        self.pty = (term, width, height)

    def invoke_shell(self) -> None:
        self.shell_started = True
        self.output.put(b"$ ")

    def settimeout(self, timeout: float) -> None:
        self.timeout = timeout

    def resize_pty(self, width: int = 80, height: int = 24) -> None:
        self.pty = (self.pty[0], width, height)

    def recv(self, nbytes: int) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        if self.closed and self.output.empty():
            return b""
        try:
            return self.output.get(timeout=self.timeout)
        except queue.Empty:
            raise socket.timeout()

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError("Socket is closed")
        self.sent.append(data)
        line = data.decode("utf-8").rstrip("\n")
        if line.startswith("echo "):
            self.output.put(line[5:].encode("utf-8") + b"\r\n$ ")
        elif line == "exit":
            self.output.put(b"logout\r\n")
            self.output.put(b"")

    def feed(self, data: bytes) -> None:
        self.output.put(data)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.events.append("shell_closed")
        self.output.put(b"")


# ============================================================
# Transport and client
# ============================================================

class FakeTransport:
    def __init__(self, events: List[str]) -> None:
        self.events = events
        self.active = True
        self.shells: List[FakeShellChannel] = []
        self.fail_open: Optional[BaseException] = None

    def is_active(self) -> bool:
        return self.active

    def open_session(self, timeout: Optional[float] = None) -> FakeShellChannel:
        if self.fail_open is not None:
            raise self.fail_open
        channel = FakeShellChannel(self.events)
        self.shells.append(channel)
        return channel


class FakeSSHClient:
    def __init__(self, fs: FakeRemoteFS, events: List[str]) -> None:
        self.fs = fs
        self.events = events
        self.transport = FakeTransport(events)
        self.sftp_clients: List[FakeSFTPClient] = []
        self.closed = False

    def get_transport(self) -> Optional[FakeTransport]:
        return None if self.closed else self.transport

    def open_sftp(self) -> FakeSFTPClient:
        if not self.transport.active:
            raise paramiko.SSHException("SSH session not active")
        client = FakeSFTPClient(self.fs)
        self.sftp_clients.append(client)
        return client

    def close(self) -> None:
        self.closed = True
        self.transport.active = False
        self.events.append("client_closed")


class FakeConnectionFactory(ConnectionFactory):
    def __init__(self, password: str = PASSWORD) -> None:
        self.password = password
        self.fs = FakeRemoteFS()
        self.events: List[str] = []
        self.clients: List[FakeSSHClient] = []
        self.error: Optional[BaseException] = None
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()

    @property
    def client(self) -> FakeSSHClient:
        return self.clients[-1]

    def create(self, credentials: Credentials, timeout: float) -> FakeSSHClient:
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        if credentials.password != self.password:
            raise paramiko.AuthenticationException("Authentication failed.")
        client = FakeSSHClient(self.fs, self.events)
        self.clients.append(client)
        return client


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def credentials() -> Credentials:
    return Credentials(host="example.test", username="u", password=PASSWORD)


@pytest.fixture
def factory() -> FakeConnectionFactory:
    return FakeConnectionFactory()


@pytest.fixture
def remote_fs(factory: FakeConnectionFactory) -> FakeRemoteFS:
    return factory.fs


@pytest.fixture
def session(factory: FakeConnectionFactory, credentials: Credentials):
    session = TransportSession(factory)
    session.connect(credentials, timeout=1)
    yield session
    session.disconnect()


@pytest.fixture
def fast_config() -> SessionConfig:
    return SessionConfig(
        shell=ShellConfig(poll_interval=0.05),
        transfer=TransferConfig(chunk_size=4),
        max_workers=2,
    )


@pytest.fixture
def facade(factory: FakeConnectionFactory, fast_config: SessionConfig):
    facade = SessionFacade(fast_config, factory=factory)
    yield facade
    facade.shutdown()


@pytest.fixture
def connected_facade(facade: SessionFacade, credentials: Credentials) -> SessionFacade:
    result = facade.connect(credentials).result(timeout=5)
    assert result.success, result.message
    return facade
