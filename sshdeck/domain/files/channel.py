"""
Single-use SFTP operations
"""
from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional

import paramiko

from ...config import TransferConfig
from ...core.cancellation import CancelToken
from ...core.client import TransportSession
from ...core.constants import PARENT_ENTRY, SELF_ENTRY
from ...core.exceptions import (
    ChannelError,
    ConnectionError,
    OperationError,
    RemoteError,
    StreamError,
)
from ...core.interfaces import ByteSink, ByteSource
from ...core.logging import get_logger
from ...core.utils import join_remote_path, last_segment, replace_last_segment
from .models import RemoteFileEntry, TransferResult

logger = get_logger(__name__)


class FileTransferChannel:
    """
    File operations over ephemeral SFTP channels.

    Every public method opens its own SFTP sub-channel, performs exactly one
    action and releases the channel on the way out, error or not. Instances
    hold no channel between calls and may be used from several threads.
    """

    def __init__(
        self,
        session: TransportSession,
        config: Optional[TransferConfig] = None,
        token: Optional[CancelToken] = None,
    ):
        self.session = session
        self.config = config or TransferConfig()
        self.token = token or CancelToken()

    @contextmanager
    def _sftp(self, action: str) -> Iterator[paramiko.SFTPClient]:
        self.token.raise_if_cancelled()
        sftp = self.session.open_sftp(timeout=self.config.operation_timeout)
        try:
            yield sftp
        except RemoteError:
            raise
        except (OSError, EOFError, paramiko.SSHException, paramiko.SFTPError) as e:
            raise self._translate(action, e) from e
        finally:
            self.session.release(sftp)

    def _translate(self, action: str, error: BaseException) -> RemoteError:
        if self.token.cancelled or not self.session.is_connected:
            return ConnectionError(f"Connection closed during {action}")
        if isinstance(error, TimeoutError):
            return ChannelError(f"{action} timed out")
        if isinstance(error, (EOFError, paramiko.SSHException)):
            return ChannelError(f"SFTP channel closed during {action}: {error}")
        if isinstance(error, paramiko.SFTPError):
            return ChannelError(f"SFTP protocol error during {action}: {error}")
        # Server status text is passed through verbatim
        message = getattr(error, "strerror", None) or str(error)
        return OperationError(f"{action} failed: {message}")

    # --------------------
    # Listing
    # --------------------
    def list(self, path: str) -> List[RemoteFileEntry]:
        """
        List a directory.

        Returns:
            Entries in server order, without ``.`` and ``..``
        """
        with self._sftp(f"list {path}") as sftp:
            attrs = sftp.listdir_attr(path)
        return [
            RemoteFileEntry.from_attributes(attr, join_remote_path(path, attr.filename))
            for attr in attrs
            if attr.filename not in (SELF_ENTRY, PARENT_ENTRY)
        ]

    def stat(self, path: str) -> RemoteFileEntry:
        """Describe a single remote path"""
        with self._sftp(f"stat {path}") as sftp:
            attr = sftp.stat(path)
        return RemoteFileEntry.from_attributes(attr, path, name=last_segment(path) or path)

    # --------------------
    # Transfers
    # --------------------
    def upload(
        self,
        source: ByteSource,
        destination_dir: str,
        file_name: Optional[str] = None,
    ) -> TransferResult:
        """
        Stream a local source into ``destination_dir``.

        The remote name is ``file_name``, else the source's display name,
        else the configured placeholder.
        """
        name = file_name or source.display_name or self.config.fallback_upload_name
        remote_path = join_remote_path(destination_dir, name)
        total = 0

        with self._sftp(f"upload {remote_path}") as sftp:
            local = self._open_local(source.open, name)
            with local, sftp.open(remote_path, "wb") as remote:
                remote.set_pipelined(True)
                while True:
                    self.token.raise_if_cancelled()
                    chunk = self._read_local(local, name)
                    if not chunk:
                        break
                    remote.write(chunk)
                    total += len(chunk)

        logger.info("Uploaded %s (%d bytes)", remote_path, total)
        return TransferResult(remote_path=remote_path, bytes_transferred=total)

    def download(
        self,
        remote_path: str,
        sink: ByteSink,
        display_name: Optional[str] = None,
    ) -> TransferResult:
        """Stream a remote file into ``sink`` chunk by chunk"""
        name = display_name or last_segment(remote_path)
        total = 0

        with self._sftp(f"download {remote_path}") as sftp:
            with sftp.open(remote_path, "rb") as remote:
                local = self._open_local(lambda: sink.open(name), name)
                with local:
                    while True:
                        self.token.raise_if_cancelled()
                        chunk = remote.read(self.config.chunk_size)
                        if not chunk:
                            break
                        self._write_local(local, chunk, name)
                        total += len(chunk)

        logger.info("Downloaded %s (%d bytes)", remote_path, total)
        return TransferResult(remote_path=remote_path, bytes_transferred=total)

    @staticmethod
    def _open_local(opener, name: str) -> BinaryIO:
        try:
            return opener()
        except OSError as e:
            raise StreamError(f"Cannot open local stream for {name}: {e}") from e

    def _read_local(self, local: BinaryIO, name: str) -> bytes:
        try:
            return local.read(self.config.chunk_size)
        except OSError as e:
            raise StreamError(f"Failed reading {name}: {e}") from e

    @staticmethod
    def _write_local(local: BinaryIO, chunk: bytes, name: str) -> None:
        try:
            local.write(chunk)
        except OSError as e:
            raise StreamError(f"Failed writing {name}: {e}") from e

    # --------------------
    # Tree changes
    # --------------------
    def create_directory(self, parent_path: str, name: str) -> str:
        """Create ``name`` under ``parent_path``; an existing path is a server error"""
        path = join_remote_path(parent_path, name)
        with self._sftp(f"mkdir {path}") as sftp:
            sftp.mkdir(path)
        logger.info("Created directory %s", path)
        return path

    def delete(self, entry: RemoteFileEntry) -> None:
        """Remove a file, or an empty directory"""
        with self._sftp(f"delete {entry.path}") as sftp:
            if entry.is_directory:
                sftp.rmdir(entry.path)
            else:
                sftp.remove(entry.path)
        logger.info("Deleted %s", entry.path)

    def rename(self, entry: RemoteFileEntry, new_name: str) -> str:
        """Rename within the same parent directory"""
        new_path = replace_last_segment(entry.path, new_name)
        with self._sftp(f"rename {entry.path}") as sftp:
            sftp.rename(entry.path, new_path)
        logger.info("Renamed %s -> %s", entry.path, new_path)
        return new_path

    # --------------------
    # Whole-file content
    # --------------------
    def read_whole_file(self, remote_path: str) -> str:
        """
        Load a remote file into memory and decode it as UTF-8.

        No size limit unless ``max_read_bytes`` is configured. Malformed
        byte sequences are replaced rather than rejected.
        """
        limit = self.config.max_read_bytes
        with self._sftp(f"read {remote_path}") as sftp:
            with sftp.open(remote_path, "rb") as remote:
                if limit is not None:
                    size = remote.stat().st_size or 0
                    if size > limit:
                        raise OperationError(
                            f"read {remote_path} failed: file is {size} bytes, limit is {limit}"
                        )
                data = remote.read()
        return data.decode("utf-8", errors="replace")

    def write_whole_file(self, remote_path: str, content: str) -> int:
        """Overwrite a remote file with ``content`` encoded as UTF-8"""
        data = content.encode("utf-8")
        with self._sftp(f"write {remote_path}") as sftp:
            with sftp.open(remote_path, "wb") as remote:
                remote.set_pipelined(True)
                remote.write(data)
        logger.info("Wrote %s (%d bytes)", remote_path, len(data))
        return len(data)
