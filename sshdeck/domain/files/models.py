"""
Remote file domain models
"""
import stat
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

import paramiko


@dataclass(frozen=True)
class RemoteFileEntry:
    """Snapshot of one remote file or directory"""
    name: str
    path: str
    is_directory: bool
    size: int
    # Raw server-side rendering, no timezone or locale normalization
    modified_time: str

    @classmethod
    def from_attributes(
        cls,
        attr: paramiko.SFTPAttributes,
        path: str,
        name: Optional[str] = None,
    ) -> "RemoteFileEntry":
        """
        Build an entry from SFTP attributes.

        The time string comes from the server's ``ls -l`` style long name
        when present (columns 6-8); otherwise mtime is rendered the same way.
        """
        return cls(
            name=name or attr.filename,
            path=path,
            is_directory=stat.S_ISDIR(attr.st_mode or 0),
            size=attr.st_size or 0,
            modified_time=_raw_mtime(attr),
        )


def _raw_mtime(attr: paramiko.SFTPAttributes) -> str:
    longname = getattr(attr, "longname", None)
    if longname:
        fields = longname.split(None, 8)
        if len(fields) == 9:
            return " ".join(fields[5:8])
    if attr.st_mtime is None:
        return ""
    mtime = time.localtime(attr.st_mtime)
    # ls switches to the year column for anything older than ~6 months
    if abs(time.time() - attr.st_mtime) > 180 * 24 * 3600:
        return time.strftime("%b %d  %Y", mtime)
    return time.strftime("%b %d %H:%M", mtime)


def sort_entries(entries: Iterable[RemoteFileEntry]) -> List[RemoteFileEntry]:
    """Directories first, then by name"""
    return sorted(entries, key=lambda entry: (not entry.is_directory, entry.name))


@dataclass(frozen=True)
class TransferResult:
    """Outcome of an upload or download"""
    remote_path: str
    bytes_transferred: int
