"""
File transfer domain module
"""
from .models import RemoteFileEntry, TransferResult, sort_entries
from .channel import FileTransferChannel

__all__ = [
    "RemoteFileEntry",
    "TransferResult",
    "sort_entries",
    "FileTransferChannel",
]
