"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import Credentials


class ConnectionFactory(ABC):
    """SSH connection factory interface"""

    @abstractmethod
    def create(self, credentials: "Credentials", timeout: float) -> Any:
        """
        Create and connect an SSH client.

        The returned object must behave like ``paramiko.SSHClient``:
        ``get_transport()``, ``open_sftp()`` and ``close()``.
        """
        pass


class ByteSource(ABC):
    """Readable local content offered for upload"""

    @property
    @abstractmethod
    def display_name(self) -> Optional[str]:
        """Name chosen by the user for this content, if known"""
        pass

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open a readable binary stream; the caller closes it"""
        pass


class ByteSink(ABC):
    """Writable local destination for a download"""

    @abstractmethod
    def open(self, display_name: str) -> BinaryIO:
        """Open a writable binary stream for ``display_name``; the caller closes it"""
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        pass
