"""
Local byte sources and sinks for uploads and downloads
"""
import io
from pathlib import Path
from typing import BinaryIO, Dict, Optional

from ..core.interfaces import ByteSink, ByteSource


class LocalFileSource(ByteSource):
    """Upload source backed by a local file"""

    def __init__(self, path: Path, display_name: Optional[str] = None):
        self.path = Path(path).expanduser()
        self._display_name = display_name

    @property
    def display_name(self) -> Optional[str]:
        return self._display_name or self.path.name or None

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


class LocalDirectorySink(ByteSink):
    """Download sink writing ``<directory>/<display name>``"""

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()
        self.written: Optional[Path] = None

    def open(self, display_name: str) -> BinaryIO:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Only the final component is used so a remote name cannot escape the directory
        target = self.directory / Path(display_name).name
        self.written = target
        return open(target, "wb")


class BytesSource(ByteSource):
    """In-memory upload source"""

    def __init__(self, data: bytes, display_name: Optional[str] = None):
        self.data = data
        self._display_name = display_name

    @property
    def display_name(self) -> Optional[str]:
        return self._display_name

    def open(self) -> BinaryIO:
        return io.BytesIO(self.data)


class _CapturingBuffer(io.BytesIO):
    def __init__(self, sink: "BytesSink", name: str):
        super().__init__()
        self._sink = sink
        self._name = name

    def close(self) -> None:
        if not self.closed:
            self._sink.files[self._name] = self.getvalue()
        super().close()


class BytesSink(ByteSink):
    """In-memory download sink; completed downloads land in ``files``"""

    def __init__(self):
        self.files: Dict[str, bytes] = {}

    def open(self, display_name: str) -> BinaryIO:
        return _CapturingBuffer(self, display_name)
