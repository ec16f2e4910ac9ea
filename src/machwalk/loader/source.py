"""Random-access byte sources the loader reads from."""

import logging
import os
from pathlib import Path
from typing import BinaryIO

from machwalk.errors import InputUnavailable, TruncatedInput

logger = logging.getLogger(__name__)


class ByteSource:
    """Read-only, offset-addressable bytes.

    Subclasses implement ``_read_at``; ``read`` enforces that the full
    requested span exists.
    """

    def __len__(self) -> int:
        raise NotImplementedError

    def _read_at(self, offset: int, size: int) -> bytes:
        raise NotImplementedError

    def read(self, offset: int, size: int) -> bytes:
        """Read exactly ``size`` bytes at absolute ``offset``."""
        if offset < 0 or size < 0:
            raise InputUnavailable(f"Invalid read of {size} bytes", offset)
        if offset + size > len(self):
            raise TruncatedInput(
                f"Need {size} bytes but only {max(len(self) - offset, 0)} available",
                offset,
            )
        data = self._read_at(offset, size)
        if len(data) != size:
            raise TruncatedInput(f"Short read: got {len(data)} of {size} bytes", offset)
        return data


class BytesSource(ByteSource):
    """Byte source over an in-memory buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def __len__(self) -> int:
        return len(self._data)

    def _read_at(self, offset: int, size: int) -> bytes:
        return self._data[offset : offset + size]


class FileSource(ByteSource):
    """Byte source over an open binary file, seeking for every read."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: BinaryIO | None = None
        self._size = 0

    def open(self) -> "FileSource":
        try:
            self._file = open(self.path, "rb")
            self._size = os.fstat(self._file.fileno()).st_size
        except OSError as e:
            raise InputUnavailable(f"Cannot open {self.path}: {e.strerror or e}") from e
        logger.debug("Opened %s (%d bytes)", self.path, self._size)
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __len__(self) -> int:
        return self._size

    def _read_at(self, offset: int, size: int) -> bytes:
        if self._file is None:
            raise InputUnavailable(f"{self.path} is not open", offset)
        try:
            self._file.seek(offset)
            return self._file.read(size)
        except OSError as e:
            raise InputUnavailable(f"I/O error reading {self.path}: {e}", offset) from e

    def __enter__(self) -> "FileSource":
        return self.open()

    def __exit__(self, *args) -> None:
        self.close()
