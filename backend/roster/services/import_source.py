"""Input resources for bulk import.

An ImportSource hands out its bytes as an async chunk stream and is released
exactly once, however the import ends.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path

import anyio
from fastapi import UploadFile

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class ImportSourceError(Exception):
    pass


class ImportSource(ABC):
    name = "input"

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, max_bytes: int | None = None) -> None:
        self.chunk_size = chunk_size
        self.max_bytes = max_bytes
        self.bytes_read = 0
        self.released = False
        self.release_count = 0

    async def chunks(self) -> AsyncIterator[bytes]:
        if self.released:
            raise ImportSourceError(f"{self.name} was already released")

        async for chunk in self._read():
            if self.released:
                raise ImportSourceError(f"{self.name} was released while being read")
            self.bytes_read += len(chunk)
            if self.max_bytes is not None and self.bytes_read > self.max_bytes:
                raise ImportSourceError(f"File too large: more than {self.max_bytes} bytes")
            yield chunk

    async def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.release_count += 1
        try:
            with anyio.CancelScope(shield=True):
                await self._close()
        except OSError:
            logger.exception("Failed to release %s", self.name)

    @abstractmethod
    def _read(self) -> AsyncIterator[bytes]:
        """Yield the raw bytes, at most chunk_size at a time."""

    async def _close(self) -> None:
        pass

    async def __aenter__(self) -> ImportSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()


class UploadImportSource(ImportSource):
    """A multipart upload; releasing it closes (and so deletes) its spooled temp file."""

    def __init__(
        self,
        upload: UploadFile,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_bytes: int | None = None,
    ) -> None:
        super().__init__(chunk_size=chunk_size, max_bytes=max_bytes)
        self.upload = upload
        self.name = upload.filename or "upload"

    async def _read(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.upload.read(self.chunk_size)
            if not chunk:
                break
            yield chunk

    async def _close(self) -> None:
        await self.upload.close()


class FileImportSource(ImportSource):
    """A file on disk, optionally removed on release."""

    def __init__(
        self,
        path: str | Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_bytes: int | None = None,
        remove: bool = False,
    ) -> None:
        super().__init__(chunk_size=chunk_size, max_bytes=max_bytes)
        self.path = Path(path)
        self.remove = remove
        self.name = str(self.path)

    async def _read(self) -> AsyncIterator[bytes]:
        async with await anyio.open_file(self.path, "rb") as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

    async def _close(self) -> None:
        if self.remove:
            await anyio.Path(self.path).unlink(missing_ok=True)
