"""
Streaming ZIP writer for export artifacts.

ArchiveBuilder is an async context manager: the destination file is opened
on enter and closed on every exit. If the block raises, the partial file is
deleted before the exception propagates, so a failed export never leaves an
archive behind.

Usage:
    async with ArchiveBuilder(path) as archive:
        await archive.add_json("data.json", {"rows": []})
        await archive.finalize()
"""

import asyncio
import json
import logging
import zipfile
from pathlib import Path
from typing import IO, Any, List, Optional

import aiofiles.os

from ..exceptions import ArchiveError, InvalidRequestError
from ..utils.logging import log_event, log_operation_error


async def remove_export_file(path: Path) -> bool:
    """
    Best-effort, idempotent delete of an export file.

    A missing file is not an error. Other OS errors are logged and reported
    through the return value so they never mask the error that triggered
    the cleanup.

    Returns:
        True if a file was removed
    """
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        log_operation_error("export_file_remove", e, filename=Path(path).name)
        return False

    log_event("export_file_removed", {"filename": Path(path).name})
    return True


class ArchiveBuilder:
    """
    Writes named JSON entries into one deflate-compressed ZIP file.

    Args:
        destination: Path of the archive to create (overwritten if present)
        compression_level: zlib level, 0-9
    """

    def __init__(self, destination: Path, compression_level: int = 9):
        self.destination = Path(destination)
        self.compression_level = compression_level
        self.entry_names: List[str] = []
        self._handle: Optional[IO[bytes]] = None
        self._zip: Optional[zipfile.ZipFile] = None
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    async def __aenter__(self) -> "ArchiveBuilder":
        opening = asyncio.ensure_future(asyncio.to_thread(self._open))
        try:
            await asyncio.shield(opening)
        except OSError as e:
            await remove_export_file(self.destination)
            raise ArchiveError(
                f"Cannot create archive {self.destination.name}: {e}",
                context={"filename": self.destination.name},
            ) from e
        except BaseException:
            # Cancellation does not stop the worker thread; close what it opened
            await asyncio.wait([opening])
            await self._abort()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None and not self._finalized:
            try:
                await self.finalize()
            except BaseException:
                await self._abort()
                raise
            return False

        if exc_type is not None:
            await self._abort()
            log_event(
                "archive_cleanup",
                {
                    "filename": self.destination.name,
                    "error_type": exc_type.__name__,
                },
                level=logging.WARNING,
            )

        return False

    async def add_json(self, name: str, payload: Any) -> None:
        """
        Serialize ``payload`` and add it as entry ``name``.

        Raises:
            InvalidRequestError: Duplicate name, or the archive is not open
            ArchiveError: The payload cannot be serialized or written
        """
        if self._zip is None or self._finalized:
            raise InvalidRequestError(
                "Archive is not open for writing",
                context={"filename": self.destination.name, "entry": name},
            )
        if name in self.entry_names:
            raise InvalidRequestError(
                f"Archive entry '{name}' already exists",
                context={"filename": self.destination.name, "entry": name},
            )

        try:
            data = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise ArchiveError(
                f"Entry '{name}' is not JSON serializable: {e}",
                context={"entry": name},
            ) from e

        try:
            await asyncio.to_thread(self._zip.writestr, name, data)
        except (OSError, zipfile.LargeZipFile) as e:
            raise ArchiveError(
                f"Failed to write entry '{name}': {e}",
                context={"filename": self.destination.name, "entry": name},
            ) from e

        self.entry_names.append(name)

    async def finalize(self) -> None:
        """
        Write the central directory and close the file.

        Calling it again after success is a no-op.

        Raises:
            ArchiveError: The archive could not be completed
        """
        if self._finalized:
            return
        if self._zip is None:
            raise InvalidRequestError(
                "Archive is not open", context={"filename": self.destination.name}
            )

        try:
            await asyncio.to_thread(self._close)
        except OSError as e:
            raise ArchiveError(
                f"Failed to finalize archive {self.destination.name}: {e}",
                context={"filename": self.destination.name},
            ) from e

        self._finalized = True
        log_event(
            "archive_finalized",
            {"filename": self.destination.name, "entries": len(self.entry_names)},
        )

    def _open(self) -> None:
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.destination, "wb")
        try:
            self._zip = zipfile.ZipFile(
                handle,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
            )
        except BaseException:
            handle.close()
            raise
        self._handle = handle

    def _close(self) -> None:
        try:
            self._zip.close()
        finally:
            self._zip = None
            self._handle.close()
            self._handle = None

    async def _abort(self) -> None:
        # Close whatever was written, then remove the file
        zf, self._zip = self._zip, None
        handle, self._handle = self._handle, None
        try:
            if zf is not None:
                await asyncio.to_thread(zf.close)
        except (OSError, ValueError) as e:
            log_operation_error("archive_close", e, filename=self.destination.name)
        finally:
            if handle is not None:
                handle.close()
        await remove_export_file(self.destination)
