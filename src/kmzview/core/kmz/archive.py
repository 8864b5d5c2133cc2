"""
In-memory KMZ archive access.

A KmzArchive wraps the raw bytes of one uploaded file and exposes an
immutable mapping from normalized archive path to entry. Payloads are
decompressed on demand.
"""

import asyncio
import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from kmzview.core.errors import ArchiveError, NoRootDocumentError

logger = logging.getLogger(__name__)

KML_EXTENSION = ".kml"
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp"})


def normalize_archive_path(name: str) -> str:
    """Normalize a zip member name: forward slashes, no leading slash."""
    return name.replace("\\", "/").lstrip("/")


@dataclass(frozen=True)
class ArchiveEntry:
    """
    One member of a KMZ archive.

    Attributes:
        path: Normalized archive path
        is_dir: Whether the entry is a directory marker
        size: Uncompressed size in bytes
        compressed_size: Stored size in bytes
    """

    path: str
    is_dir: bool
    size: int
    compressed_size: int

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lower()

    @property
    def is_kml(self) -> bool:
        return not self.is_dir and self.extension == KML_EXTENSION

    @property
    def is_image(self) -> bool:
        return not self.is_dir and self.extension in IMAGE_EXTENSIONS


class KmzArchive(Mapping[str, ArchiveEntry]):
    """
    Read-only view of a KMZ (zip) archive held in memory.

    Entry reads are coroutines. Decompression runs in a worker thread, one
    entry at a time per archive, so concurrent tasks sharing an archive never
    touch the underlying zip file simultaneously.
    """

    MAX_UNCOMPRESSED_SIZE = 500 * 1024 * 1024  # 500 MB

    def __init__(self, data: bytes, name: Optional[str] = None) -> None:
        """
        Open an archive from raw bytes.

        Args:
            data: Complete archive content
            name: Original filename, for logging only

        Raises:
            ArchiveError: If the bytes are not a readable zip archive
        """
        self.name = name
        self._data = data
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data), "r")
        except zipfile.BadZipFile as e:
            raise ArchiveError(
                f"Invalid KMZ file: {e}", details={"archive": name}
            ) from e

        infos: Dict[str, zipfile.ZipInfo] = {}
        entries: Dict[str, ArchiveEntry] = {}
        for info in self._zip.infolist():
            path = normalize_archive_path(info.filename)
            if not path:
                continue
            infos[path] = info
            entries[path] = ArchiveEntry(
                path=path,
                is_dir=info.is_dir(),
                size=info.file_size,
                compressed_size=info.compress_size,
            )

        total_size = sum(entry.size for entry in entries.values())
        if total_size > self.MAX_UNCOMPRESSED_SIZE:
            self._zip.close()
            raise ArchiveError(
                f"Uncompressed size too large: {total_size} bytes "
                f"(max {self.MAX_UNCOMPRESSED_SIZE} bytes)",
                details={"archive": name, "uncompressed_size": total_size},
            )

        self._infos = infos
        self._entries = MappingProxyType(entries)
        self._lock = asyncio.Lock()
        logger.debug(f"Opened archive {name or '<memory>'} with {len(entries)} entries")

    @property
    def data(self) -> bytes:
        """Original archive bytes."""
        return self._data

    def __getitem__(self, path: str) -> ArchiveEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "KmzArchive":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def kml_files(self) -> List[str]:
        """KML document paths in archive order."""
        return [path for path, entry in self._entries.items() if entry.is_kml]

    def image_files(self) -> List[str]:
        """Image paths in archive order."""
        return [path for path, entry in self._entries.items() if entry.is_image]

    def find_root_document(self) -> str:
        """
        Select the root KML document.

        The root is the first non-directory ``.kml`` entry in archive order,
        which is how Google Earth picks it.

        Raises:
            NoRootDocumentError: If the archive contains no KML document
        """
        kml_files = self.kml_files()
        if not kml_files:
            raise NoRootDocumentError()
        if len(kml_files) > 1:
            logger.debug(
                f"{len(kml_files)} KML files in archive, using first: {kml_files[0]}"
            )
        return kml_files[0]

    def list_contents(self) -> Dict[str, Any]:
        """
        Summarize archive contents without decompressing anything.

        Returns:
            Dictionary with kml/image/other file lists and totals
        """
        contents: Dict[str, Any] = {
            "kml_files": [],
            "image_files": [],
            "other_files": [],
            "total_files": 0,
            "total_size": 0,
        }
        for entry in self._entries.values():
            if entry.is_dir:
                continue
            contents["total_files"] += 1
            contents["total_size"] += entry.size
            item = {"name": entry.path, "size": entry.size}
            if entry.is_kml:
                contents["kml_files"].append(item)
            elif entry.is_image:
                contents["image_files"].append(item)
            else:
                contents["other_files"].append(item)
        return contents

    async def load_bytes(self, path: str) -> Optional[bytes]:
        """
        Load an entry's payload.

        Args:
            path: Exact archive path

        Returns:
            Entry bytes, or None if there is no loadable entry at ``path``
        """
        entry = self._entries.get(path)
        if entry is None or entry.is_dir:
            return None

        async with self._lock:
            return await asyncio.to_thread(self._zip.read, self._infos[path])

    async def load_text(self, path: str) -> Optional[str]:
        """Load an entry decoded as UTF-8 text, or None if absent."""
        payload = await self.load_bytes(path)
        if payload is None:
            return None
        return payload.decode("utf-8-sig", errors="replace")


def open_archive(data: bytes, name: Optional[str] = None) -> KmzArchive:
    """
    Convenience function to open a KMZ archive from bytes.

    Args:
        data: Raw archive bytes
        name: Original filename

    Returns:
        KmzArchive
    """
    return KmzArchive(data, name=name)
