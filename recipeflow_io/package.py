"""Read-only access to the ZIP container of an .xlsx workbook."""

# Module responsibilities:
# - Open workbook bytes or files as a ZIP package and expose named entries.
# - Translate zipfile failures into the package error taxonomy.

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path
from typing import List, Union

from .errors import EntryNotFoundError, PackageError
from .utils.log import get_logger

logger = get_logger("package")

PACKAGE_ROOT = "xl/"
MEDIA_PREFIX = "xl/media/"


class PackageReader:
    """Named-entry view over a workbook package.

    Entry names are package-internal POSIX paths such as ``xl/workbook.xml``.
    """

    def __init__(self, archive: zipfile.ZipFile, *, source: str = "<bytes>") -> None:
        self._archive = archive
        self._names = set(archive.namelist())
        self.source = source

    @classmethod
    def from_bytes(cls, data: bytes, *, source: str = "<bytes>") -> "PackageReader":
        """Open a package from raw bytes.

        Raises:
            PackageError: When ``data`` is not a readable ZIP archive.
        """

        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, ValueError) as exc:
            raise PackageError(f"Not a valid workbook package: {source} ({exc})") from exc
        logger.debug("Opened package %s with %d entries", source, len(archive.namelist()))
        return cls(archive, source=source)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "PackageReader":
        """Open a package from a file on disk."""

        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(f"Source workbook not found: {target}")
        return cls.from_bytes(target.read_bytes(), source=str(target))

    def has_entry(self, path: str) -> bool:
        return path in self._names

    def read_binary(self, path: str) -> bytes:
        if path not in self._names:
            raise EntryNotFoundError(path)
        try:
            return self._archive.read(path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError) as exc:
            # corrupt members surface as CRC, inflate or truncation errors
            raise PackageError(f"Failed to read {path} from {self.source}: {exc}") from exc

    def read_text(self, path: str) -> str:
        data = self.read_binary(path)
        # utf-8-sig drops a leading BOM some producers write into XML parts
        return data.decode("utf-8-sig")

    def entries(self, prefix: str = "") -> List[str]:
        """Return entry names (files only) starting with ``prefix`` in archive order."""

        return [
            name
            for name in self._archive.namelist()
            if name.startswith(prefix) and not name.endswith("/")
        ]

    def media_paths(self) -> List[str]:
        """Return every binary entry stored under ``xl/media/``."""

        return self.entries(MEDIA_PREFIX)

    def close(self) -> None:
        self._archive.close()

    def __enter__(self) -> "PackageReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
