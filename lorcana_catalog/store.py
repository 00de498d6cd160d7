"""Record store: whole-document JSON persistence, one file per document type."""

from __future__ import annotations

import enum
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from lorcana_catalog.errors import StorageError
from lorcana_catalog.ids import Clock, utc_now_iso

logger = logging.getLogger(__name__)

METADATA_VERSION = "1.0.0"


class DocumentType(enum.Enum):
    """The five documents that make up a data directory."""

    CARDS = "cards"
    SETS = "sets"
    PRICES = "prices"
    COLLECTIONS = "collections"
    METADATA = "metadata"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"

    @property
    def container(self) -> type:
        """JSON container type the document must hold."""
        if self in (DocumentType.PRICES, DocumentType.METADATA):
            return dict
        return list

    def empty(self, now: Clock = utc_now_iso) -> Any:
        """Default content written when the document does not exist yet."""
        if self is DocumentType.METADATA:
            return {"last_update": now(), "version": METADATA_VERSION}
        return self.container()


@runtime_checkable
class RecordStore(Protocol):
    """Read/replace access to whole documents.

    Implementations give no isolation between read_all and replace_all:
    concurrent read-modify-write cycles on one document can lose updates.
    """

    def ensure(self, doc_type: DocumentType) -> None:
        ...

    def exists(self, doc_type: DocumentType) -> bool:
        ...

    def read_all(self, doc_type: DocumentType) -> Any:
        ...

    def replace_all(self, doc_type: DocumentType, document: Any) -> None:
        ...

    def size_of(self, doc_type: DocumentType) -> Optional[int]:
        ...


def write_json_atomic(path: Path, data: Any) -> None:
    """Write ``data`` as indented JSON, replacing ``path`` in one step.

    The content goes to a temp file in the same directory first, so a
    reader sees either the old file or the complete new one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path) -> Any:
    """Parse a JSON file, mapping every failure to StorageError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StorageError(f"Cannot read {path}: {exc}", path=path) from exc


class JsonFileStore:
    """RecordStore backed by ``<data_dir>/<document>.json`` files."""

    def __init__(self, data_dir: str | Path, now: Clock = utc_now_iso) -> None:
        self._dir = Path(data_dir)
        self._now = now

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path_for(self, doc_type: DocumentType) -> Path:
        return self._dir / doc_type.filename

    def exists(self, doc_type: DocumentType) -> bool:
        return self.path_for(doc_type).is_file()

    def ensure(self, doc_type: DocumentType) -> None:
        """Create the document with its empty default if it is missing."""
        path = self.path_for(doc_type)
        if path.is_file():
            return
        try:
            write_json_atomic(path, doc_type.empty(self._now))
        except OSError as exc:
            raise StorageError(f"Cannot create {path}: {exc}", path=path) from exc
        logger.debug("Created empty %s document at %s", doc_type.value, path)

    def read_all(self, doc_type: DocumentType) -> Any:
        """Return the whole document, creating it first if needed."""
        self.ensure(doc_type)
        path = self.path_for(doc_type)
        document = read_json(path)
        if not isinstance(document, doc_type.container):
            raise StorageError(
                f"Corrupt {doc_type.value} document at {path}: "
                f"expected {doc_type.container.__name__}, got {type(document).__name__}",
                path=path,
            )
        return document

    def replace_all(self, doc_type: DocumentType, document: Any) -> None:
        """Overwrite the whole document."""
        path = self.path_for(doc_type)
        try:
            write_json_atomic(path, document)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to write %s: %s", path, exc)
            raise StorageError(f"Cannot write {path}: {exc}", path=path) from exc
        logger.debug("Wrote %s document to %s", doc_type.value, path)

    def size_of(self, doc_type: DocumentType) -> Optional[int]:
        path = self.path_for(doc_type)
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot stat {path}: {exc}", path=path) from exc
