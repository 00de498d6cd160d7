"""Data lifecycle: bulk import, export, backup, restore and data statistics.

Imports replace the target document wholesale; they never merge with
what was there. Restores replace every document present in the snapshot
and leave the others alone.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from lorcana_catalog.config import SnapshotConfig
from lorcana_catalog.errors import (
    CatalogError,
    InvalidBackupFormatError,
    ShapeMismatchError,
    StorageError,
    UnsupportedFormatError,
)
from lorcana_catalog.ids import Clock, IdFactory, timestamped_id, unique_token, utc_now_iso
from lorcana_catalog.models import DataStats, ImportResult, RestoreResult
from lorcana_catalog.normalize import normalize_cards, normalize_prices, normalize_sets
from lorcana_catalog.store import DocumentType, RecordStore, write_json_atomic

logger = logging.getLogger(__name__)

SNAPSHOT_ORDER = (
    DocumentType.CARDS,
    DocumentType.SETS,
    DocumentType.PRICES,
    DocumentType.COLLECTIONS,
    DocumentType.METADATA,
)

SUPPORTED_EXPORT_FORMATS = ("json",)


def _parse_json_file(path: Path, invalid: Callable[[str], CatalogError]) -> Any:
    """Load a user-supplied JSON file.

    Unreadable files are storage failures; undecodable content is reported
    with the ``invalid`` error type chosen by the caller.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise invalid(f"{path} is not UTF-8 JSON: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot read {path}: {exc}", path=path) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise invalid(f"{path} is not valid JSON: {exc}") from exc


def _check_snapshot_document(doc_type: DocumentType, document: Any) -> None:
    """Reject a snapshot document whose shape the services cannot read back."""
    name = doc_type.value
    if not isinstance(document, doc_type.container):
        kind = "an object" if doc_type.container is dict else "an array"
        raise InvalidBackupFormatError(f"Backup document '{name}' must be {kind}")
    if doc_type is DocumentType.METADATA:
        return
    if doc_type is DocumentType.PRICES:
        for card_id, entry in document.items():
            if not isinstance(entry, dict):
                raise InvalidBackupFormatError(f"Backup prices['{card_id}'] must be an object")
        return
    for i, item in enumerate(document):
        if not isinstance(item, dict):
            raise InvalidBackupFormatError(f"Backup {name}[{i}] must be an object")
        if doc_type is not DocumentType.COLLECTIONS:
            continue
        if not item.get("id") or not isinstance(item.get("cards"), list):
            raise InvalidBackupFormatError(f"Backup collections[{i}] needs an id and a cards array")
        for line in item["cards"]:
            if not isinstance(line, dict) or "cardId" not in line:
                raise InvalidBackupFormatError(
                    f"Backup collections[{i}] has a card entry without cardId"
                )


def _remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove %s: %s", path, exc)


class DataLifecycle:
    """Bulk operations over the whole data directory."""

    def __init__(
        self,
        store: RecordStore,
        backup_dir: str | Path,
        export_dir: str | Path,
        snapshot: Optional[SnapshotConfig] = None,
        new_id: IdFactory = timestamped_id,
        now: Clock = utc_now_iso,
        token: Callable[[], str] = unique_token,
    ) -> None:
        self._store = store
        self._backup_dir = Path(backup_dir)
        self._export_dir = Path(export_dir)
        self._snapshot = snapshot or SnapshotConfig()
        self._new_id = new_id
        self._now = now
        self._token = token

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_cards(self, path: str | Path, remove_source: bool = True) -> ImportResult:
        return self._import(
            DocumentType.CARDS,
            Path(path),
            lambda raw: [c.to_dict() for c in normalize_cards(raw, self._new_id, self._now)],
            remove_source,
        )

    def import_sets(self, path: str | Path, remove_source: bool = True) -> ImportResult:
        return self._import(
            DocumentType.SETS,
            Path(path),
            lambda raw: [s.to_dict() for s in normalize_sets(raw, self._new_id, self._now)],
            remove_source,
        )

    def import_prices(self, path: str | Path, remove_source: bool = True) -> ImportResult:
        return self._import(
            DocumentType.PRICES,
            Path(path),
            lambda raw: {k: p.to_dict() for k, p in normalize_prices(raw, self._now).items()},
            remove_source,
        )

    def _import(
        self,
        doc_type: DocumentType,
        path: Path,
        normalize: Callable[[Any], Any],
        remove_source: bool,
    ) -> ImportResult:
        name = doc_type.value
        try:
            raw = _parse_json_file(path, ShapeMismatchError)
            document = normalize(raw)
            # A corrupt metadata file must fail before the document is replaced.
            metadata = self._store.read_all(DocumentType.METADATA)
            self._store.replace_all(doc_type, document)
            self._write_metadata(metadata, {
                f"{name}_imported": len(document),
                f"last_{name}_import": self._now(),
            })
        except CatalogError as exc:
            logger.error("Error importing %s from %s: %s", name, path, exc)
            raise
        finally:
            if remove_source:
                _remove_file(path)

        count = len(document)
        if doc_type is DocumentType.PRICES:
            message = f"Successfully imported prices for {count} cards"
        else:
            message = f"Successfully imported {count} {name}"
        logger.info("Imported %d %s from %s", count, name, path)
        return ImportResult(document=name, imported=count, message=message)

    # ------------------------------------------------------------------
    # Export / backup
    # ------------------------------------------------------------------

    def export_data(self, fmt: str = "json") -> Path:
        """Write a snapshot of every present document to a new export file."""
        if fmt not in SUPPORTED_EXPORT_FORMATS:
            raise UnsupportedFormatError(fmt)

        data = self._collect_documents()
        stamp = self._now()
        data["exportInfo"] = {
            "timestamp": stamp,
            "version": self._snapshot.version,
            "format": fmt,
        }
        filename = f"{self._snapshot.export_prefix}-{stamp[:10]}-{self._token()}.{fmt}"
        path = self._export_dir / filename
        self._write_snapshot(path, data)
        logger.info("Exported %d documents to %s", len(data) - 1, path)
        return path

    def create_backup(self) -> Path:
        """Write a timestamped backup snapshot and return its path."""
        data = self._collect_documents()
        stamp = self._now()
        data["backupInfo"] = {
            "timestamp": stamp,
            "version": self._snapshot.version,
            "files": list(data.keys()),
        }
        filename = (
            f"{self._snapshot.backup_prefix}-{stamp[:10]}-"
            f"{int(time.time() * 1000)}-{self._token()}.json"
        )
        path = self._backup_dir / filename
        self._write_snapshot(path, data)
        logger.info("Created backup %s (%s)", path, ", ".join(data["backupInfo"]["files"]))
        return path

    def _collect_documents(self) -> Dict[str, Any]:
        return {
            doc_type.value: self._store.read_all(doc_type)
            for doc_type in SNAPSHOT_ORDER
            if self._store.exists(doc_type)
        }

    def _write_snapshot(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            write_json_atomic(path, data)
        except OSError as exc:
            logger.error("Failed to write snapshot %s: %s", path, exc)
            raise StorageError(f"Cannot write {path}: {exc}", path=path) from exc

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore_from_backup(self, path: str | Path, remove_source: bool = True) -> RestoreResult:
        """Replace live documents with those found in a backup snapshot.

        Every document in the snapshot is checked before the first write.
        Metadata is merged into the live metadata with restore provenance;
        an unreadable live metadata file is replaced by the backup's.
        The source file is removed only after a successful restore.
        """
        path = Path(path)
        snapshot = _parse_json_file(path, InvalidBackupFormatError)
        if not isinstance(snapshot, dict) or not isinstance(snapshot.get("backupInfo"), dict):
            raise InvalidBackupFormatError(f"Invalid backup file format: {path}")

        present = [dt for dt in SNAPSHOT_ORDER if snapshot.get(dt.value) is not None]
        for doc_type in present:
            _check_snapshot_document(doc_type, snapshot[doc_type.value])

        backup_timestamp = snapshot["backupInfo"].get("timestamp")
        if DocumentType.METADATA in present:
            try:
                merged_metadata = self._store.read_all(DocumentType.METADATA)
            except StorageError as exc:
                logger.warning("Live metadata unreadable, using backup metadata only: %s", exc)
                merged_metadata = {}
            merged_metadata.update(snapshot[DocumentType.METADATA.value])
            merged_metadata["restored_from_backup"] = self._now()
            merged_metadata["backup_timestamp"] = backup_timestamp

        restored: List[str] = []
        for doc_type in present:
            if doc_type is DocumentType.METADATA:
                self._store.replace_all(doc_type, merged_metadata)
            else:
                self._store.replace_all(doc_type, snapshot[doc_type.value])
            restored.append(doc_type.value)

        if remove_source:
            _remove_file(path)

        message = f"Successfully restored {len(restored)} data files"
        logger.info("%s from %s", message, path)
        return RestoreResult(
            restored_files=restored,
            backup_timestamp=backup_timestamp,
            message=message,
        )

    # ------------------------------------------------------------------
    # Metadata & statistics
    # ------------------------------------------------------------------

    def update_metadata(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` into metadata.json, refresh last_update, return the result."""
        return self._write_metadata(self._store.read_all(DocumentType.METADATA), updates)

    def _write_metadata(self, metadata: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
        metadata.update(updates)
        metadata["last_update"] = self._now()
        self._store.replace_all(DocumentType.METADATA, metadata)
        return metadata

    def data_stats(self) -> DataStats:
        """Counts and file sizes of existing documents. Creates nothing."""
        stats = DataStats()
        for doc_type in SNAPSHOT_ORDER:
            if not self._store.exists(doc_type):
                continue
            document = self._store.read_all(doc_type)
            if doc_type is DocumentType.METADATA:
                stats.last_update = document.get("last_update")
                continue
            setattr(stats, doc_type.value, len(document))
            size = self._store.size_of(doc_type)
            if size is not None:
                stats.file_sizes[doc_type.value] = size
        return stats
