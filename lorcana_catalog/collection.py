"""Collection service: named collections and their card line items.

Every mutation is one read_all + replace_all round trip on the collections
document, without locking. Two overlapping mutations can therefore lose
one of the updates; callers own serialization if they need it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from lorcana_catalog.errors import MissingFieldError, ValidationError
from lorcana_catalog.ids import Clock, IdFactory, utc_now_iso, uuid_id
from lorcana_catalog.models import Collection, CollectionCard, NotFound
from lorcana_catalog.store import DocumentType, RecordStore

logger = logging.getLogger(__name__)

CollectionResult = Union[Collection, NotFound]

EDITABLE_FIELDS = ("name", "description")


def _require_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise MissingFieldError("name")
    return name


def _require_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
    return quantity


class CollectionService:
    """CRUD over collections.json."""

    def __init__(
        self,
        store: RecordStore,
        new_id: IdFactory = uuid_id,
        now: Clock = utc_now_iso,
    ) -> None:
        self._store = store
        self._new_id = new_id
        self._now = now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_collections(self) -> List[Collection]:
        return [Collection.from_dict(raw) for raw in self._store.read_all(DocumentType.COLLECTIONS)]

    def get_collection(self, collection_id: str) -> Optional[Collection]:
        for collection in self.list_collections():
            if collection.id == collection_id:
                return collection
        return None

    def collection_stats(self, collection_id: str) -> Optional[Dict[str, Any]]:
        collection = self.get_collection(collection_id)
        if collection is None:
            return None
        return {
            "totalCards": len(collection.cards),
            "totalQuantity": collection.total_quantity,
            "lastUpdated": collection.updated_at,
            "createdAt": collection.created_at,
        }

    # ------------------------------------------------------------------
    # Collection lifecycle
    # ------------------------------------------------------------------

    def create_collection(self, name: Any, description: Optional[str] = None) -> Collection:
        name = _require_name(name)
        raw = self._store.read_all(DocumentType.COLLECTIONS)
        stamp = self._now()
        collection = Collection(
            id=self._new_id("collection"),
            name=name,
            description=description or "",
            created_at=stamp,
            updated_at=stamp,
        )
        raw.append(collection.to_dict())
        self._store.replace_all(DocumentType.COLLECTIONS, raw)
        logger.info("Created collection %s (%s)", collection.id, collection.name)
        return collection

    def update_collection(self, collection_id: str, patch: Dict[str, Any]) -> CollectionResult:
        """Apply name/description changes; any other key is ignored."""
        if "name" in patch:
            _require_name(patch["name"])
        raw, index, collection = self._load(collection_id)
        if collection is None:
            return NotFound.COLLECTION
        if "name" in patch:
            collection.name = patch["name"]
        if "description" in patch:
            collection.description = patch["description"] or ""
        return self._save(raw, index, collection)

    def delete_collection(self, collection_id: str) -> CollectionResult:
        """Remove a collection and its line items; the card catalog is untouched."""
        raw, index, collection = self._load(collection_id)
        if collection is None:
            return NotFound.COLLECTION
        del raw[index]
        self._store.replace_all(DocumentType.COLLECTIONS, raw)
        logger.info("Deleted collection %s", collection_id)
        return collection

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def add_card(self, collection_id: str, card_id: str, quantity: int = 1) -> CollectionResult:
        """Add ``quantity`` copies of a card.

        A negative quantity subtracts; an entry that reaches zero or below
        is removed. Subtracting from a card that is not in the collection
        changes nothing and writes nothing.
        """
        quantity = _require_quantity(quantity)
        raw, index, collection = self._load(collection_id)
        if collection is None:
            return NotFound.COLLECTION

        entry = collection.find(card_id)
        if entry is not None:
            entry.quantity += quantity
            if entry.quantity <= 0:
                collection.cards.remove(entry)
        elif quantity > 0:
            collection.cards.append(
                CollectionCard(card_id=card_id, quantity=quantity, added_at=self._now())
            )
        else:
            return collection
        return self._save(raw, index, collection)

    def remove_card(self, collection_id: str, card_id: str) -> CollectionResult:
        raw, index, collection = self._load(collection_id)
        if collection is None:
            return NotFound.COLLECTION
        entry = collection.find(card_id)
        if entry is None:
            return NotFound.CARD
        collection.cards.remove(entry)
        return self._save(raw, index, collection)

    def set_quantity(self, collection_id: str, card_id: str, quantity: int) -> CollectionResult:
        """Set an entry's quantity outright; zero or below removes it."""
        quantity = _require_quantity(quantity)
        if quantity <= 0:
            return self.remove_card(collection_id, card_id)
        raw, index, collection = self._load(collection_id)
        if collection is None:
            return NotFound.COLLECTION
        entry = collection.find(card_id)
        if entry is None:
            return NotFound.CARD
        entry.quantity = quantity
        return self._save(raw, index, collection)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self, collection_id: str) -> Tuple[List[Dict[str, Any]], int, Optional[Collection]]:
        raw = self._store.read_all(DocumentType.COLLECTIONS)
        for index, item in enumerate(raw):
            if item.get("id") == collection_id:
                return raw, index, Collection.from_dict(item)
        return raw, -1, None

    def _save(self, raw: List[Dict[str, Any]], index: int, collection: Collection) -> Collection:
        collection.updated_at = self._now()
        raw[index] = collection.to_dict()
        self._store.replace_all(DocumentType.COLLECTIONS, raw)
        return collection
