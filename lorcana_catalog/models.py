"""Canonical record types for the catalog documents.

Stored JSON keeps camelCase keys; each record converts with ``to_dict``
and, where records are read back for mutation, ``from_dict``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class NotFound(enum.Enum):
    """Explicit absence result for collection mutations."""

    COLLECTION = "collection"
    CARD = "card"


@dataclass
class Card:
    """A catalog card after import normalization."""

    id: str
    full_name: str
    name: str
    set_code: str
    created_at: str
    updated_at: str
    color: Optional[str] = None
    rarity: Optional[str] = None
    cost: Optional[Any] = None
    lore: Optional[Any] = None
    images: Dict[str, Any] = field(default_factory=dict)
    external_links: Dict[str, Any] = field(default_factory=dict)
    abilities: List[Any] = field(default_factory=list)
    characteristics: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "name": self.name,
            "setCode": self.set_code,
            "color": self.color,
            "rarity": self.rarity,
            "cost": self.cost,
            "lore": self.lore,
            "images": self.images,
            "externalLinks": self.external_links,
            "abilities": self.abilities,
            "characteristics": self.characteristics,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class CardSet:
    """An expansion; ``code`` is what cards reference through ``setCode``."""

    id: str
    code: str
    name: str
    created_at: str
    updated_at: str
    release_date: Optional[str] = None
    card_count: int = 0
    languages: List[str] = field(default_factory=lambda: ["fr"])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "releaseDate": self.release_date,
            "cardCount": self.card_count,
            "languages": self.languages,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class PriceEntry:
    """Price side-document value, keyed by card id in prices.json."""

    price: float
    last_updated: str
    currency: str = "EUR"
    source: str = "manual"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "currency": self.currency,
            "source": self.source,
            "lastUpdated": self.last_updated,
        }


@dataclass
class CollectionCard:
    """Line item inside a collection: one per card id, quantity >= 1."""

    card_id: str
    quantity: int
    added_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cardId": self.card_id,
            "quantity": self.quantity,
            "addedAt": self.added_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CollectionCard":
        return cls(
            card_id=raw["cardId"],
            quantity=int(raw.get("quantity", 1)),
            added_at=raw.get("addedAt", ""),
        )


@dataclass
class Collection:
    """A named, user-defined group of cards with quantities."""

    id: str
    name: str
    created_at: str
    updated_at: str
    description: str = ""
    cards: List[CollectionCard] = field(default_factory=list)

    def find(self, card_id: str) -> Optional[CollectionCard]:
        for entry in self.cards:
            if entry.card_id == card_id:
                return entry
        return None

    @property
    def total_quantity(self) -> int:
        return sum(entry.quantity for entry in self.cards)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cards": [entry.to_dict() for entry in self.cards],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Collection":
        return cls(
            id=raw["id"],
            name=raw.get("name", ""),
            description=raw.get("description") or "",
            cards=[CollectionCard.from_dict(c) for c in raw.get("cards", [])],
            created_at=raw.get("createdAt", ""),
            updated_at=raw.get("updatedAt", ""),
        )


@dataclass
class ImportResult:
    """Outcome of a successful import."""

    document: str
    imported: int
    message: str


@dataclass
class RestoreResult:
    """Outcome of a successful restore."""

    restored_files: List[str]
    backup_timestamp: Optional[str]
    message: str


@dataclass
class DataStats:
    """Per-document counts and on-disk sizes."""

    cards: int = 0
    sets: int = 0
    prices: int = 0
    collections: int = 0
    last_update: Optional[str] = None
    file_sizes: Dict[str, int] = field(default_factory=dict)
