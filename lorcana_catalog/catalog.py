"""Card catalog: filtered, price-enriched views of the card document."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lorcana_catalog.errors import StorageError, ValidationError
from lorcana_catalog.ids import Clock, IdFactory, timestamped_id, utc_now_iso
from lorcana_catalog.store import DocumentType, RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CardFilters:
    """Optional card filters, combined with AND."""

    set: Optional[str] = None
    color: Optional[str] = None
    rarity: Optional[str] = None
    search: Optional[str] = None
    language: Optional[str] = None

    def matches(self, card: Dict[str, Any], set_languages: Dict[str, List[str]]) -> bool:
        if self.set and card.get("setCode") != self.set:
            return False
        if self.color and card.get("color") != self.color:
            return False
        if self.rarity and card.get("rarity") != self.rarity:
            return False
        if self.search:
            term = self.search.lower()
            names = (card.get("fullName"), card.get("name"))
            if not any(isinstance(n, str) and term in n.lower() for n in names):
                return False
        if self.language:
            # Cards whose set is not in sets.json are kept.
            languages = set_languages.get(card.get("setCode"))
            if languages is not None and self.language not in languages:
                return False
        return True


class CardCatalog:
    """Read side of the catalog plus single-card edits.

    Read methods degrade to empty results when a document cannot be read;
    the failure is logged. Write methods raise.
    """

    def __init__(
        self,
        store: RecordStore,
        new_id: IdFactory = timestamped_id,
        now: Clock = utc_now_iso,
    ) -> None:
        self._store = store
        self._new_id = new_id
        self._now = now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_cards(self, filters: Optional[CardFilters] = None) -> List[Dict[str, Any]]:
        """Cards in store order, each with a ``price`` entry or None."""
        filters = filters or CardFilters()
        try:
            cards = self._store.read_all(DocumentType.CARDS)
            set_languages = self._set_languages() if filters.language else {}
        except StorageError as exc:
            logger.error("Error getting cards: %s", exc)
            return []

        prices = self.get_prices()
        return [
            {**card, "price": prices.get(card.get("id"))}
            for card in cards
            if filters.matches(card, set_languages)
        ]

    def get_card_by_id(self, card_id: str) -> Optional[Dict[str, Any]]:
        for card in self.list_cards():
            if card.get("id") == card_id:
                return card
        return None

    def list_sets(self, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """Sets with a display-name fallback, optionally limited to a locale."""
        try:
            sets = self._store.read_all(DocumentType.SETS)
        except StorageError as exc:
            logger.error("Error getting sets: %s", exc)
            return []
        result = []
        for s in sets:
            if language and language not in (s.get("languages") or []):
                continue
            result.append({**s, "name": s.get("name") or f"Extension {s.get('code')}"})
        return result

    def get_prices(self) -> Dict[str, Any]:
        try:
            return self._store.read_all(DocumentType.PRICES)
        except StorageError as exc:
            logger.error("Error getting prices: %s", exc)
            return {}

    def stats(self) -> Dict[str, Any]:
        """Totals plus per-color, per-rarity and per-set histograms."""
        cards = self.list_cards()
        by_color: Counter = Counter()
        by_rarity: Counter = Counter()
        by_set: Counter = Counter()
        for card in cards:
            if card.get("color"):
                by_color[card["color"]] += 1
            if card.get("rarity"):
                by_rarity[card["rarity"]] += 1
            if card.get("setCode"):
                by_set[card["setCode"]] += 1
        return {
            "totalCards": len(cards),
            "totalSets": len(self.list_sets()),
            "totalPrices": len(self.get_prices()),
            "byColor": dict(by_color),
            "byRarity": dict(by_rarity),
            "bySet": dict(by_set),
        }

    # ------------------------------------------------------------------
    # Single-card edits
    # ------------------------------------------------------------------

    def add_card(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Append a card as given, with an id and fresh timestamps.

        Raises ValidationError when a card with the same id already exists.
        """
        cards = self._store.read_all(DocumentType.CARDS)
        card_id = data.get("id") or self._new_id("card")
        if any(c.get("id") == card_id for c in cards):
            raise ValidationError(f"Card '{card_id}' already exists")
        stamp = self._now()
        card = {
            **data,
            "id": card_id,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        cards.append(card)
        self._store.replace_all(DocumentType.CARDS, cards)
        logger.info("Added card %s", card["id"])
        return card

    def update_card(self, card_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge ``patch`` into the card; the id never changes. None if absent."""
        cards = self._store.read_all(DocumentType.CARDS)
        for i, card in enumerate(cards):
            if card.get("id") == card_id:
                cards[i] = {**card, **patch, "id": card_id, "updatedAt": self._now()}
                self._store.replace_all(DocumentType.CARDS, cards)
                return cards[i]
        return None

    def delete_card(self, card_id: str) -> bool:
        """Remove a card from the catalog. Collections keep their line items."""
        cards = self._store.read_all(DocumentType.CARDS)
        remaining = [c for c in cards if c.get("id") != card_id]
        if len(remaining) == len(cards):
            return False
        self._store.replace_all(DocumentType.CARDS, remaining)
        logger.info("Deleted card %s", card_id)
        return True

    def _set_languages(self) -> Dict[str, List[str]]:
        return {
            s.get("code"): s.get("languages") or []
            for s in self._store.read_all(DocumentType.SETS)
        }
