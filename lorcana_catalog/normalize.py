"""Normalization of raw import payloads into canonical records.

Each function takes an already-parsed JSON value, trusts none of its
fields, and returns records with every field present. IDs are generated
for entries that lack one without consulting the store: importing the
same id-less file twice yields two sets of records, which is fine because
an import replaces the whole document.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from lorcana_catalog.errors import ShapeMismatchError
from lorcana_catalog.ids import Clock, IdFactory, timestamped_id, utc_now_iso
from lorcana_catalog.models import Card, CardSet, PriceEntry

logger = logging.getLogger(__name__)

UNKNOWN_CARD_NAME = "Unknown Card"
UNKNOWN_SET_CODE = "UNKNOWN"
DEFAULT_LANGUAGES = ["fr"]
DEFAULT_CURRENCY = "EUR"
DEFAULT_PRICE_SOURCE = "manual"


def _require_list(raw: Any, what: str) -> List[Any]:
    if not isinstance(raw, list):
        raise ShapeMismatchError(f"{what} data must be an array, got {_json_type(raw)}")
    return raw


def _require_object(raw: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(raw, dict):
        raise ShapeMismatchError(f"{where} must be an object, got {_json_type(raw)}")
    return raw


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """First truthy value among ``keys``, else None."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def normalize_card(raw: Mapping[str, Any], new_id: IdFactory, now: str) -> Card:
    full_name = _first(raw, "fullName", "name") or UNKNOWN_CARD_NAME
    name = _first(raw, "name", "fullName") or UNKNOWN_CARD_NAME
    return Card(
        id=raw.get("id") or new_id("card"),
        full_name=full_name,
        name=name,
        set_code=_first(raw, "setCode", "set_code") or UNKNOWN_SET_CODE,
        color=raw.get("color"),
        rarity=raw.get("rarity"),
        cost=raw.get("cost"),
        lore=raw.get("lore"),
        images=_or_default(raw.get("images"), {}),
        external_links=_or_default(raw.get("externalLinks"), {}),
        abilities=_or_default(raw.get("abilities"), []),
        characteristics=_or_default(raw.get("characteristics"), []),
        created_at=raw.get("createdAt") or now,
        updated_at=now,
    )


def normalize_cards(
    raw: Any,
    new_id: IdFactory = timestamped_id,
    now: Clock = utc_now_iso,
) -> List[Card]:
    """Normalize a card import payload (a JSON array)."""
    items = _require_list(raw, "Cards")
    stamp = now()
    cards = [
        normalize_card(_require_object(item, f"cards[{i}]"), new_id, stamp)
        for i, item in enumerate(items)
    ]
    seen: set = set()
    for i, card in enumerate(cards):
        if card.id in seen:
            raise ShapeMismatchError(f"cards[{i}]: duplicate id '{card.id}'")
        seen.add(card.id)
    generated = sum(1 for item in items if not item.get("id"))
    if generated:
        logger.info("Generated ids for %d of %d cards", generated, len(cards))
    return cards


def normalize_set(raw: Mapping[str, Any], new_id: IdFactory, now: str) -> CardSet:
    code = _first(raw, "code", "setCode")
    return CardSet(
        id=raw.get("id") or new_id("set"),
        code=code or UNKNOWN_SET_CODE,
        name=raw.get("name") or f"Set {code or 'Unknown'}",
        release_date=_first(raw, "releaseDate", "release_date"),
        card_count=_first(raw, "cardCount", "card_count") or 0,
        languages=raw.get("languages") or list(DEFAULT_LANGUAGES),
        created_at=raw.get("createdAt") or now,
        updated_at=now,
    )


def normalize_sets(
    raw: Any,
    new_id: IdFactory = timestamped_id,
    now: Clock = utc_now_iso,
) -> List[CardSet]:
    """Normalize a set import payload (a JSON array)."""
    items = _require_list(raw, "Sets")
    stamp = now()
    return [
        normalize_set(_require_object(item, f"sets[{i}]"), new_id, stamp)
        for i, item in enumerate(items)
    ]


def _price_value(card_id: str, value: Any) -> Any:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShapeMismatchError(
            f"prices[{card_id!r}].price must be a number, got {_json_type(value)}"
        )
    return value


def normalize_price(card_id: str, raw: Any, now: str) -> PriceEntry:
    """Accept a bare number or a price object."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return PriceEntry(price=raw, last_updated=now)
    info = _require_object(raw, f"prices[{card_id!r}]")
    return PriceEntry(
        price=_price_value(card_id, info.get("price")),
        currency=info.get("currency") or DEFAULT_CURRENCY,
        source=info.get("source") or DEFAULT_PRICE_SOURCE,
        last_updated=info.get("lastUpdated") or now,
    )


def normalize_prices(raw: Any, now: Clock = utc_now_iso) -> Dict[str, PriceEntry]:
    """Normalize a price import payload (a JSON object keyed by card id)."""
    if not isinstance(raw, dict):
        raise ShapeMismatchError(f"Prices data must be an object, got {_json_type(raw)}")
    stamp = now()
    return {card_id: normalize_price(card_id, info, stamp) for card_id, info in raw.items()}
