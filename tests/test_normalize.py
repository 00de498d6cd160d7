"""Tests for import payload normalization."""

import uuid

import pytest

from lorcana_catalog.errors import ShapeMismatchError, ValidationError
from lorcana_catalog.ids import timestamped_id, uuid_id
from lorcana_catalog.normalize import normalize_cards, normalize_prices, normalize_sets


def fixed_now():
    return "2024-03-01T12:00:00.000Z"


def test_cards_must_be_array():
    with pytest.raises(ShapeMismatchError, match="Cards data must be an array"):
        normalize_cards({"id": "c1"}, now=fixed_now)


def test_shape_mismatch_is_validation_error():
    with pytest.raises(ValidationError):
        normalize_sets("nope", now=fixed_now)


def test_card_element_must_be_object():
    with pytest.raises(ShapeMismatchError, match=r"cards\[1\]"):
        normalize_cards([{"name": "Ok"}, 42], now=fixed_now)


def test_card_full_record(new_id):
    cards = normalize_cards(
        [{
            "id": "TFC-001",
            "fullName": "Mickey Mouse - Brave Little Tailor",
            "name": "Mickey Mouse",
            "setCode": "TFC",
            "color": "Amber",
            "rarity": "Legendary",
            "cost": 8,
            "lore": 4,
            "abilities": ["Evasive"],
            "createdAt": "2023-08-18T00:00:00.000Z",
            "flavor": "ignored extra field",
        }],
        new_id=new_id,
        now=fixed_now,
    )
    record = cards[0].to_dict()
    assert record["id"] == "TFC-001"
    assert record["setCode"] == "TFC"
    assert record["cost"] == 8
    assert record["abilities"] == ["Evasive"]
    assert record["createdAt"] == "2023-08-18T00:00:00.000Z"
    assert record["updatedAt"] == "2024-03-01T12:00:00.000Z"
    assert "flavor" not in record


def test_card_defaults_are_never_missing(new_id):
    record = normalize_cards([{}], new_id=new_id, now=fixed_now)[0].to_dict()
    assert record == {
        "id": "card-1",
        "fullName": "Unknown Card",
        "name": "Unknown Card",
        "setCode": "UNKNOWN",
        "color": None,
        "rarity": None,
        "cost": None,
        "lore": None,
        "images": {},
        "externalLinks": {},
        "abilities": [],
        "characteristics": [],
        "createdAt": "2024-03-01T12:00:00.000Z",
        "updatedAt": "2024-03-01T12:00:00.000Z",
    }


def test_card_name_fallbacks(new_id):
    only_name, only_full = normalize_cards(
        [{"name": "Elsa"}, {"fullName": "Elsa - Snow Queen", "set_code": "TFC"}],
        new_id=new_id,
        now=fixed_now,
    )
    assert only_name.full_name == "Elsa"
    assert only_name.name == "Elsa"
    assert only_full.name == "Elsa - Snow Queen"
    assert only_full.set_code == "TFC"


def test_card_zero_cost_is_kept(new_id):
    card = normalize_cards([{"name": "Free", "cost": 0}], new_id=new_id, now=fixed_now)[0]
    assert card.cost == 0


def test_generated_ids_are_not_deduplicated():
    first = normalize_cards([{"name": "A"}], new_id=timestamped_id, now=fixed_now)
    second = normalize_cards([{"name": "A"}], new_id=timestamped_id, now=fixed_now)
    assert first[0].id.startswith("card_")
    assert first[0].id != second[0].id


def test_sets_defaults(new_id):
    sets = normalize_sets(
        [{"code": "TFC", "name": "The First Chapter", "card_count": 204}, {}],
        new_id=new_id,
        now=fixed_now,
    )
    tfc, blank = (s.to_dict() for s in sets)
    assert tfc["cardCount"] == 204
    assert tfc["languages"] == ["fr"]
    assert tfc["id"] == "set-1"
    assert blank["code"] == "UNKNOWN"
    assert blank["name"] == "Set Unknown"
    assert blank["releaseDate"] is None
    assert blank["cardCount"] == 0


def test_set_name_falls_back_to_code(new_id):
    s = normalize_sets([{"setCode": "ROF", "release_date": "2023-11-17"}], new_id=new_id, now=fixed_now)[0]
    assert s.code == "ROF"
    assert s.name == "Set ROF"
    assert s.release_date == "2023-11-17"


def test_prices_must_be_object():
    with pytest.raises(ShapeMismatchError, match="Prices data must be an object"):
        normalize_prices([1, 2], now=fixed_now)


def test_prices_accept_numbers_and_objects():
    prices = normalize_prices(
        {
            "c1": 12.5,
            "c2": {"price": 3, "currency": "USD", "source": "tcgplayer", "lastUpdated": "2024-01-01"},
            "c3": {},
        },
        now=fixed_now,
    )
    assert prices["c1"].to_dict() == {
        "price": 12.5,
        "currency": "EUR",
        "source": "manual",
        "lastUpdated": "2024-03-01T12:00:00.000Z",
    }
    assert prices["c2"].currency == "USD"
    assert prices["c2"].last_updated == "2024-01-01"
    assert prices["c3"].price == 0


def test_price_entry_of_wrong_type():
    with pytest.raises(ShapeMismatchError, match="prices\\['c1'\\]"):
        normalize_prices({"c1": "cheap"}, now=fixed_now)


def test_duplicate_card_ids_are_rejected(new_id):
    with pytest.raises(ShapeMismatchError, match="cards\\[2\\]: duplicate id 'c1'"):
        normalize_cards(
            [{"id": "c1", "name": "A"}, {"name": "B"}, {"id": "c1", "name": "C"}],
            new_id=new_id,
            now=fixed_now,
        )


@pytest.mark.parametrize("price", ["abc", [], {"amount": 3}, True])
def test_price_field_must_be_numeric(price):
    with pytest.raises(ShapeMismatchError, match="prices\\['c1'\\].price must be a number"):
        normalize_prices({"c1": {"price": price}}, now=fixed_now)


def test_null_price_field_defaults_to_zero():
    prices = normalize_prices({"c1": {"price": None, "currency": "USD"}}, now=fixed_now)
    assert prices["c1"].price == 0
    assert prices["c1"].currency == "USD"


def test_uuid_id_ignores_prefix():
    value = uuid_id("collection")
    assert str(uuid.UUID(value)) == value
    assert "collection" not in value
    assert uuid_id("collection") != value
