"""Shared fixtures: a store in tmp_path plus deterministic ids and clock."""

import itertools
import json
from datetime import datetime, timedelta, timezone

import pytest

from lorcana_catalog.store import JsonFileStore


class FakeClock:
    """Returns a strictly increasing timestamp, one second apart."""

    def __init__(self):
        self._start = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._ticks = itertools.count()

    def __call__(self):
        moment = self._start + timedelta(seconds=next(self._ticks))
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FakeIds:
    """Returns ``<prefix>-1``, ``<prefix>-2``, ... per prefix."""

    def __init__(self):
        self._counters = {}

    def __call__(self, prefix):
        n = self._counters.get(prefix, 0) + 1
        self._counters[prefix] = n
        return f"{prefix}-{n}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def new_id():
    return FakeIds()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def store(data_dir, clock):
    return JsonFileStore(data_dir, now=clock)


@pytest.fixture
def write_json(tmp_path):
    """Write a payload to a file under tmp_path/uploads and return its path."""

    def _write(name, payload):
        path = tmp_path / "uploads" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
