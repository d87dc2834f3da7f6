"""Tests for thumbfast.core.history_store — bounded SQLite history.

Tests cover:
- Newest-first ordering from ``get_all()``.
- The cap invariant and oldest-first eviction.
- Concurrent ``add()`` calls never exceeding the cap.
- ``remove()``/``clear()``/``get()`` semantics.
- Durability across instances and degradation when storage is unavailable.
"""

from __future__ import annotations

import random
import threading
from pathlib import Path

import pytest

from thumbfast.core.errors import HistoryStoreError
from thumbfast.core.history_store import HistoryStore
from thumbfast.core.models import GeneratedImage, HistoryEntry, HistorySettings

SETTINGS = HistorySettings(
    model="gemini-2.5-flash-image",
    modes=("thumbnail",),
    layout=1,
    blend=False,
    variant_count=1,
)


def _entry(index: int, timestamp: int | None = None) -> HistoryEntry:
    return HistoryEntry(
        id=f"entry-{index}",
        timestamp=timestamp if timestamp is not None else 1_700_000_000_000 + index,
        prompt=f"prompt {index}",
        settings=SETTINGS,
        images=(GeneratedImage(data=f"img-{index}", media_type="image/png"),),
    )


@pytest.fixture
def store(temp_dir: Path) -> HistoryStore:
    return HistoryStore(temp_dir / "history.db")


class TestOrdering:
    def test_empty_store(self, store: HistoryStore):
        assert store.get_all() == []
        assert store.count() == 0

    def test_get_all_is_newest_first(self, store: HistoryStore):
        timestamps = [50, 10, 40, 20, 30]
        for i, ts in enumerate(timestamps):
            store.add(_entry(i, ts))

        entries = store.get_all()
        assert [e.timestamp for e in entries] == [50, 40, 30, 20, 10]

    def test_get_all_non_increasing_for_random_timestamps(self, store: HistoryStore):
        rng = random.Random(7)
        for i in range(30):
            store.add(_entry(i, rng.randint(0, 10)))

        timestamps = [e.timestamp for e in store.get_all()]
        assert all(a >= b for a, b in zip(timestamps, timestamps[1:]))

    def test_round_trip_preserves_fields(self, store: HistoryStore):
        entry = HistoryEntry(
            id="abc",
            timestamp=123,
            prompt="A robot holding a sign",
            settings=HistorySettings(
                model="gemini-3-pro-image-preview",
                modes=("logo", "icon"),
                layout=4,
                blend=True,
                variant_count=3,
            ),
            images=(
                GeneratedImage("AAA", "image/png"),
                GeneratedImage("BBB", "image/jpeg"),
            ),
        )
        store.add(entry)
        assert store.get("abc") == entry


class TestCap:
    def test_add_to_full_store_evicts_oldest(self, temp_dir: Path):
        store = HistoryStore(temp_dir / "history.db", max_entries=50)
        for i in range(50):
            store.add(_entry(i))
        assert store.count() == 50
        oldest = min(store.get_all(), key=lambda e: e.timestamp)

        new_entry = _entry(999, timestamp=2_000_000_000_000)
        store.add(new_entry)

        ids = {e.id for e in store.get_all()}
        assert len(ids) == 50
        assert new_entry.id in ids
        assert oldest.id not in ids

    def test_store_never_exceeds_cap(self, temp_dir: Path):
        store = HistoryStore(temp_dir / "history.db", max_entries=5)
        for i in range(12):
            store.add(_entry(i))
            assert store.count() <= 5

        assert [e.id for e in store.get_all()] == [f"entry-{i}" for i in range(11, 6, -1)]

    def test_overfull_store_is_trimmed_to_cap(self, temp_dir: Path):
        db_path = temp_dir / "history.db"
        big = HistoryStore(db_path, max_entries=10)
        for i in range(10):
            big.add(_entry(i))

        small = HistoryStore(db_path, max_entries=4)
        small.add(_entry(100))

        entries = small.get_all()
        assert len(entries) == 4
        assert [e.id for e in entries] == ["entry-100", "entry-9", "entry-8", "entry-7"]

    def test_new_entry_older_than_everything_is_kept(self, temp_dir: Path):
        store = HistoryStore(temp_dir / "history.db", max_entries=3)
        for i in range(3):
            store.add(_entry(i, timestamp=100 + i))

        store.add(_entry(42, timestamp=1))

        ids = {e.id for e in store.get_all()}
        assert "entry-42" in ids
        assert "entry-0" not in ids
        assert store.count() == 3

    def test_re_adding_existing_id_does_not_evict(self, temp_dir: Path):
        store = HistoryStore(temp_dir / "history.db", max_entries=3)
        for i in range(3):
            store.add(_entry(i))

        store.add(_entry(1))

        assert {e.id for e in store.get_all()} == {"entry-0", "entry-1", "entry-2"}

    def test_concurrent_adds_respect_cap(self, temp_dir: Path):
        store = HistoryStore(temp_dir / "history.db", max_entries=10)
        errors: list[Exception] = []

        def worker(offset: int) -> None:
            try:
                for i in range(10):
                    store.add(_entry(offset * 100 + i))
            except Exception as e:  # pragma: no cover - surfaced below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert store.count() == 10

    def test_invalid_cap(self, temp_dir: Path):
        with pytest.raises(ValueError):
            HistoryStore(temp_dir / "history.db", max_entries=0)


class TestRemoveAndClear:
    def test_remove_existing(self, store: HistoryStore):
        store.add(_entry(1))
        store.add(_entry(2))
        assert store.remove("entry-1") is True
        assert [e.id for e in store.get_all()] == ["entry-2"]

    def test_remove_missing_is_noop(self, store: HistoryStore):
        store.add(_entry(1))
        assert store.remove("does-not-exist") is False
        assert store.count() == 1

    def test_clear(self, store: HistoryStore):
        for i in range(5):
            store.add(_entry(i))
        store.clear()
        assert store.get_all() == []

    def test_get_missing(self, store: HistoryStore):
        assert store.get("nope") is None


class TestDurability:
    def test_entries_survive_new_instance(self, temp_dir: Path):
        db_path = temp_dir / "history.db"
        HistoryStore(db_path).add(_entry(1))
        assert [e.id for e in HistoryStore(db_path).get_all()] == ["entry-1"]

    def test_creates_parent_directories(self, temp_dir: Path):
        db_path = temp_dir / "a" / "b" / "history.db"
        store = HistoryStore(db_path)
        store.add(_entry(1))
        assert db_path.exists()


class TestUnavailableStorage:
    @pytest.fixture
    def broken_store(self, temp_dir: Path) -> HistoryStore:
        # A directory where the database file should be makes every
        # connection fail.
        db_path = temp_dir / "history.db"
        db_path.mkdir()
        return HistoryStore(db_path)

    def test_reads_degrade_to_empty(self, broken_store: HistoryStore):
        assert broken_store.get_all() == []
        assert broken_store.get("anything") is None
        assert broken_store.count() == 0

    def test_writes_raise_history_store_error(self, broken_store: HistoryStore):
        with pytest.raises(HistoryStoreError):
            broken_store.add(_entry(1))
        with pytest.raises(HistoryStoreError):
            broken_store.clear()
        with pytest.raises(HistoryStoreError):
            broken_store.remove("entry-1")
