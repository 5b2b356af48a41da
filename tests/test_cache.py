import json
from datetime import datetime, timedelta, timezone

from anki_deck_builder.cache import CacheStore


def test_round_trip(cache):
    cache.put("frequency", "hr_frequency", {"language": "hr", "words": {}})

    assert cache.get("frequency", "hr_frequency") == {"language": "hr", "words": {}}


def test_missing_key_is_none(cache):
    assert cache.get("translations", "hr|es|dan") is None


def test_creates_directory_tree(tmp_path):
    root = tmp_path / "a" / "b"
    store = CacheStore(root)

    store.put("translations", "k", "v")
    store.put("translations", "k2", "v2")

    assert (root / "translations").is_dir()
    assert store.get("translations", "k") == "v"


def test_entry_older_than_max_age_is_absent(cache):
    path = cache.put("frequency", "hr_frequency", [1, 2, 3])
    entry = json.loads(path.read_text(encoding="utf-8"))
    old = datetime.now(timezone.utc) - timedelta(days=31)
    entry["created_at"] = old.isoformat()
    path.write_text(json.dumps(entry), encoding="utf-8")

    assert cache.get("frequency", "hr_frequency", max_age=timedelta(days=30)) is None
    # without a max age the entry never expires
    assert cache.get("frequency", "hr_frequency") == [1, 2, 3]


def test_fresh_entry_within_max_age(tmp_path):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    store = CacheStore(tmp_path, clock=lambda: now)
    store.put("frequency", "es_frequency", "data")

    later = CacheStore(tmp_path, clock=lambda: now + timedelta(days=29))
    expired = CacheStore(tmp_path, clock=lambda: now + timedelta(days=30, seconds=1))

    assert later.get("frequency", "es_frequency", max_age=timedelta(days=30)) == "data"
    assert expired.get("frequency", "es_frequency", max_age=timedelta(days=30)) is None


def test_corrupt_file_is_a_miss(cache):
    path = cache.put("translations", "hr|es|dan", "día")
    path.write_text("{not json", encoding="utf-8")

    assert cache.get("translations", "hr|es|dan") is None


def test_entry_missing_fields_is_a_miss(cache):
    path = cache.put("translations", "hr|es|dan", "día")
    path.write_text(json.dumps({"payload": "día"}), encoding="utf-8")

    assert cache.get("translations", "hr|es|dan") is None


def test_overwrite_replaces_value_and_leaves_no_temp_files(cache):
    cache.put("translations", "k", "old")
    path = cache.put("translations", "k", "new")

    assert cache.get("translations", "k") == "new"
    assert [p.name for p in path.parent.iterdir()] == [path.name]


def test_stats_counts_entries_per_namespace(cache):
    cache.put("frequency", "hr_frequency", {})
    cache.put("translations", "a", "1")
    cache.put("translations", "b", "2")

    assert cache.stats() == {"frequency": 1, "translations": 2}


def test_stats_on_missing_root(tmp_path):
    assert CacheStore(tmp_path / "nothing").stats() == {}
