"""
Unit tests for fingerprinting and the persisted solution cache.
"""

import json

from captcha_recognition.cache import SolutionCache, fingerprint


def read_cache_file(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class TestFingerprint:
    """Test cache key derivation."""

    def test_equal_inputs_equal_keys(self, encoded_glyphs):
        assert fingerprint(encoded_glyphs) == fingerprint(str(encoded_glyphs))

    def test_different_inputs_different_keys(self):
        keys = {fingerprint(f"data:image/png;base64,QUJD{i}") for i in range(1000)}
        assert len(keys) == 1000

    def test_known_value_is_stable(self):
        # Persisted cache files depend on this staying the same across runs
        assert fingerprint("QUJD") == "3300afa7df5ae2c0"

    def test_prefix_ignored(self):
        assert fingerprint("data:image/png;base64,QUJD") == fingerprint("QUJD")
        assert fingerprint("data:image/gif;base64,QUJD") == fingerprint("QUJD")


class TestSolutionCache:
    """Test lookup, insert and persistence."""

    def test_insert_and_get(self):
        cache = SolutionCache(None)
        assert cache.get("k") is None
        assert cache.insert("k", "ABC")
        assert cache.get("k") == "ABC"
        assert "k" in cache
        assert len(cache) == 1

    def test_existing_key_not_replaced(self):
        cache = SolutionCache(None)
        cache.insert("k", "ABC")
        assert not cache.insert("k", "XYZ")
        assert cache.get("k") == "ABC"
        assert len(cache) == 1

    def test_missing_file_starts_empty(self, cache_file):
        cache = SolutionCache(str(cache_file))
        assert cache.load() == 0
        assert len(cache) == 0

    def test_corrupt_file_starts_empty(self, cache_file):
        cache_file.write_text("{not json", encoding="utf-8")
        cache = SolutionCache(str(cache_file))
        assert cache.load() == 0
        assert len(cache) == 0

    def test_unexpected_layout_starts_empty(self, cache_file):
        cache_file.write_text(json.dumps(["a", "b"]), encoding="utf-8")
        assert SolutionCache(str(cache_file)).load() == 0
        cache_file.write_text(json.dumps({"k": 5}), encoding="utf-8")
        assert SolutionCache(str(cache_file)).load() == 0

    def test_load_existing_entries(self, cache_file):
        cache_file.write_text(json.dumps({"a": "ABC", "b": "XYZ"}), encoding="utf-8")
        cache = SolutionCache(str(cache_file))
        assert cache.load() == 2
        assert cache.get("b") == "XYZ"

    def test_flush_cadence(self, cache_file):
        cache = SolutionCache(str(cache_file), flush_interval=5)
        for i in range(4):
            cache.insert(f"key{i}", f"TXT{i}")
        assert not cache_file.exists()

        cache.insert("key4", "TXT4")
        first_flush = read_cache_file(cache_file)
        assert first_flush == {f"key{i}": f"TXT{i}" for i in range(5)}

        cache.insert("key5", "TXT5")
        assert read_cache_file(cache_file) == first_flush

        for i in range(6, 10):
            cache.insert(f"key{i}", f"TXT{i}")
        assert read_cache_file(cache_file) == {f"key{i}": f"TXT{i}" for i in range(10)}

    def test_duplicate_insert_does_not_flush(self, cache_file):
        cache = SolutionCache(str(cache_file), flush_interval=2)
        cache.insert("a", "ABC")
        cache.insert("b", "DEF")
        assert read_cache_file(cache_file) == {"a": "ABC", "b": "DEF"}
        cache_file.unlink()
        cache.insert("b", "DEF")
        assert not cache_file.exists()

    def test_explicit_flush(self, cache_file):
        cache = SolutionCache(str(cache_file))
        cache.insert("a", "ABC")
        assert cache.flush()
        assert read_cache_file(cache_file) == {"a": "ABC"}

    def test_flush_round_trip_through_new_instance(self, cache_file):
        cache = SolutionCache(str(cache_file))
        cache.insert("a", "ABC")
        cache.flush()
        reloaded = SolutionCache(str(cache_file))
        reloaded.load()
        assert reloaded.snapshot() == {"a": "ABC"}

    def test_no_temporary_files_left(self, cache_file):
        cache = SolutionCache(str(cache_file), flush_interval=1)
        cache.insert("a", "ABC")
        cache.insert("b", "DEF")
        assert [p.name for p in cache_file.parent.iterdir()] == [cache_file.name]

    def test_unwritable_location_ignored(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = SolutionCache(str(blocker / "cache.json"), flush_interval=1)
        assert cache.insert("a", "ABC")
        assert not cache.flush()
        assert cache.get("a") == "ABC"

    def test_memory_only_cache(self):
        cache = SolutionCache(None, flush_interval=1)
        assert cache.insert("a", "ABC")
        assert cache.load() == 0
        assert not cache.flush()
