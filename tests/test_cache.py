from pathlib import Path

from projkit.cache import ImageCache, cache_key


def test_lookup_store_and_counters(tmp_path: Path) -> None:
    cache = ImageCache(tmp_path / "cache")
    key = cache_key(b"raw", "v1")

    assert cache.lookup(key) is None
    cache.store(key, b"optimized")
    assert cache.lookup(key) == b"optimized"
    assert (cache.hits, cache.misses) == (1, 1)
    assert (tmp_path / "cache" / key[:2] / key).is_file()


def test_key_depends_on_salt() -> None:
    assert cache_key(b"raw", "v1") != cache_key(b"raw", "v2")
    assert cache_key(b"raw", "v1") == cache_key(b"raw", "v1")


def test_clear_all_is_idempotent(tmp_path: Path) -> None:
    cache = ImageCache(tmp_path / "cache")
    key = cache_key(b"raw")
    cache.store(key, b"x")

    cache.clear_all()
    cache.clear_all()

    assert not (tmp_path / "cache").exists()
    assert cache.lookup(key) is None
