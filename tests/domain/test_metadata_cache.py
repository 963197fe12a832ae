import threading

from storekit.domain.metadata_cache import MetadataCache


def test_set_and_get_return_copies():
    cache = MetadataCache()
    stored = cache.set("f", {"a": "1"})
    stored["a"] = "changed"

    fetched = cache.get("f")
    fetched["b"] = "2"

    assert cache.get("f") == {"a": "1"}


def test_values_are_stringified():
    cache = MetadataCache()

    assert cache.set("f", {"count": 3}) == {"count": "3"}


def test_missing_key():
    cache = MetadataCache()

    assert cache.get("nope") is None
    assert "nope" not in cache
    assert cache.pop("nope") is None


def test_merged_overlays_cached_values():
    cache = MetadataCache()
    cache.set("f", {"a": "local"})

    assert cache.merged("f", {"a": "remote", "b": "remote"}) == {
        "a": "local",
        "b": "remote",
    }
    assert cache.merged("other", {"b": "remote"}) == {"b": "remote"}


def test_concurrent_writers():
    cache = MetadataCache()

    def writer(n):
        for i in range(200):
            cache.set(f"k{n}-{i}", {"i": str(i)})

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 800
