from __future__ import annotations

import threading
import time

import pytest

from src.domain.config import ConfigEntry
from src.services.config_cache import ConfigCache

pytestmark = pytest.mark.unit


def test_new_cache_is_empty() -> None:
    cache = ConfigCache()

    assert cache.is_empty


def test_ensure_loads_once_and_lowercases_keys() -> None:
    cache = ConfigCache()
    calls = []

    def loader() -> list[ConfigEntry]:
        calls.append(1)
        return [ConfigEntry("RssSyncInterval", "30"), ConfigEntry("retention", "2")]

    first = cache.ensure(loader)
    second = cache.ensure(loader)

    assert len(calls) == 1
    assert first is second
    assert dict(first) == {"rsssyncinterval": "30", "retention": "2"}
    assert not cache.is_empty


def test_snapshot_is_read_only() -> None:
    cache = ConfigCache()
    snapshot = cache.ensure(lambda: [ConfigEntry("a", "1")])

    with pytest.raises(TypeError):
        snapshot["a"] = "2"  # type: ignore[index]


def test_empty_store_is_loaded_once() -> None:
    cache = ConfigCache()
    calls = []

    def loader() -> list[ConfigEntry]:
        calls.append(1)
        return []

    cache.ensure(loader)
    cache.ensure(loader)

    assert calls == [1]
    assert not cache.is_empty


def test_clear_forces_full_reload() -> None:
    cache = ConfigCache()
    rows = [[ConfigEntry("a", "1")], [ConfigEntry("b", "2")]]
    calls = []

    def loader() -> list[ConfigEntry]:
        calls.append(1)
        return rows[len(calls) - 1]

    cache.ensure(loader)
    cache.clear()

    assert cache.is_empty
    assert dict(cache.ensure(loader)) == {"b": "2"}
    assert len(calls) == 2


def test_snapshot_survives_clear_for_its_holder() -> None:
    cache = ConfigCache()
    snapshot = cache.ensure(lambda: [ConfigEntry("a", "1")])

    cache.clear()

    assert snapshot["a"] == "1"


def test_failed_load_leaves_cache_empty() -> None:
    cache = ConfigCache()

    def loader() -> list[ConfigEntry]:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.ensure(loader)
    assert cache.is_empty


def test_concurrent_ensure_loads_once() -> None:
    cache = ConfigCache()
    calls = []
    start = threading.Barrier(8)

    def loader() -> list[ConfigEntry]:
        calls.append(1)
        time.sleep(0.01)
        return [ConfigEntry("a", "1")]

    def worker() -> None:
        start.wait()
        cache.ensure(loader)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert calls == [1]


def test_clear_waits_for_running_load() -> None:
    cache = ConfigCache()
    loading = threading.Event()
    release = threading.Event()

    def slow_loader() -> list[ConfigEntry]:
        loading.set()
        release.wait(timeout=5)
        return [ConfigEntry("stale", "1")]

    loader_thread = threading.Thread(target=cache.ensure, args=(slow_loader,))
    loader_thread.start()
    loading.wait(timeout=5)

    clear_thread = threading.Thread(target=cache.clear)
    clear_thread.start()
    release.set()

    loader_thread.join()
    clear_thread.join()

    assert cache.is_empty


def test_public_surface_is_state_and_transitions() -> None:
    cache = ConfigCache()

    public = {name for name in dir(cache) if not name.startswith("_")}

    assert public == {"is_empty", "ensure", "clear"}
    with pytest.raises(TypeError):
        len(cache)  # type: ignore[arg-type]
