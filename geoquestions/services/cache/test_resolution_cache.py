from __future__ import annotations

import asyncio

import pytest

from .resolution_cache import ResolutionCache


def test_second_call_is_a_hit() -> None:
    cache = ResolutionCache("test")
    calls = []

    async def factory():
        calls.append(1)
        return {"value": 1}

    async def run():
        first = await cache.get_or_compute("k", factory)
        second = await cache.get_or_compute("k", factory)
        return first, second

    first, second = asyncio.run(run())
    assert first is second
    assert len(calls) == 1
    assert cache.cache_stats["hits"] == 1
    assert "k" in cache


def test_concurrent_calls_share_one_computation() -> None:
    cache = ResolutionCache("test")
    calls = []

    async def factory():
        calls.append(1)
        await asyncio.sleep(0.01)
        return object()

    async def run():
        return await asyncio.gather(*(cache.get_or_compute("k", factory) for _ in range(5)))

    results = asyncio.run(run())
    assert len(calls) == 1
    assert all(r is results[0] for r in results)
    assert cache.cache_stats["joined"] == 4


def test_failures_are_not_cached() -> None:
    cache = ResolutionCache("test")
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        return "ok"

    async def run():
        with pytest.raises(RuntimeError):
            await cache.get_or_compute("k", flaky)
        return await cache.get_or_compute("k", flaky)

    assert asyncio.run(run()) == "ok"
    assert len(attempts) == 2


def test_distinct_keys_compute_separately() -> None:
    cache = ResolutionCache("test")

    async def run():
        a = await cache.get_or_compute("a", lambda: asyncio.sleep(0, result=1))
        b = await cache.get_or_compute("b", lambda: asyncio.sleep(0, result=2))
        return a, b

    assert asyncio.run(run()) == (1, 2)
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0


class Abort(BaseException):
    pass


def test_interrupted_computation_releases_joiners() -> None:
    cache = ResolutionCache("test")

    async def run():
        started = asyncio.Event()
        release = asyncio.Event()

        async def factory():
            started.set()
            await release.wait()
            raise Abort()

        owner = asyncio.create_task(cache.get_or_compute("k", factory))
        await started.wait()
        joiner = asyncio.create_task(cache.get_or_compute("k", factory))
        await asyncio.sleep(0)
        release.set()

        with pytest.raises(Abort):
            await owner
        done, _ = await asyncio.wait({joiner}, timeout=1)
        return joiner, done

    joiner, done = asyncio.run(run())
    assert joiner in done
    assert joiner.cancelled()
    assert "k" not in cache
