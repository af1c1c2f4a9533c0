"""
Resolution Cache
Per-signature memoization for expensive async derivations (network fetches
followed by geometry algebra)
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class ResolutionCache:
    """
    Unbounded async memo keyed by a canonical signature string.

    Completed values live for the process lifetime. While a computation is in
    flight, duplicate calls for the same key await the pending result instead
    of starting a second one. Failed computations are not cached.
    """

    def __init__(self, name: str = "resolution"):
        self.name = name
        self._values: Dict[str, Any] = {}
        self._pending: Dict[str, asyncio.Future] = {}
        self.cache_stats = {
            "hits": 0,
            "misses": 0,
            "joined": 0,
        }

    async def get_or_compute(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for key, computing it with factory on a miss

        Args:
            key: Canonical signature
            factory: Zero-argument coroutine function producing the value

        Returns:
            The cached or freshly computed value
        """
        if key in self._values:
            self.cache_stats["hits"] += 1
            logger.debug(f"💾 {self.name} cache hit")
            return self._values[key]

        pending = self._pending.get(key)
        if pending is not None:
            self.cache_stats["joined"] += 1
            logger.debug(f"⏳ {self.name} joining in-flight computation")
            return await asyncio.shield(pending)

        self.cache_stats["misses"] += 1
        logger.debug(f"📥 {self.name} cache miss")

        future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            value = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure does not warn on GC
            future.exception()
            raise
        except BaseException:
            # KeyboardInterrupt / SystemExit: release joiners before unwinding
            future.cancel()
            raise
        finally:
            self._pending.pop(key, None)

        self._values[key] = value
        future.set_result(value)
        return value

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def clear(self) -> None:
        """Drop completed entries (in-flight computations are unaffected)"""
        self._values.clear()
        logger.info(f"🧹 Cleared {self.name} cache")
