"""
Overpass Client
Blocking HTTP transport to the Overpass interpreter, exposed as coroutines
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests

from ...config import settings

logger = logging.getLogger(__name__)

# Thread pool for blocking HTTP calls
_thread_pool: Optional[ThreadPoolExecutor] = None


def get_thread_pool() -> ThreadPoolExecutor:
    """Get or create the shared thread pool for Overpass requests."""
    global _thread_pool
    if _thread_pool is None:
        _thread_pool = ThreadPoolExecutor(
            max_workers=settings.OVERPASS_MAX_WORKERS,
            thread_name_prefix="overpass",
        )
    return _thread_pool


class OverpassClient:
    """Posts Overpass QL and returns the decoded JSON payload"""

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        self.url = url or settings.OVERPASS_API_URL
        self.timeout = timeout or settings.OVERPASS_REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def query(self, query: str) -> Dict[str, Any]:
        logger.debug(f"📡 Overpass request to {self.url}")
        resp = self.session.post(self.url, data={"data": query}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_json(self, url: str) -> Any:
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def query_async(self, query: str) -> Dict[str, Any]:
        """Run query() on the shared thread pool so the event loop stays free"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(get_thread_pool(), self.query, query)

    async def get_json_async(self, url: str) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(get_thread_pool(), self.get_json, url)
