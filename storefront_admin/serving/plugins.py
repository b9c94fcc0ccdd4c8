"""
Recommended Plugin Client

Fetches the recommended plugin list from the plugin repository for the
dashboard. The fetch is best-effort: any transport, TLS, HTTP status or
payload problem yields an empty list so the dashboard still renders.
"""

from typing import Any, Dict, List, Optional, Union

import requests
import structlog
from fastapi import Depends
from redis.exceptions import RedisError
from starlette.concurrency import run_in_threadpool

from storefront_admin.config import Settings
from storefront_admin.serving.cache import is_redis_ready, plugins_cache
from storefront_admin.serving.dependencies import get_app_settings

logger = structlog.get_logger(__name__)

CACHE_KEY = "recommended"


class PluginRepositoryClient:
    """
    Client for the plugin repository's recommendation endpoint.

    Args:
        base_url: Repository API root
        timeout: Connect/read timeout in seconds
        verify: True for the default trust store, or a CA bundle path.
            Certificate verification is never disabled.
        cache_ttl: Seconds a successful result stays cached; 0 disables caching
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        verify: Union[bool, str] = True,
        cache_ttl: int = 0,
    ):
        self.url = f"{base_url.rstrip('/')}/plugins/recommended"
        self.timeout = timeout
        self.verify = verify or True
        self.cache_ttl = cache_ttl

    def fetch(self) -> List[Dict[str, Any]]:
        """Blocking GET of the recommended plugin list."""
        try:
            response = requests.get(
                self.url,
                timeout=self.timeout,
                verify=self.verify,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            # includes invalid JSON bodies (requests.exceptions.JSONDecodeError)
            logger.warning(
                "Recommended plugin fetch failed",
                url=self.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        if not isinstance(payload, list):
            logger.warning(
                "Recommended plugin payload is not a list",
                url=self.url,
                payload_type=type(payload).__name__,
            )
            return []

        plugins = [item for item in payload if isinstance(item, dict)]
        logger.info("Recommended plugins fetched", url=self.url, count=len(plugins))
        return plugins

    async def recommended(self) -> List[Dict[str, Any]]:
        """Cached recommendation list; fetches in the threadpool on a miss."""
        cached = await self._cached()
        if cached is not None:
            return cached

        plugins = await run_in_threadpool(self.fetch)

        if plugins:
            await self._store(plugins)
        return plugins

    async def _cached(self) -> Optional[List[Dict[str, Any]]]:
        if not self.cache_ttl or not is_redis_ready():
            return None
        try:
            cached = await plugins_cache.get(CACHE_KEY)
        except RedisError as e:
            logger.warning("Plugin cache read failed", error=str(e))
            return None
        if isinstance(cached, list):
            logger.debug("Returning cached recommended plugins")
            return cached
        return None

    async def _store(self, plugins: List[Dict[str, Any]]) -> None:
        if not self.cache_ttl or not is_redis_ready():
            return
        try:
            await plugins_cache.set(CACHE_KEY, plugins, ttl=self.cache_ttl)
        except RedisError as e:
            logger.warning("Plugin cache write failed", error=str(e))


def get_plugin_client(
    settings: Settings = Depends(get_app_settings),
) -> PluginRepositoryClient:
    """FastAPI dependency building the client from settings."""
    return PluginRepositoryClient(
        base_url=settings.admin.package_repo_url,
        timeout=settings.admin.plugin_fetch_timeout,
        verify=settings.admin.plugin_verify,
        cache_ttl=settings.admin.plugin_cache_ttl,
    )
