"""Process-wide cache of the active badge catalog.

The catalog is admin-managed and read on every badge evaluation batch, so it
is loaded once and reused until the TTL expires or an admin edit calls
``invalidate()``. Concurrent refreshes are serialised by an asyncio lock so
only one request reloads an expired catalog.

Services see the cache through SessionBoundCatalog, which holds an admin
edit's invalidation until the request transaction commits.
"""

import asyncio
import time
from collections.abc import Callable

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from hub_empresas.core.badge_rules import BadgeDefinition, badge_from_record
from hub_empresas.core.interfaces import IBadgeRepository
from hub_empresas.observability import get_logger
from hub_empresas.settings import get_settings

logger = get_logger(__name__)


class BadgeCatalogCache:
    """TTL cache of resolved BadgeDefinitions.

    Args:
        ttl_seconds: Seconds a loaded catalog stays fresh. 0 disables caching.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._badges: list[BadgeDefinition] | None = None
        self._loaded_at: float = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return (
            self._badges is not None
            and self._ttl_seconds > 0
            and self._clock() - self._loaded_at < self._ttl_seconds
        )

    async def get(self, repository: IBadgeRepository) -> list[BadgeDefinition]:
        """Return the active catalog, loading it through ``repository`` if stale.

        Args:
            repository: Badge repository used for (re)loading.

        Returns:
            Active badges with their resolved rules.

        Raises:
            StoreError: If the catalog cannot be loaded.
        """
        if self._is_fresh():
            return self._badges  # type: ignore[return-value]

        async with self._lock:
            if self._is_fresh():
                return self._badges  # type: ignore[return-value]

            records = await repository.list_active()
            self._badges = [badge_from_record(record) for record in records]
            self._loaded_at = self._clock()

            logger.info("Badge catalog loaded", badge_count=len(self._badges))
            return self._badges

    def invalidate(self) -> None:
        """Drop the cached catalog so the next read reloads it."""
        self._badges = None
        logger.debug("Badge catalog cache invalidated")


class SessionBoundCatalog:
    """Catalog view that defers invalidation until ``session`` commits.

    Args:
        cache: Shared catalog cache.
        session: Request session whose commit publishes the edit.
    """

    def __init__(self, cache: BadgeCatalogCache, session: AsyncSession) -> None:
        self._cache = cache
        self._session = session.sync_session
        self._pending = False
        self._listening = False

    async def get(self, repository: IBadgeRepository) -> list[BadgeDefinition]:
        return await self._cache.get(repository)

    def invalidate(self) -> None:
        """Invalidate the shared cache once the outermost transaction commits."""
        self._pending = True
        if not self._listening:
            event.listen(self._session, "after_commit", self._on_commit)
            self._listening = True

    def _on_commit(self, session: Session) -> None:
        # Savepoint releases also fire after_commit.
        if not self._pending or session.in_nested_transaction():
            return
        self._pending = False
        self._cache.invalidate()


_catalog_cache: BadgeCatalogCache | None = None


def get_badge_catalog_cache() -> BadgeCatalogCache:
    """Return the process-wide catalog cache, creating it on first use."""
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = BadgeCatalogCache(ttl_seconds=get_settings().badge_catalog_ttl_seconds)
    return _catalog_cache
