"""Badge event publishing for the HUB Empresas service.

Events are recorded in the badge_events table and, when a handler is
attached, forwarded synchronously to badge evaluation within the same
request.
"""

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from hub_empresas.core.interfaces import IBadgeEventRepository
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[uuid.UUID, str, dict[str, Any], uuid.UUID], Awaitable[Any]]


class BadgeEventPublisher:
    """Records badge-triggering events and dispatches them to a handler.

    Args:
        event_repository: Repository for the badge_events table.
        handler: Optional coroutine called with (company_id, event_type,
            event_data, event_id) after the event is recorded.
    """

    def __init__(
        self,
        event_repository: IBadgeEventRepository,
        handler: EventHandler | None = None,
    ) -> None:
        self._event_repo = event_repository
        self._handler = handler

    async def publish(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
    ) -> uuid.UUID:
        """Record an event and dispatch it.

        Args:
            company_id: Company the event belongs to.
            event_type: One of the badge event types.
            event_data: Event payload.

        Returns:
            The id of the recorded event.

        Raises:
            StoreError: If the event cannot be recorded.
        """
        event = await self._event_repo.create(
            company_id=company_id,
            event_type=event_type,
            event_data=event_data,
        )

        logger.debug(
            "Badge event published",
            event_id=str(event.id),
            company_id=str(company_id),
            event_type=event_type,
        )

        if self._handler is not None:
            await self._handler(company_id, event_type, event_data, event.id)
        return event.id
