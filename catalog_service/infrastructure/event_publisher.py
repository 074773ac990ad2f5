"""Outbound delivery of catalog domain events.

Publishing is fire-and-forget from the catalog's point of view: one
attempt, no retry and no outbox. Callers log and swallow failures.
"""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from catalog_service.domain.events import ProductCreated
from catalog_service.infrastructure.config import settings

logger = structlog.get_logger()


class EventPublishError(Exception):
    """Raised when the messaging collaborator rejects or never receives an event."""

    def __init__(self, message: str, topic: str, key: str) -> None:
        super().__init__(message)
        self.topic = topic
        self.key = key


class EventPublisher(Protocol):
    """Delivers a ``ProductCreated`` notification on a fixed channel."""

    async def publish(self, event: ProductCreated) -> None: ...


# ============================================================================
# Publishers
# ============================================================================


@dataclass
class PublishedMessage:
    """A message as handed to the messaging collaborator."""

    topic: str
    key: str
    value: dict[str, Any]


class InMemoryEventPublisher:
    """Keeps published messages in memory.

    Used by tests and local runs without a message bus.
    """

    def __init__(self, topic: str | None = None) -> None:
        self.topic = topic or settings.product_created_topic
        self.messages: list[PublishedMessage] = []

    async def publish(self, event: ProductCreated) -> None:
        self.messages.append(
            PublishedMessage(topic=self.topic, key=event.key, value=event.to_message())
        )

    def clear(self) -> None:
        self.messages.clear()


class LogEventPublisher:
    """Writes each event to the structured log instead of a bus."""

    def __init__(self, topic: str | None = None) -> None:
        self.topic = topic or settings.product_created_topic

    async def publish(self, event: ProductCreated) -> None:
        logger.info(
            "Event published",
            topic=self.topic,
            key=event.key,
            message=event.to_message(),
        )


class HttpEventPublisher:
    """Posts events to an HTTP bridge in front of the message bus.

    The request body is ``{"topic": ..., "key": ..., "value": {...}}``.
    """

    def __init__(
        self,
        url: str | None = None,
        topic: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize publisher.

        Args:
            url: Bridge endpoint.
            topic: Channel name events are sent to.
            timeout: Request timeout in seconds.
            client: Optional pre-built client (tests inject a mock transport).
        """
        self.url = url or settings.event_bus_url
        self.topic = topic or settings.product_created_topic
        self.timeout = timeout or settings.event_publish_timeout_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def publish(self, event: ProductCreated) -> None:
        """Send one event.

        Raises:
            EventPublishError: On transport failure or non-2xx response.
        """
        client = await self._get_client()
        body = {"topic": self.topic, "key": event.key, "value": event.to_message()}
        try:
            response = await client.post(self.url, json=body)
        except httpx.HTTPError as e:
            raise EventPublishError(
                f"Event bus unreachable: {e}", topic=self.topic, key=event.key
            ) from e

        if response.is_error:
            raise EventPublishError(
                f"Event bus returned {response.status_code}",
                topic=self.topic,
                key=event.key,
            )

        logger.debug(
            "Event delivered",
            topic=self.topic,
            key=event.key,
            status_code=response.status_code,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# ============================================================================
# Factory
# ============================================================================


_publisher: EventPublisher | None = None


def get_event_publisher() -> EventPublisher:
    """Get the configured event publisher singleton."""
    global _publisher
    if _publisher is None:
        if settings.event_publisher == "http":
            _publisher = HttpEventPublisher()
        elif settings.event_publisher == "memory":
            _publisher = InMemoryEventPublisher()
        else:
            _publisher = LogEventPublisher()
    return _publisher


def set_event_publisher(publisher: EventPublisher | None) -> None:
    """Replace the publisher singleton (for testing)."""
    global _publisher
    _publisher = publisher
