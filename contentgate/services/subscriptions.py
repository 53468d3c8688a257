"""Owned registry of live change subscriptions."""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from contentgate.config import get_settings
from contentgate.exceptions import NotFoundError, RepositoryError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Subscription:
    """A change listener consuming one query's change stream on its own thread."""

    id: str
    query: str
    params: dict[str, Any]
    stream: Any
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    events_received: int = 0
    error: Optional[str] = None
    on_event: Optional[Callable[[dict[str, Any]], None]] = None
    _thread: Optional[threading.Thread] = field(default=None, repr=False)

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._consume, name=f"subscription-{self.id}", daemon=True
        )
        self._thread.start()
        logger.info(f"Subscription {self.id} started for query: {self.query}")

    def stop(self) -> None:
        self.stream.close()
        logger.info(f"Subscription {self.id} stopped")

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _consume(self) -> None:
        try:
            for event in self.stream:
                self.events_received += 1
                self.last_activity = time.time()
                logger.info(
                    f"Subscription {self.id} received {event.get('type')} "
                    f"for {event.get('documentId', '-')}"
                )
                if self.on_event is not None:
                    self.on_event(event)
        except RepositoryError as e:
            self.error = str(e)
            logger.error(f"Subscription {self.id} stream failed: {e}")
        except Exception:
            logger.exception(f"Subscription {self.id} event handler failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "subscriptionId": self.id,
            "query": self.query,
            "params": self.params,
            "active": self.is_active,
            "eventsReceived": self.events_received,
            "createdAt": self.created_at,
            "lastActivity": self.last_activity,
            "error": self.error,
        }


class SubscriptionRegistry:
    """
    Tracks every open change subscription and owns its shutdown.

    Subscriptions stay open until ``unsubscribe`` is called, they sit idle
    longer than ``idle_timeout`` seconds and ``evict_idle`` runs, or
    ``close_all`` is called on shutdown.
    """

    def __init__(self, idle_timeout: float | None = None):
        """
        Initialize the registry.

        Args:
            idle_timeout: Seconds without events after which a subscription is
                          evicted. If None, reads from settings (unset disables
                          eviction).
        """
        self.idle_timeout = (
            idle_timeout if idle_timeout is not None else get_settings().subscription_idle_timeout
        )
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        client: Any,
        query: str,
        params: dict[str, Any] | None = None,
        on_event: Callable[[dict[str, Any]], None] | None = None,
    ) -> Subscription:
        """
        Open a change stream for documents matching ``query``.

        Args:
            client: Repository client exposing listen()
            query: Filter query for the documents to watch
            params: Optional query parameters
            on_event: Optional callback run on the listener thread per event

        Returns:
            The started subscription
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query cannot be empty", "query")
        params = params or {}
        subscription = Subscription(
            id=str(uuid.uuid4()),
            query=query,
            params=params,
            stream=client.listen(query, params),
            on_event=on_event,
        )
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        subscription.start()
        self.evict_idle()
        return subscription

    def unsubscribe(self, subscription_id: str) -> bool:
        """Close and forget a subscription. Returns False if it wasn't registered."""
        with self._lock:
            subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            return False
        subscription.stop()
        return True

    def get(self, subscription_id: str) -> Subscription:
        """
        Get a subscription by ID.

        Raises:
            NotFoundError: If no such subscription is registered
        """
        with self._lock:
            subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)
        return subscription

    def evict_idle(self, now: float | None = None) -> list[str]:
        """
        Close subscriptions idle longer than ``idle_timeout``.

        Returns:
            IDs of the evicted subscriptions
        """
        if not self.idle_timeout:
            return []
        now = now if now is not None else time.time()
        with self._lock:
            idle = [
                sid for sid, sub in self._subscriptions.items()
                if now - sub.last_activity > self.idle_timeout
            ]
        evicted = [sid for sid in idle if self.unsubscribe(sid)]
        if evicted:
            logger.info(f"Evicted {len(evicted)} idle subscription(s)")
        return evicted

    def close_all(self) -> None:
        """Close every subscription (used on shutdown)."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.stop()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # Defined last so the method name doesn't shadow the builtin in annotations above
    def list(self) -> "list[Subscription]":
        with self._lock:
            return list(self._subscriptions.values())


# Global registry instance
_registry: SubscriptionRegistry | None = None


def get_subscription_registry() -> SubscriptionRegistry:
    """Get or create the process-wide subscription registry."""
    global _registry
    if _registry is None:
        _registry = SubscriptionRegistry()
    return _registry


def reset_subscription_registry() -> None:
    """Close every subscription and drop the registry (useful for testing)."""
    global _registry
    if _registry is not None:
        _registry.close_all()
    _registry = None
