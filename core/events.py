# Nombre de archivo: events.py
# Ubicación de archivo: core/events.py
# Descripción: Feed de cambios en memoria para suscripciones en vivo a avisos y cuadrillas

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Set

logger = logging.getLogger(__name__)

COLLECTIONS = ("posts", "squads")


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    collection: str
    kind: str  # created | updated | deleted | ingested
    doc_id: str | None = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Subscription:
    """Cola de eventos de una colección para un único consumidor."""

    def __init__(self, feed: "ChangeFeed", collection: str, max_queue: int) -> None:
        self.collection = collection
        self._feed = feed
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=max_queue)

    def offer(self, event: ChangeEvent) -> bool:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # Consumidor lento: con un evento pendiente alcanza para que refresque
            return False
        return True

    async def get(self) -> ChangeEvent:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._feed._discard(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        return await self.get()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeFeed:
    """Difusión de eventos por colección a suscriptores asyncio del mismo proceso."""

    def __init__(self, max_queue: int = 100) -> None:
        self._max_queue = max_queue
        self._subscribers: Dict[str, Set[Subscription]] = {c: set() for c in COLLECTIONS}

    def _check(self, collection: str) -> None:
        if collection not in self._subscribers:
            raise ValueError(f"Colección desconocida: {collection}")

    def subscribe(self, collection: str) -> Subscription:
        """Registra la suscripción de inmediato (antes de enviar la instantánea inicial)."""
        self._check(collection)
        subscription = Subscription(self, collection, self._max_queue)
        self._subscribers[collection].add(subscription)
        return subscription

    def _discard(self, subscription: Subscription) -> None:
        self._subscribers[subscription.collection].discard(subscription)

    def publish(self, event: ChangeEvent) -> int:
        """Encola el evento para cada suscriptor; devuelve a cuántos llegó."""
        self._check(event.collection)
        delivered = 0
        for subscription in list(self._subscribers[event.collection]):
            if subscription.offer(event):
                delivered += 1
            else:
                logger.debug("action=change_feed queue_full collection=%s", event.collection)
        return delivered

    def subscriber_count(self, collection: str) -> int:
        self._check(collection)
        return len(self._subscribers[collection])


_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    return _feed


__all__ = ["ChangeEvent", "ChangeFeed", "Subscription", "get_change_feed", "COLLECTIONS"]
