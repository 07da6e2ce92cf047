# Nombre de archivo: live.py
# Ubicación de archivo: api/app/routes/live.py
# Descripción: WebSockets de suscripción en vivo (instantánea completa de avisos o cuadrillas por cambio)

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from api.app.deps import get_feed
from core.events import COLLECTIONS, ChangeFeed
from core.services.posts import PostService
from core.services.squad_ingest import list_squads
from db.session import get_session_factory

router = APIRouter(tags=["live"])
logger = logging.getLogger(__name__)


def _snapshot(factory: sessionmaker, collection: str) -> List[Dict[str, Any]]:
    # Sesión por instantánea: el socket no retiene conexiones del pool entre envíos
    with factory() as session:
        if collection == "posts":
            return [post.to_dict() for post in PostService(session).list_posts()]
        return [squad.to_dict() for squad in list_squads(session)]


@router.websocket("/ws/{collection}")
async def live_collection(
    websocket: WebSocket,
    collection: str,
    factory: sessionmaker = Depends(get_session_factory),
    feed: ChangeFeed = Depends(get_feed),
) -> None:
    if collection not in COLLECTIONS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()
    subscription = feed.subscribe(collection)
    try:
        items = await run_in_threadpool(_snapshot, factory, collection)
        await websocket.send_json({"collection": collection, "items": items})
        while True:
            next_event = asyncio.ensure_future(subscription.get())
            client_msg = asyncio.ensure_future(websocket.receive())
            done, pending = await asyncio.wait({next_event, client_msg}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            if client_msg in done:
                if client_msg.result().get("type") == "websocket.disconnect":
                    break
                continue
            event = next_event.result()
            items = await run_in_threadpool(_snapshot, factory, collection)
            await websocket.send_json(
                {
                    "collection": collection,
                    "event": event.kind,
                    "docId": event.doc_id,
                    "items": items,
                }
            )
    except WebSocketDisconnect:
        logger.debug("action=live_ws disconnect collection=%s", collection)
    finally:
        subscription.close()
