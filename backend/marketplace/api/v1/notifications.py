"""
Notification Endpoints
Real-time booking events over WebSocket.

Endpoints:
- WS /notifications/ws?token=<access token>

Each connection joins the caller's room in the ConnectionManager and
receives JSON messages:

    {"event": "bookingUpdate", "payload": {...}, "sent_at": "..."}

Nothing is replayed on connect: events published while the client was
offline are lost.
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from marketplace.api.v1.deps import get_notifier
from marketplace.db.session import get_db
from marketplace.services.auth_service import resolve_token_user
from marketplace.services.notification_service import ConnectionManager, Notifier

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"]
)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Client messages are ignored; this only returns when the socket closes
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def notifications_ws(
    websocket: WebSocket,
    token: str = Query(...),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    user = await run_in_threadpool(resolve_token_user, db, token)
    db.close()
    if user is None or not isinstance(notifier, ConnectionManager):
        logger.info("[Notify] WebSocket refused: invalid token or no live transport")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = notifier.subscribe(user.id)
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        while True:
            getter = asyncio.create_task(subscription.get())
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        # Retrieve the receiver outcome: disconnect or cancellation
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect):
            await receiver
        notifier.unsubscribe(subscription)
