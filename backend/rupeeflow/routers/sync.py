"""
Live snapshot sync over a WebSocket.

The client connects with ``?token=<access token>`` (or the login cookie) and
receives ``{"kind": "transactions" | "budgets", "user_id": ..., "items": [...]}``
every time either store changes for that user. Sending ``{"token": "..."}``
switches the connection to another account. Sign-out ends with a
``{"kind": "closed"}`` message and the socket is closed.
"""
import asyncio
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from rupeeflow.dependencies import ACCESS_COOKIE
from rupeeflow.errors import AuthError, NotFoundError
from rupeeflow.models.auth import User
from rupeeflow.state import AppState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


def _authenticate(state: AppState, token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    try:
        return state.identity.authenticate(token)
    except (AuthError, NotFoundError):
        return None


@router.websocket("/sync")
async def sync(websocket: WebSocket, token: Optional[str] = None):
    state: AppState = websocket.app.state.rupeeflow
    user = await run_in_threadpool(_authenticate, state, token or websocket.cookies.get(ACCESS_COOKIE))
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    key = uuid.uuid4().hex
    # Bumped on every account switch; deliveries from older sessions are dropped
    current = {"generation": 0, "user_id": user.id}

    def make_listener(generation: int, user_id: str):
        def listener(kind, items):
            loop.call_soon_threadsafe(queue.put_nowait, (generation, user_id, kind, list(items)))
        return listener

    async def open_session(user_id: str) -> None:
        current["generation"] += 1
        current["user_id"] = user_id
        listener = make_listener(current["generation"], user_id)
        await run_in_threadpool(state.sessions.open, key, user_id, listener)

    async def send_snapshots() -> None:
        while True:
            generation, user_id, kind, items = await queue.get()
            if generation != current["generation"]:
                continue
            if kind == "closed":
                await websocket.send_json({"kind": "closed", "user_id": user_id, "items": []})
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
                return
            await websocket.send_json({
                "kind": kind,
                "user_id": user_id,
                "items": [item.model_dump(mode="json") for item in items],
            })

    async def receive_messages() -> None:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"kind": "error", "detail": "Messages must be JSON objects"})
                continue
            new_token = message.get("token") if isinstance(message, dict) else None
            if not new_token:
                continue
            new_user = await run_in_threadpool(_authenticate, state, new_token)
            if new_user is None:
                await websocket.send_json({"kind": "error", "detail": "Could not validate credentials"})
                continue
            logger.info("Sync account switch", extra={"from_user": current["user_id"], "to_user": new_user.id})
            await open_session(new_user.id)

    await open_session(user.id)
    logger.info("Sync connected", extra={"user_id": user.id})

    tasks = [
        asyncio.create_task(send_snapshots()),
        asyncio.create_task(receive_messages()),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Sync connection error", extra={"error": str(exc)})
    finally:
        for task in tasks:
            task.cancel()
        state.sessions.close(key)
        logger.info("Sync disconnected", extra={"user_id": current["user_id"]})
