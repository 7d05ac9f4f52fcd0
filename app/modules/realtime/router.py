# app/modules/realtime/router.py
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.service import AuthService
from app.core.exceptions import BillingError
from app.shared.database.change_feed import ChangeEvent, TRACKED_TABLES, change_feed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])

# tables whose events carry the owning employee
EMPLOYEE_SCOPED_TABLES = {"sales", "employees"}


@router.websocket("/ws")
async def change_feed_socket(
    websocket: WebSocket,
    table: str = Query(..., description="sales | sale_items | employees | announcements"),
    token: str = Query(..., description="Access token from /auth/login"),
    employee_id: Optional[int] = Query(None, description="Owners only: follow one employee"),
    db: Session = Depends(get_db)
):
    """
    Push a message for every committed change on ``table``.

    Messages only say what changed; clients reload their data. Employees only
    hear about their own sales and their own account.
    """
    await websocket.accept()

    try:
        session = AuthService(db).resolve_session(token)
    except BillingError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return
    finally:
        # the socket can stay open for hours; give the connection back to the pool now
        db.close()

    if table not in TRACKED_TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=f"Unknown table '{table}'")
        return

    if table in EMPLOYEE_SCOPED_TABLES and not session.is_owner:
        employee_id = session.employee_id
    elif table not in EMPLOYEE_SCOPED_TABLES:
        employee_id = None

    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()

    def enqueue(change: ChangeEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, change)

    subscription = change_feed.subscribe(table, enqueue, employee_id=employee_id)
    logger.info(f"🔌 Change feed socket opened on {table} for employee {session.employee_id}")

    async def forward() -> None:
        while True:
            change = await queue.get()
            await websocket.send_json(change.to_dict())

    sender: Optional[asyncio.Task] = None
    try:
        await websocket.send_json({"type": "subscribed", "table": table, "employee_id": employee_id})
        sender = asyncio.create_task(forward())
        while True:
            # clients may send anything as keep-alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        change_feed.unsubscribe(subscription)
        if sender is not None:
            sender.cancel()
        logger.info(f"🔌 Change feed socket on {table} closed")
