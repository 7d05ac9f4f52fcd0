# app/shared/database/change_feed.py
"""
Row-level change feed for dashboards.

Mapper events collect INSERT/UPDATE/DELETE per ORM session and the events are
published only once the session commits, so subscribers never see rows that
were rolled back. Subscribers are plain callables registered per table and
optionally filtered by employee_id; they receive ``ChangeEvent`` objects and
are expected to re-fetch whatever they display.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session, object_session

from .models import Announcement, Employee, Sale, SaleItem

logger = logging.getLogger(__name__)

PENDING_KEY = "pending_change_events"

# table -> how to read the owning employee from a row
TRACKED_MODELS: Dict[Any, Callable[[Any], Optional[int]]] = {
    Employee: lambda row: row.id,
    Sale: lambda row: row.employee_id,
    SaleItem: lambda row: None,
    Announcement: lambda row: None,
}

TRACKED_TABLES = {model.__tablename__ for model in TRACKED_MODELS}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    row_id: Optional[int]
    employee_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "change",
            "table": self.table,
            "event": self.event,
            "id": self.row_id,
            "employee_id": self.employee_id,
        }


@dataclass
class _Subscription:
    table: str
    callback: Callable[[ChangeEvent], None]
    employee_id: Optional[int]

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        return self.employee_id is None or change.employee_id == self.employee_id


class ChangeFeed:
    """In-process publish/subscribe hub for committed row events."""

    def __init__(self):
        self._subscriptions: Dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._installed = False

    def subscribe(
        self,
        table: str,
        callback: Callable[[ChangeEvent], None],
        employee_id: Optional[int] = None
    ) -> int:
        if table not in TRACKED_TABLES:
            raise ValueError(f"Table '{table}' is not tracked by the change feed")
        with self._lock:
            token = next(self._ids)
            self._subscriptions[token] = _Subscription(table, callback, employee_id)
        logger.debug("Subscription %s registered on %s (employee_id=%s)", token, table, employee_id)
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            self._subscriptions.pop(token, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, change: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.matches(change)]
        for subscription in targets:
            try:
                subscription.callback(change)
            except Exception:
                # one broken listener must not affect the others or the committing request
                logger.exception("Change feed subscriber failed for %s %s", change.table, change.event)

    # ==================== SQLALCHEMY WIRING ====================

    def install(self) -> None:
        """Attach the mapper and session listeners. Safe to call more than once."""
        if self._installed:
            return

        for model, employee_of in TRACKED_MODELS.items():
            for mapper_event, name in (
                ("after_insert", "INSERT"),
                ("after_update", "UPDATE"),
                ("after_delete", "DELETE"),
            ):
                event.listen(model, mapper_event, self._collector(name, employee_of))

        event.listen(Session, "after_commit", self._flush_pending)
        event.listen(Session, "after_rollback", self._discard_pending)
        self._installed = True

    def _collector(self, name: str, employee_of: Callable[[Any], Optional[int]]):
        def collect(mapper, connection, target):
            session = object_session(target)
            if session is None:
                return
            pending: List[ChangeEvent] = session.info.setdefault(PENDING_KEY, [])
            pending.append(ChangeEvent(
                table=mapper.local_table.name,
                event=name,
                row_id=target.id,
                employee_id=employee_of(target)
            ))
        return collect

    def _flush_pending(self, session: Session) -> None:
        pending = session.info.pop(PENDING_KEY, [])
        for change in pending:
            self.publish(change)

    def _discard_pending(self, session: Session) -> None:
        session.info.pop(PENDING_KEY, None)


change_feed = ChangeFeed()
