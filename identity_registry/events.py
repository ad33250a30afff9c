"""
Registry notifications

The registry records one event per state change into an EventLog while it
holds its lock, in the order the changes happen, and delivers them to
subscribed listeners after releasing it. Delivery is synchronous and always
in sequence order.
"""

import logging
import threading
from collections import deque
from typing import Optional, Dict, Any, List, Callable, Deque
from dataclasses import dataclass


logger = logging.getLogger("IdentityRegistry.events")


@dataclass(frozen=True)
class IdentityCreated:
    account: str
    name: str

    event_name = "IdentityCreated"

    def accounts(self) -> tuple:
        return (self.account,)

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event_name, "account": self.account, "name": self.name}


@dataclass(frozen=True)
class IdentityUpdated:
    account: str
    field_name: str  # "name", "email" or "profileHash"

    event_name = "IdentityUpdated"

    def accounts(self) -> tuple:
        return (self.account,)

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event_name, "account": self.account, "field": self.field_name}


@dataclass(frozen=True)
class CredentialAdded:
    holder: str
    issuer: str
    credential_type: str

    event_name = "CredentialAdded"

    def accounts(self) -> tuple:
        return (self.holder, self.issuer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event_name,
            "holder": self.holder,
            "issuer": self.issuer,
            "credentialType": self.credential_type
        }


@dataclass(frozen=True)
class CredentialRevoked:
    holder: str
    issuer: str
    credential_type: str

    event_name = "CredentialRevoked"

    def accounts(self) -> tuple:
        return (self.holder, self.issuer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event_name,
            "holder": self.holder,
            "issuer": self.issuer,
            "credentialType": self.credential_type
        }


@dataclass(frozen=True)
class LoggedEvent:
    """An event together with its position in the log"""
    sequence: int
    event: Any

    def to_dict(self) -> Dict[str, Any]:
        result = {"sequence": self.sequence}
        result.update(self.event.to_dict())
        return result


Listener = Callable[[LoggedEvent], None]


class EventLog:
    """
    Ordered, append-only sink for registry events

    Sequence numbers start at 1 and increase by one per event.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._events: List[LoggedEvent] = []
        self._listeners: List[Listener] = []
        self._pending: Deque[LoggedEvent] = deque()
        self._dispatching = False

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> bool:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                return True
            return False

    def record(self, event: Any) -> LoggedEvent:
        """Append an event and queue it for delivery, without notifying anyone"""
        with self._lock:
            logged = LoggedEvent(sequence=len(self._events) + 1, event=event)
            self._events.append(logged)
            self._pending.append(logged)
        return logged

    def dispatch(self) -> None:
        """
        Deliver queued events to listeners in sequence order

        Only one caller drains the queue at a time. Events recorded while
        it runs, including ones caused by listeners themselves, are queued
        and delivered by that same drain after the current event.
        """
        with self._lock:
            if self._dispatching:
                return
            self._dispatching = True

        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._dispatching = False
                        return
                    logged = self._pending.popleft()
                    listeners = list(self._listeners)
                self._notify(logged, listeners)
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise

    def emit(self, event: Any) -> LoggedEvent:
        logged = self.record(event)
        self.dispatch()
        return logged

    def _notify(self, logged: LoggedEvent, listeners: List[Listener]) -> None:
        for listener in listeners:
            try:
                listener(logged)
            except Exception:
                # a broken listener must not undo or block a committed change
                logger.exception(f"Listener failed on {logged.event.event_name} #{logged.sequence}")

    def history(self, account: Optional[str] = None, since: int = 0) -> List[LoggedEvent]:
        """
        Events after sequence `since`, optionally only those touching `account`

        Args:
            account: Checksummed address to filter by
            since: Return events with sequence > since
        """
        with self._lock:
            events = [e for e in self._events if e.sequence > since]
        if account:
            events = [e for e in events if account in e.event.accounts()]
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
