"""
reviews.domain.memory — In-memory implementations of the coordinator ports.

Thread-safe, process-local.  Used by the engine's tests and handy for
scripting the workflow without a database.
"""

from __future__ import annotations

import threading

from .snapshots import CaseSnapshot, NotificationEvent


class InMemorySnapshotStore:
    def __init__(self) -> None:
        self._rows: dict[str, CaseSnapshot] = {}
        self._lock = threading.Lock()

    def get(self, case_id: str) -> CaseSnapshot | None:
        with self._lock:
            return self._rows.get(case_id)

    def put(self, case_id: str, snapshot: CaseSnapshot, expected_version: int) -> bool:
        with self._lock:
            current = self._rows.get(case_id)
            current_version = current.version if current is not None else 0
            if current_version != expected_version:
                return False
            self._rows[case_id] = snapshot.with_version(expected_version + 1)
            return True


class InMemoryNotificationStore:
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []
        self._lock = threading.Lock()

    def save(self, event: NotificationEvent) -> None:
        with self._lock:
            self.events.append(event)

    def for_recipient(self, recipient_id: str) -> list[NotificationEvent]:
        with self._lock:
            return [event for event in self.events if event.recipient_id == recipient_id]
