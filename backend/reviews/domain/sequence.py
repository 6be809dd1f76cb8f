"""
reviews.domain.sequence — Identifier generator for cases and notices.

IDs have the form ``<prefix><YYYYmmddHHMMSS><NNN>`` where ``NNN`` is a
process-wide counter that starts at zero, is incremented under a lock
on every call and wraps modulo 1000.  The first ID of a process ends in
``001``.

Known limitation: more than 1000 IDs requested within the same second
can repeat an earlier ID, and so can two worker processes, whose
counters both start at zero.  This is accepted, not corrected; callers that
need stronger uniqueness must add their own source (e.g. a random
suffix) on top, as the coordinator does for notice IDs.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable

COUNTER_WRAP = 1000


class SequenceGenerator:
    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._counter = 0
        self._lock = threading.Lock()

    def next(self, prefix: str) -> str:
        with self._lock:
            self._counter = (self._counter + 1) % COUNTER_WRAP
            seq = self._counter
        return f"{prefix}{self._clock():%Y%m%d%H%M%S}{seq:03d}"


#: The process-wide generator shared by every coordinator.
default_sequence = SequenceGenerator()
