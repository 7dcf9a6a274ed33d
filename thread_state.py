"""In-memory thread → work item table. Lives as long as the process."""

import threading
from dataclasses import replace

from logs import log
from models import StateConflict, ThreadRecord


class ThreadStateStore:
    """Thread-safe record of which threads were claimed and their ticket ids.

    In strict mode an invalid record_ticket raises StateConflict; otherwise
    it is logged and ignored.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._records: dict[str, ThreadRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, thread_ts: str) -> ThreadRecord | None:
        with self._lock:
            record = self._records.get(thread_ts)
            return replace(record) if record else None

    def try_claim(self, thread_ts: str) -> bool:
        """Claim ``thread_ts`` for ticket creation. Only the first caller wins."""
        with self._lock:
            record = self._records.setdefault(thread_ts, ThreadRecord())
            if record.claimed:
                return False
            record.claimed = True
            return True

    def record_ticket(self, thread_ts: str, ticket_id: int):
        with self._lock:
            record = self._records.get(thread_ts)
            if record is None or not record.claimed:
                problem = "thread was never claimed"
            elif record.ticket_id is not None:
                problem = f"thread already has work item {record.ticket_id}"
            else:
                record.ticket_id = ticket_id
                log("STATE", "Recorded work item", thread=thread_ts, id=ticket_id)
                return

        if self.strict:
            raise StateConflict(f"Cannot record work item {ticket_id} for {thread_ts}: {problem}")
        log("STATE", f"Ignoring record_ticket: {problem}", thread=thread_ts, id=ticket_id)

    def lookup_ticket(self, thread_ts: str) -> int | None:
        with self._lock:
            record = self._records.get(thread_ts)
            return record.ticket_id if record else None

    def release_claim(self, thread_ts: str) -> bool:
        """Give a claim back so the thread can be retried. Never drops a ticket id."""
        with self._lock:
            record = self._records.get(thread_ts)
            if record is None or not record.claimed or record.ticket_id is not None:
                return False
            record.claimed = False
            return True
