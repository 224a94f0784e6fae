"""Last-result-wins gate for callers that issue overlapping requests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import threading
from typing import Any, Generic, Optional, TypeVar

from flood_stats.core import stable_hash
from flood_stats.logging_utils import engine_logger

_T = TypeVar("_T")

_LOGGER = engine_logger("session")


@dataclass(frozen=True)
class RequestTicket:
    sequence: int
    fingerprint: str


@dataclass
class LatestRequestGate(Generic[_T]):
    """Publish only the result of the most recent request.

    A new ``begin`` supersedes every earlier ticket. Results computed for a
    superseded ticket are discarded, even when they finish last.
    """

    _lock: threading.Lock = field(init=False, repr=False)
    _sequence: int = field(init=False, default=0)
    _latest_ticket: Optional[RequestTicket] = field(init=False, default=None)
    _published_ticket: Optional[RequestTicket] = field(init=False, default=None)
    _published_result: Optional[_T] = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def begin(self, params: Any) -> RequestTicket:
        fingerprint = stable_hash(params)
        with self._lock:
            self._sequence += 1
            ticket = RequestTicket(sequence=self._sequence, fingerprint=fingerprint)
            self._latest_ticket = ticket
        return ticket

    def is_current(self, ticket: RequestTicket) -> bool:
        with self._lock:
            return self._latest_ticket == ticket

    def complete(self, ticket: RequestTicket, compute: Callable[[], _T]) -> Optional[_T]:
        if not self.is_current(ticket):
            _LOGGER.debug("Skipping superseded request #%d.", ticket.sequence)
            return None
        result = compute()
        with self._lock:
            if self._latest_ticket != ticket:
                _LOGGER.debug(
                    "Discarding result of request #%d; request #%d is newer.",
                    ticket.sequence,
                    self._sequence,
                )
                return None
            self._published_ticket = ticket
            self._published_result = result
        return result

    @property
    def latest(self) -> tuple[Optional[RequestTicket], Optional[_T]]:
        with self._lock:
            return self._published_ticket, self._published_result

    def cached(self, params: Any) -> Optional[_T]:
        fingerprint = stable_hash(params)
        with self._lock:
            if (
                self._published_ticket is not None
                and self._published_ticket.fingerprint == fingerprint
            ):
                return self._published_result
        return None


__all__ = ["LatestRequestGate", "RequestTicket"]
