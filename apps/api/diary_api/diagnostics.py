from __future__ import annotations

import logging
from collections import deque

from diary_api.domain.entities import DiagnosticEvent
from diary_api.util import rfc3339_now

logger = logging.getLogger("diary.diagnostics")


class Diagnostics:
    """Bounded record of failures that were swallowed instead of surfaced.

    Storage and identity provider errors never reach the client; they end up
    here (and in the log) so they can still be inspected.
    """

    def __init__(self, limit: int = 100) -> None:
        self._events: deque[DiagnosticEvent] = deque(maxlen=max(1, limit))

    def report(self, event: str, error: BaseException, **context) -> DiagnosticEvent:
        entry = DiagnosticEvent(
            event=event,
            error=f"{type(error).__name__}: {error}",
            at=rfc3339_now(),
            context=dict(context),
        )
        self._events.append(entry)
        logger.warning(event, exc_info=error, extra={"diag": event, **context})
        return entry

    def events(self) -> list[DiagnosticEvent]:
        return list(self._events)
