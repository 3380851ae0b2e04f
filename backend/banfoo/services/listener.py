from __future__ import annotations
import uuid
from collections import deque
from datetime import datetime
from banfoo.db import as_utc
from banfoo.schemas.events import ScoreEvent


class StateListener:
    """
    Per-connection de-duplication. A state event is applied only when its
    stamp is newer than the last one processed for that key; score events
    are applied once per event_id, and never for ledger rows the snapshot
    already counted. Events without a stamp pass through.
    """

    def __init__(self, team_id: int | None = None, memory: int = 512) -> None:
        self.team_id = team_id
        self._last: dict[str, datetime] = {}
        self._seen_ids: deque[uuid.UUID] = deque(maxlen=memory)
        self._last_entry_id: int | None = None

    def remember(self, key: str, stamp: datetime | None) -> None:
        stamp = as_utc(stamp)
        if stamp is None:
            return
        prev = self._last.get(key)
        if prev is None or stamp > prev:
            self._last[key] = stamp

    def remember_entries(self, last_entry_id: int) -> None:
        """Ledger rows up to this id are already in the snapshot total."""
        self._last_entry_id = max(self._last_entry_id or 0, int(last_entry_id))

    def wants(self, event) -> bool:
        """Channel filter: team devices only hear their own score changes."""
        if isinstance(event, ScoreEvent):
            return self.team_id is None or event.team_id == self.team_id
        return True

    def accept(self, event) -> bool:
        if isinstance(event, ScoreEvent):
            if event.event_id in self._seen_ids:
                return False
            if event.entry_id is not None and self._last_entry_id is not None and event.entry_id <= self._last_entry_id:
                return False
            self._seen_ids.append(event.event_id)
            return True
        stamp = as_utc(event.at)
        if stamp is None:
            return True
        prev = self._last.get(event.kind)
        if prev is not None and stamp <= prev:
            return False
        self._last[event.kind] = stamp
        return True
