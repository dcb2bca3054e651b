"""History of the words shown in a session."""
from typing import List, Optional

from describo.models.game_models import HistoryEntry


class SessionHistory:
    """Shown words with a movable cursor.

    Advancing while the cursor is not at the end drops the entries after it.
    """

    def __init__(self):
        self._entries: List[HistoryEntry] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    @property
    def can_go_back(self) -> bool:
        return self._cursor > 0

    @property
    def can_go_forward(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def current(self) -> Optional[HistoryEntry]:
        """Get the displayed entry, or None if nothing was shown yet."""
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def advance(self, entry: HistoryEntry) -> HistoryEntry:
        """Append a new entry after the cursor and move to it."""
        del self._entries[self._cursor + 1:]
        self._entries.append(entry)
        self._cursor = len(self._entries) - 1
        return entry

    def back(self) -> Optional[HistoryEntry]:
        """Move to the previous entry if there is one."""
        if self.can_go_back:
            self._cursor -= 1
        return self.current()

    def forward(self) -> Optional[HistoryEntry]:
        """Move to the next entry if there is one."""
        if self.can_go_forward:
            self._cursor += 1
        return self.current()
