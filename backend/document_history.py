"""
document_history.py -- FIR Drafting Backend
Linear undo/redo over snapshots of the report body.
"""


class DocumentHistory:
    """
    Snapshots plus a cursor. Recording after an undo discards everything after
    the cursor, so redo is only possible until the next edit.
    """

    def __init__(self, initial: str = ""):
        self._snapshots: list[str] = [initial]
        self._cursor: int = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str:
        return self._snapshots[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def record(self, snapshot: str) -> None:
        """
        Append ``snapshot`` after the cursor. The redo tail is always cut, even
        when ``snapshot`` equals the current one and nothing is appended.
        """
        del self._snapshots[self._cursor + 1:]
        if snapshot == self.current:
            return
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1

    def undo(self) -> str:
        if self.can_undo:
            self._cursor -= 1
        return self.current

    def redo(self) -> str:
        if self.can_redo:
            self._cursor += 1
        return self.current

    def snapshots(self) -> list[str]:
        return list(self._snapshots)
