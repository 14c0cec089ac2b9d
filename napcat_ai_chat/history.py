# history.py
# 按群保存的对话历史（仅内存）

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Turn:
    role: str  # "system" | "user" | "assistant"
    content: str

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class HistoryStore:
    """Ordered per-group turns. Storage is unbounded; reads are truncated."""

    def __init__(self):
        self._turns: Dict[str, List[Turn]] = {}

    def append(self, scope_key: str, role: str, content: str) -> None:
        self._turns.setdefault(scope_key, []).append(Turn(role, content))

    def read_recent(self, scope_key: str, limit: int) -> List[Turn]:
        """Return a copy of the last ``limit`` turns, oldest first."""
        if limit <= 0:
            return []
        return list(self._turns.get(scope_key, [])[-limit:])

    def clear(self, scope_key: str) -> None:
        self._turns.pop(scope_key, None)
