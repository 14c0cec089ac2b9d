# limiter.py
# 命令冷却与按群限频

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

RATE_WINDOW_SECONDS = 60


@dataclass
class RateWindow:
    count: int
    reset_time: float


class RateGate:
    """In-memory cooldown and per-minute rate limiting, keyed per group.

    Nothing here is persisted; a restart clears all cooldowns and windows.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        # (group_id, command) -> expiry timestamp
        self._cooldowns: Dict[Tuple[str, str], float] = {}
        # group_id -> current window
        self._windows: Dict[str, RateWindow] = {}

    def check_cooldown(self, scope_key: str, command: str, cooldown_seconds: int) -> int:
        """Return the remaining cooldown in whole seconds, 0 when usable.

        Expired entries are dropped on read.
        """
        if cooldown_seconds <= 0:
            return 0

        key = (scope_key, command)
        expire_time = self._cooldowns.get(key)
        if expire_time is None:
            return 0

        remaining = math.ceil(expire_time - self._clock())
        if remaining <= 0:
            del self._cooldowns[key]
            return 0
        return remaining

    def set_cooldown(self, scope_key: str, command: str, cooldown_seconds: int) -> None:
        if cooldown_seconds <= 0:
            return
        self._cooldowns[(scope_key, command)] = self._clock() + cooldown_seconds

    def check_rate_limit(self, scope_key: str, limit: int) -> bool:
        """Return True when the call must be rejected.

        A fixed 60 second bucket starts at the first call and is reset by the
        first call after it expires. ``limit == -1`` disables limiting.
        """
        if limit == -1:
            return False

        now = self._clock()
        window = self._windows.get(scope_key)
        if window is None or now >= window.reset_time:
            self._windows[scope_key] = RateWindow(count=1, reset_time=now + RATE_WINDOW_SECONDS)
            return False

        if window.count >= limit:
            return True

        window.count += 1
        return False
