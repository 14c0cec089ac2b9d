# filters.py
# 黑名单与屏蔽词过滤

import re
from typing import Iterable, List, Pattern

from nonebot.log import logger


class ContentFilter:
    """Rejects blacklisted senders and texts matching a blocked pattern.

    Patterns are compiled once; an invalid one is reported here and then
    ignored, so it never blocks a message by itself.
    """

    def __init__(self, blacklist_qqs: Iterable[str] = (), blocked_patterns: Iterable[str] = ()):
        self.blacklist = frozenset(blacklist_qqs)
        self.patterns: List[Pattern[str]] = []
        for pattern in blocked_patterns:
            try:
                self.patterns.append(re.compile(pattern))
            except re.error as e:
                logger.warning(f'[AI Chat] 屏蔽词正则 "{pattern}" 无效，已跳过: {e}')

    def is_blacklisted(self, user_id: str) -> bool:
        return user_id in self.blacklist

    def is_blocked_by_pattern(self, text: str) -> bool:
        for pattern in self.patterns:
            if pattern.search(text):
                logger.debug(f'[AI Chat] 消息包含屏蔽词模式 "{pattern.pattern}"，忽略消息')
                return True
        return False
