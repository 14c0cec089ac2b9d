# models.py
# 管道内部使用的入站消息结构

from dataclasses import dataclass, field
from typing import Optional

from nonebot.adapters.onebot.v11 import GroupMessageEvent, Message, MessageEvent


@dataclass
class InboundMessage:
    """The parts of a OneBot message event the dispatch pipeline looks at."""

    message_type: str  # "group" | "private"
    user_id: str
    raw_message: str = ""
    message: Message = field(default_factory=Message)
    group_id: Optional[str] = None
    sender_role: Optional[str] = None

    @classmethod
    def from_event(cls, event: MessageEvent) -> "InboundMessage":
        # NoneBot strips a leading @bot from event.message; original_message keeps it.
        group_id = str(event.group_id) if isinstance(event, GroupMessageEvent) else None
        return cls(
            message_type=event.message_type,
            user_id=str(event.user_id),
            raw_message=event.raw_message or "",
            message=event.original_message,
            group_id=group_id,
            sender_role=event.sender.role,
        )
