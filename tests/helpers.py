from typing import List, Optional

from nonebot.adapters.onebot.v11 import GroupMessageEvent, Message, MessageSegment
from nonebot.adapters.onebot.v11.event import Sender

from napcat_ai_chat.models import InboundMessage

BOT_ID = "10000"
GROUP_ID = "123"


def group_message(
    text: str,
    at: Optional[str] = None,
    user_id: str = "42",
    role: str = "member",
    group_id: str = GROUP_ID,
) -> InboundMessage:
    message = Message()
    raw = text
    if at is not None:
        message += MessageSegment.at(at)
        raw = f"[CQ:at,qq={at}] {text}"
    message += MessageSegment.text(text)
    return InboundMessage(
        message_type="group",
        user_id=user_id,
        raw_message=raw,
        message=message,
        group_id=group_id,
        sender_role=role,
    )


class Replies:
    def __init__(self):
        self.sent: List[str] = []

    async def __call__(self, text: str) -> bool:
        self.sent.append(text)
        return True


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeResponder:
    def __init__(self, answer: str = "你好呀"):
        self.answer = answer
        self.calls = []

    async def respond(self, config, group_id, question):
        self.calls.append((group_id, question))
        return self.answer


class FakeBot:
    self_id = BOT_ID

    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.calls = []

    async def call_api(self, api, **data):
        self.calls.append((api, data))
        if self.error is not None:
            raise self.error
        return self.results.get(api)


def group_event(text: str, at: Optional[str] = None, user_id: int = 42, role: str = "member") -> GroupMessageEvent:
    message = Message()
    raw = text
    if at is not None:
        message += MessageSegment.at(at)
        raw = f"[CQ:at,qq={at}] {text}"
    message += MessageSegment.text(text)
    return GroupMessageEvent(
        time=0,
        self_id=int(BOT_ID),
        post_type="message",
        sub_type="normal",
        user_id=user_id,
        message_type="group",
        message_id=1,
        message=message,
        original_message=message,
        raw_message=raw,
        font=0,
        sender=Sender(user_id=user_id, role=role),
        to_me=at == BOT_ID,
        group_id=int(GROUP_ID),
    )
