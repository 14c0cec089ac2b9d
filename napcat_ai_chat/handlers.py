# handlers.py
# NoneBot 事件响应器，把 OneBot 消息事件交给分发管道

from nonebot import on_message
from nonebot.adapters.onebot.v11 import Bot, MessageEvent

from .models import InboundMessage
from .pipeline import Dispatcher
from .state import PluginState
from .utils import send_reply

# 进程内唯一的状态对象，启动时由 __init__ 填充配置和持久化数据
plugin_state = PluginState()
dispatcher = Dispatcher(plugin_state)

# --- Message Handling ---
ai_chat_handler = on_message(priority=50, block=False)  # block=False allows other plugins


@ai_chat_handler.handle()
async def handle_message(bot: Bot, event: MessageEvent):
    """Forwards every message event to the dispatch pipeline."""
    message = InboundMessage.from_event(event)

    async def reply(text: str) -> bool:
        return await send_reply(bot, message, text)

    await dispatcher.handle(message, reply)
