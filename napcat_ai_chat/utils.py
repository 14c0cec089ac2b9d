# utils.py
# 辅助函数

from nonebot.adapters.onebot.v11 import Bot
from nonebot.log import logger

from .models import InboundMessage


# --- 消息段相关 ---
def is_at_bot(message: InboundMessage, self_id: str) -> bool:
    """消息中是否有 @ 机器人自己的消息段"""
    if not self_id:
        return False
    return any(
        seg.type == "at" and str(seg.data.get("qq", "")) == self_id
        for seg in message.message
    )


def extract_question(message: InboundMessage) -> str:
    """拼接所有纯文本消息段作为提问内容，忽略 @ 和其他类型的消息段"""
    return "".join(
        str(seg.data.get("text", "")) for seg in message.message if seg.type == "text"
    ).strip()


# --- 时间相关 ---
def format_uptime(seconds: float) -> str:
    """把运行时长格式化为 N天M小时 / N小时M分钟 / N分钟M秒 / N秒"""
    s = int(seconds)
    m = s // 60
    h = m // 60
    d = h // 24
    if d > 0:
        return f"{d}天{h % 24}小时"
    if h > 0:
        return f"{h}小时{m % 60}分钟"
    if m > 0:
        return f"{m}分钟{s % 60}秒"
    return f"{s}秒"


# --- 消息发送 ---
async def send_reply(bot: Bot, message: InboundMessage, text: str) -> bool:
    """按原消息类型回复到群或私聊，失败时只记录日志"""
    params = {"message_type": message.message_type, "message": text}
    if message.message_type == "group" and message.group_id:
        params["group_id"] = message.group_id
    elif message.message_type == "private" and message.user_id:
        params["user_id"] = message.user_id
    try:
        await bot.call_api("send_msg", **params)
        return True
    except Exception as e:
        logger.error(f"[AI Chat] 发送消息失败: {e}")
        return False


async def fetch_self_id(bot: Bot) -> str:
    """通过 get_login_info 获取机器人自身 QQ 号，失败时退回 bot.self_id"""
    try:
        info = await bot.call_api("get_login_info")
        if isinstance(info, dict) and info.get("user_id"):
            return str(info["user_id"])
    except Exception as e:
        logger.warning(f"[AI Chat] 获取机器人 QQ 号失败，使用连接 ID {bot.self_id}: {e}")
    return str(bot.self_id)
