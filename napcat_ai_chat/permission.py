# permission.py
# 管理 AI 开关的权限判断

from typing import Iterable

from .models import InboundMessage

ADMIN_ROLES = ("owner", "admin")


def is_admin(message: InboundMessage) -> bool:
    """群主或管理员返回 True；私聊消息视为有管理权限"""
    if message.message_type != "group":
        return True
    return message.sender_role in ADMIN_ROLES


def is_privileged(user_id: str, master_qqs: Iterable[str]) -> bool:
    """是否是配置中的主人 QQ"""
    return user_id in master_qqs


def can_manage_ai(message: InboundMessage, master_qqs: Iterable[str]) -> bool:
    if is_admin(message):
        return True
    if message.user_id:
        return is_privileged(message.user_id, master_qqs)
    return False
