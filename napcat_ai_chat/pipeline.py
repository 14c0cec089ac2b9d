# pipeline.py
# 消息分发：命令解析 → 权限 → 过滤 → 限频 → AI 调用 → 记录历史

from typing import Any, Awaitable, Callable, List, Optional

from nonebot.log import logger

from .models import InboundMessage
from .permission import can_manage_ai
from .responder import AIResponder
from .state import PluginState
from .utils import extract_question, is_at_bot

Reply = Callable[[str], Awaitable[Any]]

RATE_LIMITED_REPLY = "当前请求过于频繁，请稍后再试"
NO_PERMISSION_REPLY = "你没有权限管理AI功能"


class Dispatcher:
    """Handles one inbound message at a time; sends at most one reply.

    Nothing raised inside the pipeline escapes :meth:`handle`.
    """

    def __init__(self, state: PluginState, responder: Optional[AIResponder] = None):
        self.state = state
        self.responder = responder or AIResponder(state.history)

    async def handle(self, message: InboundMessage, reply: Reply) -> None:
        try:
            await self._dispatch(message, reply)
        except Exception as e:
            logger.exception(f"[AI Chat] 处理消息时出错: {e}")

    async def _dispatch(self, message: InboundMessage, reply: Reply) -> None:
        state = self.state
        config = state.config
        raw_message = message.raw_message
        group_id = message.group_id

        logger.debug(f"[AI Chat] 收到消息: {raw_message} | 类型: {message.message_type}")

        if not config.enabled:
            return
        # 只处理群聊
        if message.message_type != "group" or not group_id:
            return
        if not state.is_group_enabled(group_id):
            return
        # AI 功能关闭时连过滤也不做，避免产生多余日志
        if not state.is_ai_enabled(group_id):
            return

        prefix = config.command_prefix or "#cmd"
        if raw_message.startswith(prefix):
            args = raw_message[len(prefix):].split()
            await self._handle_command(message, args, reply)
            return

        if not is_at_bot(message, state.self_id):
            return

        if state.content_filter.is_blacklisted(message.user_id):
            logger.debug(f"[AI Chat] 用户 {message.user_id} 在黑名单中，忽略消息")
            return
        if state.content_filter.is_blocked_by_pattern(raw_message):
            return

        question = extract_question(message)
        if not question:
            return

        if state.gate.check_rate_limit(group_id, state.rate_limit_for(group_id)):
            await reply(RATE_LIMITED_REPLY)
            return

        answer = await self.responder.respond(config, group_id, question)
        await reply(answer)

        state.history.append(group_id, "user", question)
        state.history.append(group_id, "assistant", answer)
        state.increment_processed()

    async def _handle_command(self, message: InboundMessage, args: List[str], reply: Reply) -> None:
        state = self.state
        config = state.config
        prefix = config.command_prefix or "#cmd"
        group_id = message.group_id
        sub_command = args[0].lower() if args else ""

        if sub_command == "help":
            help_text = "\n".join([
                "[= 插件帮助 =]",
                f"{prefix} help - 显示帮助信息",
                f"{prefix} ping - 测试连通性",
                f"{prefix} status - 查看运行状态",
                f"{prefix} ai enable - 启用AI功能",
                f"{prefix} ai disable - 禁用AI功能",
            ])
            await reply(help_text)

        elif sub_command == "ping":
            remaining = state.gate.check_cooldown(group_id, "ping", config.cooldown_seconds)
            if remaining > 0:
                await reply(f"请等待 {remaining} 秒后再试")
                return
            await reply("pong!")
            state.gate.set_cooldown(group_id, "ping", config.cooldown_seconds)
            state.increment_processed()

        elif sub_command == "status":
            status_text = "\n".join([
                "[= 插件状态 =]",
                f"运行时长: {state.uptime_formatted()}",
                f"今日处理: {state.stats.today_processed}",
                f"总计处理: {state.stats.processed}",
            ])
            await reply(status_text)

        elif sub_command == "ai":
            action = args[1].lower() if len(args) > 1 else ""
            if action not in ("enable", "disable"):
                return
            if not can_manage_ai(message, config.master_qqs):
                await reply(NO_PERMISSION_REPLY)
                return
            ai_enabled = action == "enable"
            await state.update_group_config(group_id, ai_enabled=ai_enabled)
            logger.info(f"[AI Chat] 群 {group_id} 的 AI 功能已{'启用' if ai_enabled else '禁用'}")
            await reply(f"AI功能已{'启用' if ai_enabled else '禁用'}")

        # 其他子命令可能属于别的插件，不做任何处理
