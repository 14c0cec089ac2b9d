# responder.py
# 调用 OpenAI 兼容接口获取回复

import json
from typing import Optional

import httpx
from nonebot.log import logger

from .config import Config
from .history import HistoryStore
from .prompts import build_messages

CONFIG_INCOMPLETE_REPLY = "请先在配置文件中配置AI API地址和API Key"
EMPTY_REPLY = "AI回复失败，请稍后再试"
TEMPERATURE = 0.7


class AIResponder:
    """Turns a question into reply text. Never raises; failures become text.

    The caller records the exchange in history, this class only reads it.
    """

    def __init__(self, history: HistoryStore, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.history = history
        self._transport = transport

    async def respond(self, config: Config, group_id: str, question: str) -> str:
        if not config.api_url or not config.api_key:
            logger.error(
                f"[AI Chat] AI API 配置不完整: api_url={bool(config.api_url)}, api_key={bool(config.api_key)}"
            )
            return CONFIG_INCOMPLETE_REPLY

        history = self.history.read_recent(group_id, config.context_length)
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": config.chat_model,
            "messages": build_messages(config, history, question),
            "temperature": TEMPERATURE,
        }

        try:
            if config.debug:
                logger.debug(
                    f"[AI Chat] 开始调用 AI API: url={config.api_url}, model={config.chat_model}, "
                    f"context={len(history)}"
                )
            async with httpx.AsyncClient(transport=self._transport, timeout=config.request_timeout) as client:
                response = await client.post(config.api_url, headers=headers, json=payload)

            if config.debug:
                logger.debug(f"[AI Chat] AI API 响应状态: {response.status_code}")

            if not response.is_success:
                logger.error(
                    f"[AI Chat] AI API 请求失败: status={response.status_code}, "
                    f"reason={response.reason_phrase}, body={response.text}"
                )
                return f"AI API请求失败 ({response.status_code}): {response.reason_phrase}"

            data = response.json()
            if config.debug:
                logger.debug(f"[AI Chat] AI API 响应数据: {json.dumps(data, ensure_ascii=False)}")

            if not isinstance(data, dict):
                logger.error(f"[AI Chat] AI API 响应格式异常: {data}")
                return EMPTY_REPLY

            error = data.get("error")
            if error:
                logger.error(f"[AI Chat] AI API 返回错误: {error}")
                message = error.get("message") if isinstance(error, dict) else None
                return f"AI API错误: {message or json.dumps(error, ensure_ascii=False)}"

            choices = data.get("choices")
            first = choices[0] if isinstance(choices, list) and choices else None
            message = first.get("message") if isinstance(first, dict) else None
            if isinstance(message, dict):
                reply = message.get("content")
                if isinstance(reply, str):
                    if config.debug:
                        logger.debug(f"[AI Chat] AI 回复成功，长度: {len(reply)}")
                    return reply

            logger.error(f"[AI Chat] AI API 响应格式异常: {data}")
            return EMPTY_REPLY
        except Exception as e:
            logger.error(f"[AI Chat] 调用 AI API 失败: {e!r}")
            return f"AI回复失败: {e}"
