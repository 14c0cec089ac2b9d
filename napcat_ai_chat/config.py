import yaml
from pathlib import Path
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from typing import Any, Dict, List, Optional, Type, TypeVar

from nonebot.log import logger

# --- Default Configuration Content ---
DEFAULT_CONFIG_YAML = """\
# 全局开关：是否启用插件功能
enabled: true

# 调试模式：启用后输出 AI 请求/响应的详细日志
debug: false

# 触发命令的前缀
command_prefix: "#cmd"

# 同一命令在同一群内的冷却时间（秒），0 表示不限制
cooldown_seconds: 60

# 限频：每个群一分钟内最多调用 AI 的次数，-1 表示禁用
rate_limit_per_minute: 10

# 主人 QQ 列表：可在任意群启用/禁用 AI 功能（也可写成逗号分隔的字符串）
master_qqs: []

# 黑名单 QQ 列表：这些 QQ 发送的消息不会被 AI 回应
blacklist_qqs: []

# 屏蔽词正则列表：匹配任一模式的消息不会被 AI 回应
blocked_patterns: []

# OpenAI 兼容 API 地址
api_url: "https://api.openai.com/v1/chat/completions"

# API Key（必填）
api_key: ""

# 模型名称
chat_model: "gpt-3.5-turbo"

# 系统提示词
system_prompt: "你是一个智能助手，帮助用户解答问题。"

# 上下文消息条数，范围 2-30
context_length: 10

# 单次 AI 请求超时（秒）
request_timeout: 60.0

# 按群的单独配置，例如:
# group_configs:
#   "123456":
#     enabled: true
#     ai_enabled: false
#     rate_limit_per_minute: 5
group_configs: {}
"""

DEFAULT_SYSTEM_PROMPT = "你是一个智能助手，帮助用户解答问题。"

# Fields that also accept a comma-separated string
LIST_FIELDS = ("master_qqs", "blacklist_qqs", "blocked_patterns")


# --- Configuration Models ---
class GroupConfig(BaseModel):
    """Per-group overrides. ``None`` means "inherit the global behaviour"."""

    model_config = ConfigDict(strict=True)

    enabled: Optional[bool] = None
    ai_enabled: Optional[bool] = None
    rate_limit_per_minute: Optional[int] = None


class Config(BaseModel):
    model_config = ConfigDict(strict=True)

    enabled: bool = True
    debug: bool = False
    command_prefix: str = "#cmd"
    cooldown_seconds: int = 60
    rate_limit_per_minute: int = 10
    master_qqs: List[str] = []
    blacklist_qqs: List[str] = []
    blocked_patterns: List[str] = []
    api_url: str = "https://api.openai.com/v1/chat/completions"
    api_key: str = ""
    chat_model: str = "gpt-3.5-turbo"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    context_length: int = 10
    request_timeout: float = 60.0
    group_configs: Dict[str, GroupConfig] = {}

    @field_validator("context_length")
    @classmethod
    def clamp_context_length(cls, v: int) -> int:
        return max(2, min(30, v))


M = TypeVar("M", bound=BaseModel)


# --- Sanitizing ---
def _split_list(value: Any) -> Any:
    """Accept either a list (non-string items dropped) or a comma-separated string."""
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _decode_fields(model: Type[M], raw: Dict[str, Any], where: str) -> M:
    """Validate each known field on its own; invalid ones fall back to the default."""
    accepted: Dict[str, Any] = {}
    for name in model.model_fields:
        if name not in raw:
            continue
        value = raw[name]
        try:
            model.model_validate({name: value})
        except ValidationError as e:
            logger.warning(
                f"[AI Chat] 配置项 {where}{name} 无效，使用默认值: {e.errors()[0]['msg']}"
            )
            continue
        accepted[name] = value
    return model.model_validate(accepted)


def sanitize_config(raw: Any) -> Config:
    """Turn an arbitrary loaded document into a :class:`Config`.

    Unknown keys are ignored and mistyped values silently take their
    defaults, so a half-broken config file never stops the plugin.
    """
    if not isinstance(raw, dict):
        return Config()

    data = {k: v for k, v in raw.items() if k != "group_configs"}
    for name in LIST_FIELDS:
        if name in data:
            data[name] = _split_list(data[name])
    config = _decode_fields(Config, data, "")

    groups: Dict[str, GroupConfig] = {}
    raw_groups = raw.get("group_configs")
    if isinstance(raw_groups, dict):
        for group_id, group_raw in raw_groups.items():
            if not isinstance(group_raw, dict):
                logger.warning(f"[AI Chat] 群 {group_id} 的配置不是字典，已忽略")
                continue
            groups[str(group_id)] = _decode_fields(
                GroupConfig, group_raw, f"group_configs.{group_id}."
            )
    config.group_configs = groups
    return config


# --- Configuration File Path ---
CONFIG_DIR = Path("data/napcat_ai_chat")
CONFIG_PATH = CONFIG_DIR / "config.yaml"


# --- Load Configuration ---
def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load plugin configuration.

    Creates a default configuration file if it does not exist. Any error
    is logged and the defaults are used instead.
    """
    if not path.is_file():
        logger.info(f"[AI Chat] 配置文件 {path} 不存在，正在创建默认配置...")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
            logger.info(f"[AI Chat] 已创建默认配置 {path}，请填写 api_key 等设置。")
        except OSError as e:
            logger.error(f"[AI Chat] 创建默认配置文件失败: {e}")
        return Config()

    try:
        with open(path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"[AI Chat] 解析配置文件 {path} 失败，使用默认配置: {e}")
        return Config()
    except OSError as e:
        logger.error(f"[AI Chat] 读取配置文件 {path} 失败，使用默认配置: {e}")
        return Config()

    if config_data is not None and not isinstance(config_data, dict):
        logger.warning(f"[AI Chat] 配置文件 {path} 格式错误，应为 YAML 字典，使用默认配置")
    return sanitize_config(config_data)
