from nonebot import get_driver
from nonebot.adapters.onebot.v11 import Bot
from nonebot.log import logger
from nonebot.plugin import PluginMetadata

# 导入配置模块
from .config import Config, CONFIG_PATH, load_config
# 导入数据库模块
from .data_source import DB_PATH, init_db
# 导入事件处理模块 (注册响应器并持有插件状态)
from .handlers import plugin_state
from .utils import fetch_self_id

# --- 插件元数据 ---
__plugin_meta__ = PluginMetadata(
    name="NapCat AI 聊天",
    description="把群聊中 @机器人 的消息转发给 OpenAI 兼容 API 并回复，支持限频、冷却、黑名单和屏蔽词。",
    usage="""
    指令 (默认前缀 #cmd):
    #cmd help - 显示帮助信息
    #cmd ping - 测试连通性
    #cmd status - 查看运行状态
    #cmd ai enable/disable - 启用/禁用当前群聊 AI 功能 (群主/管理员/主人QQ)

    触发方式:
    @机器人 + 聊天内容
    """,
    type="application",
    config=Config,
    supported_adapters={"~onebot.v11"},
)

# --- Initialization ---
driver = get_driver()


@driver.on_startup
async def _initialize():
    """
    Load configuration, initialize the database and restore persisted state.
    """
    plugin_state.replace_config(load_config(CONFIG_PATH))

    try:
        await init_db(DB_PATH)
        plugin_state.db_path = DB_PATH
        await plugin_state.restore()
    except Exception as e:
        plugin_state.db_path = None
        logger.error(f"[AI Chat] 数据库不可用，群配置和统计将不会保存: {e}")

    if not plugin_state.config.api_key:
        logger.warning(f"[AI Chat] 未配置 api_key，请编辑 {CONFIG_PATH}")
    logger.info(f"[AI Chat] 插件 {__plugin_meta__.name} 初始化完成。")


@driver.on_bot_connect
async def _resolve_self_id(bot: Bot):
    plugin_state.self_id = await fetch_self_id(bot)
    logger.debug(f"[AI Chat] 机器人 QQ: {plugin_state.self_id}")


@driver.on_shutdown
async def _cleanup():
    try:
        await plugin_state.save_stats()
    except Exception as e:
        logger.error(f"[AI Chat] 保存统计失败: {e}")
