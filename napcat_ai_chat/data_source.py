import aiosqlite
from pathlib import Path
from typing import Dict, Optional

from nonebot.log import logger

from .config import CONFIG_DIR, GroupConfig

# --- 数据库文件路径 ---
DB_PATH = CONFIG_DIR / "database.db"


# --- 初始化数据库 ---
async def init_db(db_path: Path = DB_PATH):
    """
    初始化 SQLite 数据库并创建必要的表 (如果不存在)。
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        async with aiosqlite.connect(db_path) as db:
            # 群级别覆盖配置，NULL 表示沿用全局配置
            await db.execute("""
                CREATE TABLE IF NOT EXISTS group_settings (
                    group_id TEXT PRIMARY KEY,
                    enabled BOOLEAN,
                    ai_enabled BOOLEAN,
                    rate_limit_per_minute INTEGER
                )
            """)
            # 处理计数，只有一行 (id = 1)
            await db.execute("""
                CREATE TABLE IF NOT EXISTS stats (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    processed INTEGER NOT NULL DEFAULT 0,
                    today_processed INTEGER NOT NULL DEFAULT 0,
                    last_update_day TEXT NOT NULL DEFAULT ''
                )
            """)
            await db.commit()
        logger.debug(f"[AI Chat] 数据库 {db_path} 初始化/连接成功。")
    except Exception as e:
        logger.error(f"[AI Chat] 数据库 {db_path} 初始化失败: {e}")
        raise


def _to_optional_bool(value) -> Optional[bool]:
    return None if value is None else bool(value)


# --- Group Settings 相关 ---
async def load_group_settings(db_path: Path = DB_PATH) -> Dict[str, GroupConfig]:
    """读取所有已保存的群配置"""
    settings: Dict[str, GroupConfig] = {}
    async with aiosqlite.connect(db_path) as db:
        async with db.execute(
            "SELECT group_id, enabled, ai_enabled, rate_limit_per_minute FROM group_settings"
        ) as cursor:
            async for group_id, enabled, ai_enabled, rate_limit in cursor:
                settings[group_id] = GroupConfig(
                    enabled=_to_optional_bool(enabled),
                    ai_enabled=_to_optional_bool(ai_enabled),
                    rate_limit_per_minute=rate_limit,
                )
    return settings


async def save_group_setting(group_id: str, group_config: GroupConfig, db_path: Path = DB_PATH):
    """更新或插入指定群的配置"""
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT OR REPLACE INTO group_settings (group_id, enabled, ai_enabled, rate_limit_per_minute) "
            "VALUES (?, ?, ?, ?)",
            (
                group_id,
                group_config.enabled,
                group_config.ai_enabled,
                group_config.rate_limit_per_minute,
            ),
        )
        await db.commit()


# --- Stats 相关 ---
async def load_stats(db_path: Path = DB_PATH) -> Optional[Dict[str, object]]:
    """读取处理计数，没有记录时返回 None"""
    async with aiosqlite.connect(db_path) as db:
        async with db.execute(
            "SELECT processed, today_processed, last_update_day FROM stats WHERE id = 1"
        ) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return None
            return {"processed": row[0], "today_processed": row[1], "last_update_day": row[2]}


async def save_stats(processed: int, today_processed: int, last_update_day: str, db_path: Path = DB_PATH):
    """保存处理计数"""
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT OR REPLACE INTO stats (id, processed, today_processed, last_update_day) "
            "VALUES (1, ?, ?, ?)",
            (processed, today_processed, last_update_day),
        )
        await db.commit()
