# state.py
# 插件运行时状态：配置、统计、限频、历史与过滤器

import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from nonebot.log import logger

from .config import Config, GroupConfig
from .data_source import load_group_settings, load_stats, save_group_setting, save_stats
from .filters import ContentFilter
from .history import HistoryStore
from .limiter import RateGate
from .utils import format_uptime


def _today() -> str:
    return date.today().isoformat()


@dataclass
class Stats:
    processed: int = 0
    today_processed: int = 0
    last_update_day: str = field(default_factory=_today)


class PluginState:
    """Everything the pipeline shares across events.

    One instance is built when the plugin is imported and filled in at
    startup; tests build their own.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        db_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self.db_path = db_path
        self.start_time = clock()
        self.self_id = ""
        self.stats = Stats()
        self.gate = RateGate(clock)
        self.history = HistoryStore()
        self.replace_config(config or Config())

    # --- 配置 ---
    def replace_config(self, config: Config) -> None:
        self.config = config
        self.content_filter = ContentFilter(config.blacklist_qqs, config.blocked_patterns)

    def group_config(self, group_id: str) -> Optional[GroupConfig]:
        return self.config.group_configs.get(group_id)

    def is_group_enabled(self, group_id: str) -> bool:
        """默认启用，除非明确设置为 False"""
        group = self.group_config(group_id)
        return not (group and group.enabled is False)

    def is_ai_enabled(self, group_id: str) -> bool:
        group = self.group_config(group_id)
        return not (group and group.ai_enabled is False)

    def rate_limit_for(self, group_id: str) -> int:
        group = self.group_config(group_id)
        if group and group.rate_limit_per_minute is not None:
            return group.rate_limit_per_minute
        return self.config.rate_limit_per_minute

    async def update_group_config(self, group_id: str, **changes) -> GroupConfig:
        """合并更新指定群的配置，并在挂载了数据库时持久化"""
        current = self.group_config(group_id) or GroupConfig()
        updated = current.model_copy(update=changes)
        self.config.group_configs[group_id] = updated
        if self.db_path is not None:
            await save_group_setting(group_id, updated, self.db_path)
            await self.save_stats()
        return updated

    # --- 持久化 ---
    async def restore(self) -> None:
        """从数据库恢复群配置和统计，数据库中的群配置覆盖 YAML 中的同名项"""
        if self.db_path is None:
            return
        stored_groups = await load_group_settings(self.db_path)
        for group_id, stored in stored_groups.items():
            base = self.group_config(group_id) or GroupConfig()
            overrides = stored.model_dump(exclude_none=True)
            self.config.group_configs[group_id] = base.model_copy(update=overrides)
        stored_stats = await load_stats(self.db_path)
        if stored_stats:
            self.stats = Stats(**stored_stats)
        logger.debug(
            f"[AI Chat] 已恢复 {len(stored_groups)} 个群配置，累计处理 {self.stats.processed} 条"
        )

    async def save_stats(self) -> None:
        if self.db_path is None:
            return
        await save_stats(
            self.stats.processed,
            self.stats.today_processed,
            self.stats.last_update_day,
            self.db_path,
        )

    # --- 统计 ---
    def increment_processed(self) -> None:
        today = _today()
        if self.stats.last_update_day != today:
            self.stats.today_processed = 0
            self.stats.last_update_day = today
        self.stats.today_processed += 1
        self.stats.processed += 1

    def uptime(self) -> float:
        return self._clock() - self.start_time

    def uptime_formatted(self) -> str:
        return format_uptime(self.uptime())
