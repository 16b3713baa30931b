from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from models.settings import SettingsItem, MetadataItem
from core.logger import logger
from utils.timeutil import now_ms

QUESTIONS_META_KEY = "questions"
CONFIG_KEY = "config"


class SettingsService:
    """Key/value items for event settings and collection metadata markers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self, key: str) -> dict:
        item = await self.db.get(SettingsItem, key)
        if not item:
            return {}
        return {"configKey": key, **(item.data or {})}

    async def put_settings(self, key: str, data: dict) -> None:
        # Whole-item replace, never a merge
        data = {k: v for k, v in data.items() if k != "configKey"}
        item = await self.db.get(SettingsItem, key)
        if item:
            item.data = data
        else:
            self.db.add(SettingsItem(config_key=key, data=data))
        await self.db.commit()
        logger.info("Settings saved", key=key, fields=list(data.keys()))

    async def get_metadata(self, key: str) -> dict:
        item = await self.db.get(MetadataItem, key)
        if not item:
            return {}
        return {"metaKey": key, **(item.data or {})}

    async def put_metadata(self, key: str, data: dict, commit: bool = True) -> None:
        data = {k: v for k, v in data.items() if k != "metaKey"}
        item = await self.db.get(MetadataItem, key)
        if item:
            item.data = data
        else:
            self.db.add(MetadataItem(meta_key=key, data=data))
        if commit:
            await self.db.commit()

    async def touch_questions(self, timestamp: Optional[int] = None, commit: bool = False) -> int:
        """Move the questions staleness marker forward. Part of the caller's transaction by default."""
        timestamp = timestamp or now_ms()
        await self.put_metadata(QUESTIONS_META_KEY, {"lastUpdated": timestamp}, commit=commit)
        return timestamp

    async def is_quiz_active(self) -> bool:
        config = await self.get_settings(CONFIG_KEY)
        return bool(config.get("isQuizActive", True))
