import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import PRODUCTION_DAYS_SETTING
from app.core.exceptions import SettingsError
from app.models.system_setting import SystemSetting

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Read/write helpers for the system_settings key/value table.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_setting(self, key: str) -> Optional[str]:
        """
        Raises:
            SettingsError: If the settings table cannot be read
        """
        try:
            result = await self.db.execute(select(SystemSetting.value).where(SystemSetting.key == key))
        except SQLAlchemyError as e:
            raise SettingsError(f"Failed to read setting '{key}': {str(e)}") from e
        return result.scalar_one_or_none()

    async def get_setting_with_default(self, key: str, default: str) -> str:
        value = await self.get_setting(key)
        return value or default

    async def get_setting_as_int(self, key: str, default: int) -> int:
        value = await self.get_setting(key)
        if not value:
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Setting '{key}' is not an integer: {value!r}")
            return default

    async def set_setting(self, key: str, value: str, description: Optional[str] = None) -> None:
        """Insert or update a setting; an omitted description keeps the stored one."""
        stmt = insert(SystemSetting).values(key=key, value=value, description=description)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SystemSetting.key],
            set_={
                "value": stmt.excluded.value,
                "description": func.coalesce(stmt.excluded.description, SystemSetting.description),
                "updated_at": func.now(),
            },
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SettingsError(f"Failed to save setting '{key}': {str(e)}") from e

    async def get_all_settings(self) -> List[SystemSetting]:
        result = await self.db.execute(select(SystemSetting).order_by(SystemSetting.key))
        return list(result.scalars().all())

    async def delete_setting(self, key: str) -> None:
        try:
            await self.db.execute(delete(SystemSetting).where(SystemSetting.key == key))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise SettingsError(f"Failed to delete setting '{key}': {str(e)}") from e

    async def get_production_days(self) -> int:
        """Global production lead time; 0 when unset, invalid or unreadable."""
        try:
            days = await self.get_setting_as_int(PRODUCTION_DAYS_SETTING, 0)
        except SettingsError as e:
            logger.error(f"Error reading production days, using 0: {str(e)}")
            return 0
        return max(days, 0)

    async def set_production_days(self, days: int) -> int:
        if days < 0:
            raise SettingsError("Production days cannot be negative")
        await self.set_setting(
            PRODUCTION_DAYS_SETTING,
            str(days),
            "Business days added to every shipping estimate",
        )
        logger.info(f"Production days set to {days}")
        return days
