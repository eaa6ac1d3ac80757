"""
Lookup lists for the transaction form and UI text overrides.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging
from typing import Dict, List, Optional

from ozifin.crud.base import CRUDBase
from ozifin.models import AppConfig, Setting
from ozifin.schemas.settings import SettingCategory

logger = logging.getLogger(__name__)

APP_CONFIG_DEFAULTS = {
    "login_title": ("OZIFIN", "Login page title"),
    "login_slogan": ("Hệ thống quản lý dòng tiền chuyên nghiệp", "Login page slogan"),
    "sidebar_title": ("OZIFIN", "Sidebar title"),
    "sidebar_slogan": ("Transaction System", "Sidebar slogan"),
}

GROUP_NAMES = {
    SettingCategory.AGENCY.value: "agencies",
    SettingCategory.BANK.value: "banks",
    SettingCategory.CARD_TYPE.value: "card_types",
    SettingCategory.POS.value: "pos_machines",
}


class CRUDSetting(CRUDBase[Setting]):
    def __init__(self):
        super().__init__(Setting)

    def grouped(self, db: Session) -> Dict[str, List[str]]:
        grouped = {name: [] for name in GROUP_NAMES.values()}
        stmt = select(Setting).order_by(Setting.category, Setting.value)
        for setting in db.execute(stmt).scalars().all():
            name = GROUP_NAMES.get(setting.category)
            if name:
                grouped[name].append(setting.value)
        return grouped

    def exists(self, db: Session, category: str, value: str) -> bool:
        stmt = select(Setting.id).where(Setting.category == category, Setting.value == value)
        return db.execute(stmt).first() is not None


class CRUDAppConfig:
    def get_values(self, db: Session, keys: Optional[List[str]] = None) -> Dict[str, str]:
        """Stored values over the built-in defaults"""
        values = {key: default for key, (default, _) in APP_CONFIG_DEFAULTS.items()}
        stmt = select(AppConfig)
        if keys:
            stmt = stmt.where(AppConfig.key.in_(keys))
            values = {key: value for key, value in values.items() if key in keys}
        for item in db.execute(stmt).scalars().all():
            values[item.key] = item.value
        return values

    def list_items(self, db: Session) -> List[AppConfig]:
        stored = {item.key: item for item in db.execute(select(AppConfig).order_by(AppConfig.key)).scalars().all()}
        for key, (default, description) in APP_CONFIG_DEFAULTS.items():
            stored.setdefault(key, AppConfig(key=key, value=default, description=description))
        return [stored[key] for key in sorted(stored)]

    def set_values(self, db: Session, values: Dict[str, str]) -> Dict[str, str]:
        for key, value in values.items():
            item = db.get(AppConfig, key)
            if item is None:
                description = APP_CONFIG_DEFAULTS.get(key, (None, None))[1]
                db.add(AppConfig(key=key, value=value, description=description))
            else:
                item.value = value
        db.commit()
        logger.info(f"App config updated: {', '.join(sorted(values))}")
        return self.get_values(db)


crud_setting = CRUDSetting()
crud_app_config = CRUDAppConfig()
