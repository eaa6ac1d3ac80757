from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class SettingCategory(str, Enum):
    AGENCY = "agency"
    BANK = "bank"
    CARD_TYPE = "cardType"
    POS = "pos"


class SettingCreate(BaseModel):
    category: SettingCategory
    value: str = Field(..., min_length=1, max_length=150)


class SettingResponse(BaseModel):
    id: int
    category: str
    value: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupedSettings(BaseModel):
    agencies: List[str] = []
    banks: List[str] = []
    card_types: List[str] = []
    pos_machines: List[str] = []


# ------------------------------
# App config (UI text overrides)
# ------------------------------
class AppConfigItem(BaseModel):
    key: str
    value: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class AppConfigUpdate(BaseModel):
    values: Dict[str, str]
