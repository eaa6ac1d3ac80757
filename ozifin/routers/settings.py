"""
Lookup lists for the transaction form and UI text overrides.
Reading is open to any signed-in user (config also to anonymous callers); writing is admin only.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from ozifin.database import get_db
from ozifin import models
from ozifin.crud.settings import crud_setting, crud_app_config
from ozifin.dependencies import require_admin
from ozifin.schemas.settings import (
    AppConfigItem,
    AppConfigUpdate,
    GroupedSettings,
    SettingCreate,
    SettingResponse,
)
from ozifin.security import get_current_user, audit_log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=GroupedSettings)
async def get_settings(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud_setting.grouped(db)


@router.post("", response_model=SettingResponse, status_code=status.HTTP_201_CREATED)
async def add_setting(
    setting_in: SettingCreate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    value = setting_in.value.strip()
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Value is required"
        )
    if crud_setting.exists(db, setting_in.category.value, value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Value already exists"
        )

    setting = crud_setting.create(db, obj_in={"category": setting_in.category.value, "value": value})
    if setting is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save setting"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="SETTING_CREATE",
        table_name="settings",
        record_id=setting.id,
        new_values={"category": setting.category, "value": setting.value}
    )
    return setting


@router.delete("/{setting_id}")
async def delete_setting(
    setting_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    setting = crud_setting.remove(db, id=setting_id)
    if setting is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Setting not found"
        )

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="SETTING_DELETE",
        table_name="settings",
        record_id=setting_id,
        old_values={"category": setting.category, "value": setting.value}
    )
    return {"id": setting_id, "deleted": True}


@router.get("/items", response_model=List[SettingResponse])
async def list_setting_items(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Raw rows with ids, for the admin screen"""
    return crud_setting.get_multi(db, limit=1000)


# -----------------------------
# App config
# -----------------------------
@router.get("/config")
async def get_app_config(
    keys: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    """Public: the login page reads its title and slogan before anyone signs in."""
    return crud_app_config.get_values(db, keys)


@router.get("/config/items", response_model=List[AppConfigItem])
async def list_app_config(
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return crud_app_config.list_items(db)


@router.put("/config")
async def update_app_config(
    update: AppConfigUpdate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Dict[str, str]:
    old_values = crud_app_config.get_values(db, list(update.values))
    values = crud_app_config.set_values(db, update.values)

    audit_log_action(
        db=db,
        user_id=current_user.id,
        action="APP_CONFIG_UPDATE",
        table_name="app_config",
        old_values=old_values,
        new_values=update.values
    )
    return values
