from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class NotificationResponse(BaseModel):
    id: int
    user_id: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationReadResponse(BaseModel):
    id: int
    is_read: bool
    link: Optional[str] = None  # where the client navigates after marking read

    class Config:
        from_attributes = True


class ReadAllResponse(BaseModel):
    updated: int
