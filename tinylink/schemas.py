from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LinkCreate(BaseModel):
    url: str | None = None
    code: str | None = None

class LinkOut(BaseModel):
    code: str
    target_url: str
    total_clicks: int
    last_clicked: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LinkStats(LinkOut):
    short_url: str

class MessageOut(BaseModel):
    ok: bool
    detail: str

class ErrorOut(BaseModel):
    detail: str
    error: str
