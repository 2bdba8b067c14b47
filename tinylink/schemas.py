from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator


class LinkCreate(BaseModel):
    target_url: str
    code: str | None = None

class LinkOut(BaseModel):
    id: int
    code: str
    target_url: str
    total_clicks: int
    last_clicked_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    # SQLite hands timestamps back without an offset; they are stored as UTC
    @field_validator("last_clicked_at", "created_at")
    @classmethod
    def as_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

class LinkQR(BaseModel):
    code: str
    short_url: str
    qr_base64: str

class Health(BaseModel):
    ok: bool
    version: str

class MessageOut(BaseModel):
    ok: bool
    detail: str
