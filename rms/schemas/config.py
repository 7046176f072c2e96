"""Runtime configuration schemas."""

from datetime import datetime
from typing import Any

from rms.models.config import ConfigCategory
from rms.schemas.common import BaseSchema


class ConfigResponse(BaseSchema):
    id: int
    key: str
    value: Any
    category: ConfigCategory
    description: str | None
    is_active: bool
    updated_by_id: int | None
    updated_at: datetime


class ConfigUpdate(BaseSchema):
    value: Any
    description: str | None = None
    is_active: bool | None = None
