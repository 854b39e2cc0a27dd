"""Layout Schemas — dashboard layout persistence."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class LayoutRequest(BaseModel):
    layout: dict[str, Any]


class LayoutResponse(BaseModel):
    layout: dict[str, Any] | None = None
    updated_at: datetime | None = None
