from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from typing import Optional


class PublishPayload(BaseModel):
    """JSON body of a publish request."""

    model_config = ConfigDict(extra="ignore")

    event: Optional[str] = None
    data: str
