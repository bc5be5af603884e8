from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from clipboard_god.models import ItemType


class ItemCandidate(BaseModel):  # add_item request from the sampler or a capture collaborator
    type: ItemType
    content: Union[str, bytes]
    timestamp: Optional[datetime] = None
    id: Optional[str] = None


class HistoryRecord(BaseModel):  # one entry of history.json
    id: str
    type: ItemType
    content: str
    timestamp: int = Field(ge=0)  # epoch milliseconds
