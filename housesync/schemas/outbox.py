from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OutboxEventResponse(BaseModel):
    """Outbox row in its stable camelCase shape, for replay and debugging."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    event_type: str
    event_data: str
    created_at: datetime
    is_published: bool
    published_at: Optional[datetime] = None
    retry_count: int
    last_error: Optional[str] = None
