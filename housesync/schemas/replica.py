import datetime as dt
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TemperatureRequest(BaseModel):
    room_id: int
    hour: int = Field(..., ge=0, le=23)
    degrees: float
    date: dt.date = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc).date())


class TemperatureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: int
    hour: int
    degrees: float
    date: dt.date


class ReplicaRoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    room_id: int
    house_id: int
    name: str
    type: str
    area: Decimal
    placement: str


class ReplicaHouseResponse(BaseModel):
    house_id: int
    name: str
    address: str
    area: Decimal
    rooms: List[ReplicaRoomResponse] = []
