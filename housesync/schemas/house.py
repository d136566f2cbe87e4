from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class HouseRequest(BaseModel):
    """Schema for creating or replacing a house."""
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field("", max_length=512)
    area: Decimal = Field(..., gt=0, description="Floor area in square metres.")


class HouseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str
    area: Decimal


class RoomRequest(BaseModel):
    """Schema for creating or replacing a room."""
    house_id: int
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("", max_length=64)
    area: Decimal = Field(..., gt=0)
    placement: str = Field("", max_length=255)


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    house_id: int
    name: str
    type: str
    area: Decimal
    placement: str
