import datetime as dt
from typing import Optional

from fastapi import APIRouter, status

from housesync.schemas.replica import TemperatureRequest, TemperatureResponse
from housesync.schemas.response import SuccessResponse
from housesync.services import replica_service

router = APIRouter()


@router.get("/houses", response_model=SuccessResponse)
async def replica_houses_endpoint():
    """Houses and rooms as the replica currently sees them."""
    houses = await replica_service.houses_with_rooms()
    return SuccessResponse(data=[h.model_dump() for h in houses])


@router.get("/rooms/{room_id}/temperatures", response_model=SuccessResponse)
async def room_temperatures_endpoint(room_id: int, date: Optional[dt.date] = None):
    readings = await replica_service.temperatures_for_room(room_id, date)
    return SuccessResponse(data=[TemperatureResponse.model_validate(t).model_dump() for t in readings])


@router.post("/temperatures", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def record_temperature_endpoint(payload: TemperatureRequest):
    reading = await replica_service.record_temperature(payload.room_id, payload.hour, payload.degrees, payload.date)
    return SuccessResponse(data=TemperatureResponse.model_validate(reading).model_dump())
