from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from housesync.schemas.house import RoomRequest, RoomResponse
from housesync.schemas.response import SuccessResponse
from housesync.services import house_service
from housesync.services.unit_of_work import TransactionalOutbox, get_unit_of_work

router = APIRouter()


@router.get("/", response_model=SuccessResponse)
async def list_rooms_endpoint(house_id: Optional[int] = None):
    rooms = await house_service.list_rooms(house_id)
    return SuccessResponse(data=[RoomResponse.model_validate(r).model_dump() for r in rooms])


@router.get("/{room_id}", response_model=SuccessResponse)
async def get_room_endpoint(room_id: int):
    room = await house_service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return SuccessResponse(data=RoomResponse.model_validate(room).model_dump())


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_room_endpoint(payload: RoomRequest, uow: TransactionalOutbox = Depends(get_unit_of_work)):
    room = await house_service.create_room(
        uow, payload.house_id, payload.name, payload.type, payload.area, payload.placement
    )
    return SuccessResponse(data=RoomResponse.model_validate(room).model_dump())


@router.put("/{room_id}", response_model=SuccessResponse)
async def update_room_endpoint(
    room_id: int, payload: RoomRequest, uow: TransactionalOutbox = Depends(get_unit_of_work)
):
    room = await house_service.update_room(
        uow, room_id, payload.house_id, payload.name, payload.type, payload.area, payload.placement
    )
    return SuccessResponse(data=RoomResponse.model_validate(room).model_dump())


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room_endpoint(room_id: int, uow: TransactionalOutbox = Depends(get_unit_of_work)):
    await house_service.delete_room(uow, room_id)
