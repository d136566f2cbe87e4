import logging

from fastapi import APIRouter, Depends, HTTPException, status

from housesync.schemas.house import HouseRequest, HouseResponse
from housesync.schemas.response import SuccessResponse
from housesync.services import house_service
from housesync.services.unit_of_work import TransactionalOutbox, get_unit_of_work

log = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=SuccessResponse)
async def list_houses_endpoint():
    houses = await house_service.list_houses()
    return SuccessResponse(data=[HouseResponse.model_validate(h).model_dump() for h in houses])


@router.get("/{house_id}", response_model=SuccessResponse)
async def get_house_endpoint(house_id: int):
    house = await house_service.get_house(house_id)
    if not house:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="House not found")
    return SuccessResponse(data=HouseResponse.model_validate(house).model_dump())


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_house_endpoint(payload: HouseRequest, uow: TransactionalOutbox = Depends(get_unit_of_work)):
    """Creates a house; the HouseCreated event is committed with it."""
    house = await house_service.create_house(uow, payload.name, payload.address, payload.area)
    log.info("House %s created.", house.id)
    return SuccessResponse(data=HouseResponse.model_validate(house).model_dump())


@router.put("/{house_id}", response_model=SuccessResponse)
async def update_house_endpoint(
    house_id: int, payload: HouseRequest, uow: TransactionalOutbox = Depends(get_unit_of_work)
):
    house = await house_service.update_house(uow, house_id, payload.name, payload.address, payload.area)
    return SuccessResponse(data=HouseResponse.model_validate(house).model_dump())


@router.delete("/{house_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_house_endpoint(house_id: int, uow: TransactionalOutbox = Depends(get_unit_of_work)):
    """Deletes the house and its rooms."""
    await house_service.delete_house(uow, house_id)
