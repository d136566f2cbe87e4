# housesync/scripts/seed_data.py
import asyncio
from decimal import Decimal

from housesync.core.db import close_db, init_db
from housesync.core.logging_config import configure_logging
from housesync.models.house import House
from housesync.services.house_service import create_house, create_room
from housesync.services.unit_of_work import TransactionalOutbox


async def seed():
    """Creates a demo house with rooms through the unit of work, so the outbox gets its rows too."""
    if await House.filter(name="Demo House").exists():
        print("Demo data already present.")
        return

    uow = TransactionalOutbox()
    house = await create_house(uow, "Demo House", "1 Example Street", Decimal("142.50"))
    print("House:", house.id)

    for name, room_type, area, placement in [
        ("Living Room", "living", Decimal("38.00"), "ground floor"),
        ("Kitchen", "kitchen", Decimal("16.50"), "ground floor"),
        ("Bedroom", "bedroom", Decimal("21.00"), "first floor"),
    ]:
        room = await create_room(uow, house.id, name, room_type, area, placement)
        print("Room:", room.id, name)

    print("Seeded; the relay will replicate the outbox rows.")


async def main():
    configure_logging()
    await init_db()
    await seed()
    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
