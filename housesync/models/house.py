from tortoise import fields, models


class House(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    address = fields.CharField(max_length=512, default="")
    area = fields.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        table = "houses"


class Room(models.Model):
    id = fields.IntField(primary_key=True)
    house = fields.ForeignKeyField("owner.House", related_name="rooms", on_delete=fields.CASCADE)
    name = fields.CharField(max_length=255)
    type = fields.CharField(max_length=64, default="")
    area = fields.DecimalField(max_digits=12, decimal_places=2)
    placement = fields.CharField(max_length=255, default="")

    class Meta:
        table = "rooms"
        indexes = [
            ("house_id",),  # Rooms of a house
        ]
