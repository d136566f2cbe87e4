from tortoise import fields, models


class ReplicaHouse(models.Model):
    """Read copy of an owner House. Ids come from events, never generated here."""
    house_id = fields.IntField(primary_key=True, generated=False)
    name = fields.CharField(max_length=255)
    address = fields.CharField(max_length=512, default="")
    area = fields.DecimalField(max_digits=12, decimal_places=2)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "replica_houses"


class ReplicaRoom(models.Model):
    # No foreign key: consumers delete children explicitly
    room_id = fields.IntField(primary_key=True, generated=False)
    house_id = fields.IntField(db_index=True)
    name = fields.CharField(max_length=255)
    type = fields.CharField(max_length=64, default="")
    area = fields.DecimalField(max_digits=12, decimal_places=2)
    placement = fields.CharField(max_length=255, default="")
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "replica_rooms"


class Temperature(models.Model):
    id = fields.IntField(primary_key=True)
    room_id = fields.IntField(db_index=True)
    hour = fields.IntField()
    degrees = fields.FloatField()
    date = fields.DateField()

    class Meta:
        table = "temperatures"
        unique_together = (("room_id", "hour", "date"),)
        indexes = [
            ("room_id", "date"),
        ]
