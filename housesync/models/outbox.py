from tortoise import fields, models


class OutboxEvent(models.Model):
    """
    The Outbox table stores events atomically with the database transaction.
    A row exists only if its mutation committed. Only the publish state and the
    retry bookkeeping ever change after insertion; event_data is immutable.
    """
    id = fields.IntField(primary_key=True)
    event_type = fields.CharField(max_length=64)  # e.g., 'HouseCreated'
    event_data = fields.TextField()  # Serialized JSON payload, without the type tag
    created_at = fields.DatetimeField(auto_now_add=True)
    is_published = fields.BooleanField(default=False)
    published_at = fields.DatetimeField(null=True)
    retry_count = fields.IntField(default=0)
    last_error = fields.TextField(null=True)

    class Meta:
        table = "outbox_events"
        indexes = [
            ("is_published", "created_at"),  # Relay scan: unpublished, oldest first
        ]

    def __str__(self):
        return f"OutboxEvent({self.id}, {self.event_type})"
