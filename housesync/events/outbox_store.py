from datetime import datetime, timezone
from typing import Iterable, List, Optional

from tortoise.expressions import Q

from housesync.models.outbox import OutboxEvent

# Stored error text is truncated; the full traceback goes to the log
MAX_ERROR_LENGTH = 2000


async def fetch_unpublished(
    batch_size: int,
    max_attempts: int,
    exclude_ids: Iterable[int] = (),
    after: Optional[OutboxEvent] = None,
) -> List[OutboxEvent]:
    """
    Unpublished rows that still have attempts left, oldest first.
    ``after`` pages past a row already seen; ``exclude_ids`` leaves out rows
    the caller is not going to attempt.
    """
    query = OutboxEvent.filter(is_published=False, retry_count__lt=max_attempts)
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        query = query.exclude(id__in=exclude_ids)
    if after is not None:
        query = query.filter(
            Q(created_at__gt=after.created_at) | Q(created_at=after.created_at, id__gt=after.id)
        )
    return await query.order_by("created_at", "id").limit(batch_size)


async def mark_published(row: OutboxEvent) -> None:
    # Idempotent: a second call leaves the row published
    row.is_published = True
    row.published_at = datetime.now(timezone.utc)
    row.last_error = None
    await row.save(update_fields=["is_published", "published_at", "last_error"])


async def mark_failed(row: OutboxEvent, error: str) -> None:
    row.retry_count += 1
    row.last_error = error[:MAX_ERROR_LENGTH]
    await row.save(update_fields=["retry_count", "last_error"])


async def count_pending() -> int:
    return await OutboxEvent.filter(is_published=False).count()


async def list_exhausted(max_attempts: int, limit: int = 100) -> List[OutboxEvent]:
    """Rows the relay gave up on; they stay unpublished for an operator to inspect."""
    return await (
        OutboxEvent.filter(is_published=False, retry_count__gte=max_attempts)
        .order_by("created_at", "id")
        .limit(limit)
    )
