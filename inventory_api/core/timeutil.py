from datetime import datetime, timezone


def utc_now() -> datetime:
    # naive UTC, the same shape Motor hands back when reading dates
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Query bounds may arrive with an offset; stored dates are naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
