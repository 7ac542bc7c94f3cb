from datetime import datetime, timezone


def utcnow() -> datetime:
    # Toutes les dates sont stockées en UTC naïf
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
