from datetime import datetime, timezone

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def seconds_between(first: datetime, second: datetime) -> float:
    return abs((as_utc(first) - as_utc(second)).total_seconds())


def format_time_difference(first: datetime | None, second: datetime | None) -> str:
    if first is None or second is None:
        return "Unknown"

    minutes = int(seconds_between(first, second) // 60)
    if minutes >= MINUTES_PER_DAY:
        return f"{minutes // MINUTES_PER_DAY} day(s)"
    if minutes >= MINUTES_PER_HOUR:
        return f"{minutes // MINUTES_PER_HOUR} hour(s)"
    return f"{minutes} minute(s)"


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "0 ms"
    if seconds < 1:
        return f"{seconds * 1000:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    return f"{seconds / 60:.2f} min"
