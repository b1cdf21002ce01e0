# utils/datetime_utils.py
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
     """Current UTC time as a naive datetime, matching how timestamps are stored."""
     return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch(value: datetime) -> int:
     """Seconds since the epoch for a naive-UTC (or aware) datetime."""
     if value.tzinfo is None:
          value = value.replace(tzinfo=timezone.utc)
     return int(value.timestamp())
