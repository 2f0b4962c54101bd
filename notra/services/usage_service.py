"""Per-user usage metering against plan quotas."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Literal

from notra.core.usage_limits import PlanLimits, get_plan_limits

logger = logging.getLogger(__name__)

Bucket = Literal["chat", "file", "audio", "video"]


class UsageLimitExceeded(Exception):
    def __init__(self, bucket: str, limit: int, retry_after_seconds: int):
        super().__init__(f"{bucket} limit of {limit} reached")
        self.bucket = bucket
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds


def bucket_limit(limits: PlanLimits, bucket: Bucket) -> int:
    return {
        "chat": limits.max_chat_messages_per_day,
        "file": limits.max_file_sessions_per_month,
        "audio": limits.max_audio_sessions_per_month,
        "video": limits.max_video_sessions_per_month,
    }[bucket]


def _window(bucket: Bucket, now: datetime) -> tuple[datetime, datetime]:
    """[start, end) of the calendar day (chat) or month (uploads) containing `now`, UTC."""
    if bucket == "chat":
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=1)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class UsageMeter:
    """In-process fixed-window counters, one slot per user and bucket.

    A slot holds (window_start, count) and starts over when a call lands in a
    different window, so stale windows are never kept. Counts live for the
    process lifetime only; one meter is shared by the app.
    """

    def __init__(self) -> None:
        self._windows: dict[str, tuple[datetime, int]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    @staticmethod
    def _now(now: datetime | None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    def _used(self, key: str, window_start: datetime) -> int:
        slot = self._windows.get(key)
        if slot is None or slot[0] != window_start:
            return 0
        return slot[1]

    def remaining(self, user_id: str, bucket: Bucket, plan: str | None, now: datetime | None = None) -> int:
        now = self._now(now)
        start, _ = _window(bucket, now)
        limit = bucket_limit(get_plan_limits(plan), bucket)
        with self._lock:
            used = self._used(f"{user_id}:{bucket}", start)
        return max(0, limit - used)

    def check_and_record(self, user_id: str, bucket: Bucket, plan: str | None, now: datetime | None = None) -> int:
        """Count one use; returns what's left, raises UsageLimitExceeded when the window is full."""
        now = self._now(now)
        start, end = _window(bucket, now)
        limit = bucket_limit(get_plan_limits(plan), bucket)
        key = f"{user_id}:{bucket}"
        with self._lock:
            used = self._used(key, start)
            if used >= limit:
                retry_after = max(1, int((end - now).total_seconds()))
                logger.warning("usage limit hit: user=%s bucket=%s limit=%d", user_id, bucket, limit)
                raise UsageLimitExceeded(bucket, limit, retry_after)
            self._windows[key] = (start, used + 1)
        return limit - used - 1
