# src/callback_scheduler/tasks/task_models.py

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_US = timedelta(microseconds=1)

_id_lock = threading.Lock()
_last_id_ns = 0


class DispatchState(StrEnum):
    """
    Per-task dispatcher lifecycle.

    pending -> firing -> removed (terminal). There is no cancelled state:
    a registered task either fires or is abandoned at process exit.
    """

    PENDING = "pending"
    FIRING = "firing"
    REMOVED = "removed"


def parse_rfc3339(raw: str) -> datetime:
    """
    Parse an RFC3339 timestamp into an aware datetime.

    Fractional seconds beyond microseconds are truncated. A timestamp
    without an explicit offset is rejected.
    """
    m = _RFC3339_RE.match(raw)
    if m is None:
        raise ValueError(f"not an RFC3339 timestamp: {raw!r}")

    date_s, time_s, frac, offset = m.groups()
    frac_s = f".{(frac + '000000')[:6]}" if frac else ""
    offset_s = "+00:00" if offset in ("Z", "z") else offset
    return datetime.fromisoformat(f"{date_s}T{time_s}{frac_s}{offset_s}")


def format_rfc3339(dt: datetime) -> str:
    s = dt.replace(microsecond=0).isoformat()
    if s.endswith("+00:00"):
        return s[: -len("+00:00")] + "Z"
    return s


def new_task_id() -> str:
    """
    Generate `task_<unix nanoseconds>`.

    Strictly increasing within the process, so two calls inside one clock
    tick still get distinct ids.
    """
    global _last_id_ns
    with _id_lock:
        ns = time.time_ns()
        if ns <= _last_id_ns:
            ns = _last_id_ns + 1
        _last_id_ns = ns
    return f"task_{ns}"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    scheduled_at: str
    target_time: datetime
    endpoint: str
    payload: Any = None

    @property
    def bucket_key(self) -> str:
        """
        Exact instant as `<unix seconds>.<microseconds>`.

        Equal instants share a bucket whatever offset was used. Computed by
        subtraction, so instants near year 9999 with a negative offset do not
        overflow the way astimezone(UTC) would.
        """
        us = (self.target_time - _EPOCH) // _ONE_US
        return f"{us // 1_000_000}.{us % 1_000_000:06d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "scheduled_at": self.scheduled_at,
            "endpoint": self.endpoint,
            "payload": self.payload,
            "id": self.id,
        }
