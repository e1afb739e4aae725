import math
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Sao_Paulo"


def whole_seconds(delta: timedelta) -> int:
    """Round a duration to whole seconds (half up), never below zero."""
    return max(0, math.floor(delta.total_seconds() + 0.5))


def fmt_duration(sec: int) -> str:
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    out = []
    if h:
        out.append(f"{h}h")
    if m:
        out.append(f"{m}m")
    if s or not out:
        out.append(f"{s}s")
    return " ".join(out)


def fmt_iso(dt: datetime | None) -> str:
    if dt is None:
        return ""
    return dt.isoformat()


def fmt_local(dt: datetime | None, tz_name: str = DEFAULT_TIMEZONE) -> str:
    # 03/02/2025, 14:05:09
    if dt is None:
        return ""
    return dt.astimezone(ZoneInfo(tz_name)).strftime("%d/%m/%Y, %H:%M:%S")
