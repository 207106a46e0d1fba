from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.utcnow()


def shop_zone() -> tzinfo:
    """The shop's wall-clock zone (SHOP_TIMEZONE); UTC outside an app context."""
    name = current_app.config.get("SHOP_TIMEZONE") if has_app_context() else None
    return ZoneInfo(name or "UTC")


def to_local(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """UTC-naive -> aware datetime in the shop zone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz or shop_zone())


def local_today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> date:
    return to_local(now or utcnow(), tz).date()


def local_day_bounds(start_day: date, end_day: date, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """
    UTC-naive bounds covering local midnight of start_day through the last
    instant of end_day, ready to compare against stored timestamps.
    """
    tz = tz or shop_zone()
    start = datetime.combine(start_day, time.min, tzinfo=tz)
    end = datetime.combine(end_day, time.max, tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def format_local(dt: Optional[datetime], fmt: str = "%Y-%m-%d %H:%M", tz: Optional[tzinfo] = None) -> str:
    """Human-facing timestamp in the shop zone for receipts and exports ("" when missing)."""
    if dt is None:
        return ""
    return to_local(dt, tz).strftime(fmt)
