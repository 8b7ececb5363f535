"""Datetime helpers."""

from __future__ import annotations

import math

import pendulum


def utc_now() -> pendulum.DateTime:
    return pendulum.now("UTC")


def to_iso(value: pendulum.DateTime | None) -> str | None:
    if value is None:
        return None
    return value.to_iso8601_string()


def parse_iso(value: str | None) -> pendulum.DateTime | None:
    if not value:
        return None
    return pendulum.parse(value)


def format_elapsed(seconds: float) -> str:
    if math.isinf(seconds):
        return "unlimited"
    duration = pendulum.duration(seconds=int(seconds))
    hours = int(duration.total_hours())
    return f"{hours}h {duration.minutes}m"
