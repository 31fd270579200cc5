"""Shared utilities (timestamps)."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with host timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_iso(value: str) -> datetime:
    """Parse ISO 8601 (GitHub uses a trailing Z); naive results become UTC."""
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def parse_iso_optional(value: str | None) -> datetime | None:
    if not value:
        return None
    return parse_iso(value)
