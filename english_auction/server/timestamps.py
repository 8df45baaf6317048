from datetime import datetime, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(ts: int) -> str:
    """Unix seconds -> "2018-12-01T10:00:00Z" (UTC)."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(ISO_FORMAT)


def parse_timestamp(value: str) -> int:
    """
    ISO 8601 -> Unix seconds. Accepts fractional seconds (dropped) and a
    trailing "Z" or explicit UTC offset; a naive time is taken as UTC.
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())
