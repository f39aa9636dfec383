from datetime import date, datetime, time

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I %p")


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_time(value: str | None) -> time | None:
    if not value:
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value.strip().upper(), fmt).time()
        except ValueError:
            continue
    return None


def is_valid_date(value: str | None) -> bool:
    return parse_date(value) is not None


def is_valid_time(value: str | None) -> bool:
    return parse_time(value) is not None


def format_date(value: str | None) -> str | None:
    """Normalise a date string to YYYY-MM-DD, or None when it does not parse."""
    parsed = parse_date(value)
    return parsed.strftime(DATE_FORMAT) if parsed else None


def split_date_time(value: str | None) -> tuple[str, str]:
    """Split "2025-12-01 15:00" into its date and time parts."""
    parts = (value or "").strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def is_today(value: str | None, today: date | None = None) -> bool:
    parsed = parse_date(value)
    return parsed is not None and parsed == (today or date.today())


def time_sort_key(value: str | None) -> time:
    return parse_time(value) or time.max


def sort_by_date(events: list) -> list:
    """Order events by date then time; unparseable dates sort last."""
    return sorted(
        events,
        key=lambda e: (parse_date(e.date) or date.max, time_sort_key(e.time)),
    )
