"""Schedule calculation utilities.

Converts rule intervals to host trigger periods and human-readable text.
"""
import time

SECONDS_PER_MINUTE = 60


def now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def interval_seconds(interval_minutes: int) -> int:
    """Repeat period handed to the host for an interval in minutes."""
    return interval_minutes * SECONDS_PER_MINUTE


def interval_to_human(interval_minutes: int) -> str:
    """Convert an interval in minutes to a human-readable description.

    Args:
        interval_minutes: Interval in minutes

    Returns:
        Description such as "every 5 minutes" or "every 1 hour 30 minutes"
    """
    if interval_minutes <= 1:
        return "every minute"
    if interval_minutes < 60:
        return f"every {interval_minutes} minutes"

    hours, minutes = divmod(interval_minutes, 60)
    hours_text = f"{hours} hour" if hours == 1 else f"{hours} hours"
    if minutes == 0:
        return f"every {hours_text}"
    minutes_text = f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"every {hours_text} {minutes_text}"
