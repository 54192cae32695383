"""
Pin status categories.

The single table of status categories, their labels, colors and emoji. Every
part of the application that styles, counts or filters pins reads it from here.
"""

from enum import Enum
from typing import Dict, Optional


class PinStatus(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    ACTIVE = "active"
    PAST = "past"
    WEATHER = "weather"


STATUS_STYLES: Dict[PinStatus, Dict[str, str]] = {
    PinStatus.CRITICAL: {"label": "Critical", "color": "#dc2626", "emoji": "🔴"},
    PinStatus.WARNING: {"label": "Warning", "color": "#f97316", "emoji": "🟠"},
    PinStatus.ACTIVE: {"label": "Active", "color": "#16a34a", "emoji": "🟢"},
    PinStatus.PAST: {"label": "Past", "color": "#2563eb", "emoji": "🔵"},
    PinStatus.WEATHER: {"label": "Weather", "color": "#eab308", "emoji": "🟡"},
}

ALL_STATUSES = frozenset(s.value for s in PinStatus)
DEFAULT_STATUS = PinStatus.ACTIVE


def parse_status(value: Optional[str]) -> Optional[PinStatus]:
    """Convert a raw status string to a PinStatus.

    Args:
        value: Status string as stored on a pin.

    Returns:
        The matching PinStatus, or None if the value is not a known category.
    """
    try:
        return PinStatus(value)
    except ValueError:
        return None


def style_for(value: Optional[str]) -> Dict[str, str]:
    """Get the style entry for a status, falling back to the default category.

    Args:
        value: Status string as stored on a pin.

    Returns:
        Dictionary with label, color and emoji.
    """
    status = parse_status(value) or DEFAULT_STATUS
    return STATUS_STYLES[status]


def filter_category(value: Optional[str]) -> str:
    """Get the category a pin is filtered under.

    Unknown statuses belong to the default category, the same one they are
    styled as.
    """
    return (parse_status(value) or DEFAULT_STATUS).value


def marker_class_name(value: Optional[str]) -> str:
    """Build the CSS class string for a pin marker.

    Past pins don't pulse.
    """
    base_class = f"pin-marker--{value}"
    if value == PinStatus.PAST.value:
        return base_class
    return f"pin-marker--pulse {base_class}"


def status_table() -> Dict[str, Dict[str, str]]:
    """Get the status table keyed by status string, in legend order."""
    return {status.value: dict(style) for status, style in STATUS_STYLES.items()}
