"""
Server-side rendering of pin popups and list entries.

Popups are built as plain dictionaries that clients can render directly, and
can also be serialised to HTML for clients that bind the markup as-is.
"""

from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional

from logic import config
from logic.status import style_for
from logic.validation import DEFAULT_URL_TEXT

EMPTY_PIN_LIST_MESSAGE = "No pins yet. Click the map to add one."

# (pin flag, button kind, button text, config link name)
ACTION_BUTTONS = [
    ("show_donate", "donate", "Donate", "DONATE_URL"),
    ("show_volunteer", "volunteer", "Volunteer", "VOLUNTEER_URL"),
    ("show_help", "help", "Get Help", "REQUEST_HELP_URL"),
]


def format_date(value: Optional[str]) -> str:
    """Format a store timestamp as M/D/YYYY.

    Args:
        value: ISO 8601 timestamp string.

    Returns:
        Formatted date, or an empty string if the timestamp is missing or invalid.
    """
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return ""
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def _button(kind: str, text: str, href: str) -> Dict[str, str]:
    return {
        "kind": kind,
        "text": text,
        "href": href,
        "class_name": f"pin-popup__btn pin-popup__btn--{kind}",
    }


def build_actions(pin: Dict[str, Any]) -> Optional[List[Dict[str, str]]]:
    """Build the call-to-action buttons for a pin popup.

    The section only exists if at least one of the three flags is set. The
    custom link button is only added inside an existing section.

    Args:
        pin: Pin record.

    Returns:
        List of button dictionaries, or None when no flag is set.
    """
    enabled = [entry for entry in ACTION_BUTTONS if pin.get(entry[0]) is True]
    if not enabled:
        return None

    actions = [
        _button(kind, text, getattr(config, setting))
        for _, kind, text, setting in enabled
    ]

    if pin.get("url"):
        actions.append(_button("url", pin.get("url_text") or DEFAULT_URL_TEXT, pin["url"]))

    return actions


def build_popup(pin: Dict[str, Any]) -> Dict[str, Any]:
    """Build popup content for a pin.

    Args:
        pin: Pin record.

    Returns:
        Popup dictionary with header, date, optional address and summary,
        and the action buttons (None when the pin has no action section).
    """
    style = style_for(pin.get("status"))
    return {
        "title": pin.get("title", ""),
        "color": style["color"],
        "date": format_date(pin.get("created_at")),
        "address": pin.get("address") or None,
        "summary": pin.get("summary") or None,
        "actions": build_actions(pin),
    }


def popup_to_html(popup: Dict[str, Any]) -> str:
    """Serialise popup content to HTML. All text and links are escaped."""
    parts = [
        '<div class="pin-popup">',
        '<div class="pin-popup__header">'
        f'<span class="pin-popup__status" style="background-color: {escape(popup["color"])}"></span>'
        f'<span class="pin-popup__title">{escape(popup["title"])}</span>'
        "</div>",
        f'<div class="pin-popup__date">{escape(popup["date"])}</div>',
    ]

    if popup["address"]:
        parts.append(f'<div class="pin-popup__address">{escape(popup["address"])}</div>')

    if popup["summary"]:
        parts.append(f'<p class="pin-popup__summary">{escape(popup["summary"])}</p>')

    if popup["actions"]:
        parts.append('<div class="pin-popup__actions">')
        for button in popup["actions"]:
            parts.append(
                f'<a class="{button["class_name"]}" href="{escape(button["href"])}" '
                f'target="_blank">{escape(button["text"])}</a>'
            )
        parts.append("</div>")

    parts.append("</div>")
    return "".join(parts)


def render_pin_list(pins: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the admin pin list.

    Args:
        pins: Pins in display order.

    Returns:
        Dictionary with list items and, when empty, the placeholder message.
    """
    if not pins:
        return {"items": [], "empty_message": EMPTY_PIN_LIST_MESSAGE}

    items = [
        {
            "id": pin.get("id"),
            "title": pin.get("title", ""),
            "status": pin.get("status"),
            "color": style_for(pin.get("status"))["color"],
        }
        for pin in pins
    ]
    return {"items": items, "empty_message": None}
