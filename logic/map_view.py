"""
Server-side model of the rendered map.

Mirrors what clients draw: one marker per cached pin (with its popup), the
dimmed state set by the legend filter, the viewport and the search radius
overlay. Clients receive snapshots of this model and the changes made to it.
"""

from typing import Any, Dict, List, Optional, Set, Tuple

from logic import config
from logic.geo import search_circle
from logic.render import build_popup, popup_to_html
from logic.status import filter_category, marker_class_name, style_for

DIMMED_CLASS = "pin-marker--dimmed"


def pin_key(pin_id: Any) -> str:
    """Normalise a pin id for lookups (store ids may arrive as int or str)."""
    return str(pin_id)


def create_marker(pin: Dict[str, Any]) -> Dict[str, Any]:
    """Create a colored circle marker for a pin.

    Args:
        pin: Pin record.

    Returns:
        Marker dictionary including popup content.
    """
    popup = build_popup(pin)
    return {
        "id": pin.get("id"),
        "lat": pin.get("lat"),
        "lng": pin.get("lng"),
        "status": pin.get("status"),
        "radius": 10,
        "fill_color": style_for(pin.get("status"))["color"],
        "class_name": marker_class_name(pin.get("status")),
        "dimmed": False,
        "popup": popup,
        "popup_html": popup_to_html(popup),
    }


class MapView:
    """Markers, viewport and search overlay for the public map."""

    def __init__(self, center: Tuple[float, float] = config.MAP_CENTER, zoom: int = config.MAP_ZOOM):
        self.center: List[float] = list(center)
        self.zoom = zoom
        self.markers: Dict[str, Dict[str, Any]] = {}
        self.search_circle: Optional[Dict[str, Any]] = None
        # Number of full re-renders; single-marker changes don't count
        self.render_count = 0

    def render_pins(self, pins: List[Dict[str, Any]]) -> None:
        """Clear all markers and draw one per pin."""
        self.markers.clear()
        for pin in pins:
            self.markers[pin_key(pin.get("id"))] = create_marker(pin)
        self.render_count += 1

    def add_pin(self, pin: Dict[str, Any]) -> Dict[str, Any]:
        marker = create_marker(pin)
        self.markers[pin_key(pin.get("id"))] = marker
        return marker

    def remove_pin(self, pin_id: Any) -> bool:
        return self.markers.pop(pin_key(pin_id), None) is not None

    def apply_filter(self, active_statuses: Set[str]) -> List[Any]:
        """Dim markers whose status category is not active.

        Args:
            active_statuses: Statuses to show fully.

        Returns:
            Ids of the markers that are dimmed after the update.
        """
        dimmed = []
        for marker in self.markers.values():
            marker["dimmed"] = filter_category(marker["status"]) not in active_statuses
            if marker["dimmed"]:
                dimmed.append(marker["id"])
        return dimmed

    def dimmed_ids(self) -> List[Any]:
        return [m["id"] for m in self.markers.values() if m["dimmed"]]

    def set_view(self, lat: float, lng: float, zoom: int) -> None:
        self.center = [lat, lng]
        self.zoom = zoom

    def draw_search_circle(self, lat: float, lng: float) -> Dict[str, Any]:
        """Draw the search radius overlay, replacing any existing one."""
        self.search_circle = search_circle(lat, lng)
        return self.search_circle

    def marker_classes(self, pin_id: Any) -> str:
        """Get the full CSS class string of a rendered marker."""
        marker = self.markers[pin_key(pin_id)]
        if marker["dimmed"]:
            return f"{marker['class_name']} {DIMMED_CLASS}"
        return marker["class_name"]

    def snapshot(self) -> Dict[str, Any]:
        """Get a JSON-serialisable copy of the view."""
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "markers": [dict(m) for m in self.markers.values()],
            "search_circle": dict(self.search_circle) if self.search_circle else None,
        }
