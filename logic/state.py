"""
Live map state.

MapState is the single owner of the pin cache, the legend filter and the
rendered map model. Route handlers and the realtime consumer never touch the
cache directly: they call MapState operations and receive copies and
view-change payloads to broadcast.

Every operation here is synchronous. On a single event loop that makes each
one atomic with respect to other handlers, so no lock is needed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from logic import config
from logic.filters import FilterState
from logic.geo import find_pins_in_radius, format_search_message
from logic.map_view import MapView, pin_key
from logic.status import PinStatus, filter_category

logger = logging.getLogger(__name__)

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"
EVENT_KINDS = (INSERT, UPDATE, DELETE)


@dataclass
class PinEvent:
    """A change to the pin collection. Delete events carry the old record."""

    kind: str
    record: Dict[str, Any]


@dataclass
class GeoResult:
    """Outcome of a successful zip code search."""

    zip_code: str
    lat: float
    lng: float
    label: str
    pins: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.pins)

    @property
    def message(self) -> str:
        return format_search_message(self.zip_code, self.label, self.count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zip_code": self.zip_code,
            "lat": self.lat,
            "lng": self.lng,
            "label": self.label,
            "count": self.count,
            "pin_ids": [pin.get("id") for pin in self.pins],
            "message": self.message,
            "type": "success" if self.count else "neutral",
        }


def counts_by_status(pins: List[Dict[str, Any]]) -> Dict[str, int]:
    """Count pins per status category. Unknown statuses are not counted."""
    counts = {status.value: 0 for status in PinStatus}
    for pin in pins:
        status = pin.get("status")
        if status in counts:
            counts[status] += 1
    return counts


class MapState:
    """Pin cache, filter state and map view for the public map."""

    def __init__(
            self,
            view: Optional[MapView] = None,
            filters: Optional[FilterState] = None,
            clock: Callable[[], datetime] = datetime.now,
    ):
        self._pins: List[Dict[str, Any]] = []
        self.view = view or MapView()
        self.filters = filters or FilterState()
        self._clock = clock
        self.last_updated: Optional[datetime] = None
        self._search_generation = 0
        self.last_search: Optional[GeoResult] = None

    # ==========================
    # Cache access
    # ==========================
    @property
    def pins(self) -> List[Dict[str, Any]]:
        return [dict(pin) for pin in self._pins]

    def find(self, pin_id: Any) -> Optional[Dict[str, Any]]:
        index = self._index_of(pin_id)
        return dict(self._pins[index]) if index is not None else None

    def _index_of(self, pin_id: Any) -> Optional[int]:
        key = pin_key(pin_id)
        return next(
            (i for i, pin in enumerate(self._pins) if pin_key(pin.get("id")) == key),
            None,
        )

    def counts(self) -> Dict[str, int]:
        return counts_by_status(self._pins)

    def last_updated_text(self) -> Optional[str]:
        if self.last_updated is None:
            return None
        return f"Updated {self.last_updated.strftime('%H:%M')}"

    def _touch(self) -> None:
        self.last_updated = self._clock()

    def _payload(self, event_type: str, **extra) -> Dict[str, Any]:
        payload = {
            "type": event_type,
            "counts": self.counts(),
            "dimmed": self.view.dimmed_ids(),
            "last_updated": self.last_updated_text(),
        }
        payload.update(extra)
        return payload

    # ==========================
    # Loading
    # ==========================
    def load(self, pins: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Replace the cache with a fresh list from the store and re-render."""
        self._pins = [dict(pin) for pin in pins]
        self.view.render_pins(self._pins)
        self.view.apply_filter(self.filters.active)
        self._touch()
        logger.info("Loaded %d pins", len(self._pins))
        return self._payload("pins_rendered", markers=self.view.snapshot()["markers"])

    # ==========================
    # Change events
    # ==========================
    def apply_insert(self, pin: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Add a new pin without re-rendering the other markers.

        Returns:
            The view-change payload, or None if the pin was already cached.
        """
        if self._index_of(pin.get("id")) is not None:
            logger.debug("Insert for cached pin %s ignored", pin.get("id"))
            return None

        self._pins.append(dict(pin))
        marker = self.view.add_pin(pin)
        self._touch()

        if not self.filters.is_active(filter_category(pin.get("status"))):
            self.view.apply_filter(self.filters.active)

        return self._payload("pin_added", marker=dict(marker))

    def apply_update(self, pin: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Replace a cached pin and re-render every marker.

        Updates for a pin that is not cached are dropped.

        Returns:
            The view-change payload, or None if the update was dropped.
        """
        index = self._index_of(pin.get("id"))
        if index is None:
            logger.warning("Update for unknown pin %s dropped", pin.get("id"))
            return None

        self._pins[index] = dict(pin)
        self.view.render_pins(self._pins)
        self._touch()
        self.view.apply_filter(self.filters.active)

        return self._payload("pins_rendered", markers=self.view.snapshot()["markers"])

    def apply_delete(self, pin: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Remove a pin and its marker.

        Returns:
            The view-change payload, or None if the pin was not cached.
        """
        index = self._index_of(pin.get("id"))
        if index is None:
            logger.debug("Delete for unknown pin %s ignored", pin.get("id"))
            return None

        removed = self._pins.pop(index)
        self.view.remove_pin(removed.get("id"))
        self._touch()

        return self._payload("pin_removed", id=removed.get("id"))

    def apply_event(self, event: PinEvent) -> Optional[Dict[str, Any]]:
        """Apply one change event.

        Raises:
            ValueError: If the event kind is unknown.
        """
        if event.kind == INSERT:
            logger.info("Realtime: New pin %s", event.record.get("id"))
            return self.apply_insert(event.record)
        if event.kind == UPDATE:
            logger.info("Realtime: Updated pin %s", event.record.get("id"))
            return self.apply_update(event.record)
        if event.kind == DELETE:
            logger.info("Realtime: Deleted pin %s", event.record.get("id"))
            return self.apply_delete(event.record)
        raise ValueError(f"Unknown event kind: {event.kind}")

    # ==========================
    # Filters
    # ==========================
    def toggle_filter(self, status: str) -> Dict[str, Any]:
        """Toggle a status category and recompute dimming.

        Raises:
            ValueError: If status is not a known category.
        """
        self.filters.toggle(status)
        self.view.apply_filter(self.filters.active)
        return self.filter_payload()

    def reset_filters(self) -> Dict[str, Any]:
        self.filters.reset()
        self.view.apply_filter(self.filters.active)
        return self.filter_payload()

    def filter_payload(self) -> Dict[str, Any]:
        return {
            "type": "filter_changed",
            "active": sorted(self.filters.active),
            "dimmed": self.view.dimmed_ids(),
        }

    # ==========================
    # Search
    # ==========================
    def begin_search(self) -> int:
        """Start a search and get its generation number.

        Starting a search supersedes every search started before it.
        """
        self._search_generation += 1
        return self._search_generation

    def is_current_search(self, generation: int) -> bool:
        return generation == self._search_generation

    def finish_search(
            self, generation: int, zip_code: str, lat: float, lng: float, label: str
    ) -> Optional[GeoResult]:
        """Complete a search with its resolved location.

        Recenters the view and replaces the radius overlay. A superseded
        search changes nothing.

        Returns:
            The search result, or None if a newer search has started since.
        """
        if not self.is_current_search(generation):
            logger.info("Discarding superseded search for %s", zip_code)
            return None

        result = GeoResult(
            zip_code=zip_code,
            lat=lat,
            lng=lng,
            label=label,
            pins=find_pins_in_radius(lat, lng, self._pins),
        )
        self.view.set_view(lat, lng, config.SEARCH_ZOOM)
        self.view.draw_search_circle(lat, lng)
        self.last_search = result
        return result

    def search_payload(self, result: GeoResult) -> Dict[str, Any]:
        return {
            "type": "search",
            "center": list(self.view.center),
            "zoom": self.view.zoom,
            "search_circle": self.view.search_circle,
            "result": result.to_dict(),
        }

    # ==========================
    # Snapshot
    # ==========================
    def snapshot(self) -> Dict[str, Any]:
        """Get the full public map state."""
        snapshot = self.view.snapshot()
        snapshot.update(
            {
                "counts": self.counts(),
                "active_filters": sorted(self.filters.active),
                "last_updated": self.last_updated_text(),
                "last_search": self.last_search.to_dict() if self.last_search else None,
            }
        )
        return snapshot
