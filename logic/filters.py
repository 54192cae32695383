"""
Status filter state.

Tracks which status categories are shown fully on the map. Categories that are
not active are dimmed, never hidden or removed.
"""

from typing import Set

from logic.status import ALL_STATUSES


class FilterState:
    """In-memory set of active status categories."""

    def __init__(self):
        self._active: Set[str] = set(ALL_STATUSES)

    def toggle(self, status: str) -> bool:
        """Flip membership of a status.

        Args:
            status: Status category to toggle.

        Returns:
            True if the status is active after the toggle.

        Raises:
            ValueError: If status is not a known category.
        """
        if status not in ALL_STATUSES:
            raise ValueError(f"Unknown status: {status}")

        if status in self._active:
            self._active.discard(status)
            return False

        self._active.add(status)
        return True

    def reset(self) -> None:
        """Restore all status categories to active."""
        self._active = set(ALL_STATUSES)

    def is_active(self, status: str) -> bool:
        return status in self._active

    @property
    def active(self) -> Set[str]:
        return set(self._active)

    def is_filtered(self) -> bool:
        """Check whether any category is currently inactive."""
        return self._active != ALL_STATUSES
