"""
Tests for the legend filter state.

Run with: python -m pytest tests/test_filters.py
"""

import pytest

from logic.filters import FilterState

ALL = {"critical", "warning", "active", "past", "weather"}


def test_starts_with_all_categories_active():
    filters = FilterState()
    assert filters.active == ALL
    assert not filters.is_filtered()


def test_toggle_flips_each_call():
    filters = FilterState()

    assert filters.toggle("critical") is False
    assert not filters.is_active("critical")
    assert filters.is_filtered()

    assert filters.toggle("critical") is True
    assert filters.is_active("critical")
    assert not filters.is_filtered()


def test_reset_restores_all_categories():
    filters = FilterState()
    for status in ("critical", "warning", "past", "past", "weather"):
        filters.toggle(status)

    filters.reset()

    assert filters.active == ALL


def test_unknown_status_rejected():
    filters = FilterState()
    with pytest.raises(ValueError):
        filters.toggle("flood")
    assert filters.active == ALL


def test_active_is_a_copy():
    filters = FilterState()
    filters.active.discard("critical")
    assert filters.is_active("critical")
