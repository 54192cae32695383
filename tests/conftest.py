"""
Shared test setup.

Points the app at a throwaway audit database and a fake Supabase project
before anything imports the settings, and resets the shared map state and
admin sessions between tests.
"""

import os
import tempfile

import pytest

_tmp_dir = tempfile.mkdtemp(prefix="deployment-map-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'audit.db')}"
os.environ["SUPABASE_URL"] = "https://example.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "anon-key"
os.environ["ENABLE_REALTIME"] = "false"
os.environ["SESSION_SECRET_KEY"] = "test-secret"

from logic.state import MapState  # noqa: E402
from server import auth  # noqa: E402
from server.state import map_state  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_state():
    """Give every test an empty map and no signed-in admins."""
    map_state.__dict__.update(MapState().__dict__)
    auth.user_sessions.clear()
    yield
    auth.user_sessions.clear()


def make_pin(pin_id, status="active", lat=30.0, lng=-91.0, **extra):
    """Build a pin record as the store returns it."""
    pin = {
        "id": pin_id,
        "title": f"Pin {pin_id}",
        "address": "",
        "status": status,
        "summary": "",
        "url": "",
        "url_text": "More Info",
        "lat": lat,
        "lng": lng,
        "show_donate": False,
        "show_volunteer": False,
        "show_help": False,
        "created_at": "2025-12-01T10:20:30+00:00",
    }
    pin.update(extra)
    return pin
