"""
Server modules for Deployment Map application.

This package contains FastAPI router modules for the map, pin, search and auth
endpoints, plus the Supabase, geocoding, realtime and broadcast clients they
use.
"""
