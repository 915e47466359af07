"""Admin API (bearer token protected)."""
