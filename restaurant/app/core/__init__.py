"""Core utilities for the restaurant application."""

from restaurant.app.core.config import settings
