"""Nature Village restaurant backend application."""
