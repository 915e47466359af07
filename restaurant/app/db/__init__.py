"""Database layer: models, async sessions and CRUD helpers."""
