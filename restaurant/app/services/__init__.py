"""Business services: validation, sanitization, capacity and notifications."""
