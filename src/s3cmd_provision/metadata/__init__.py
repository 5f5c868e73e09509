"""Source metadata helpers."""
