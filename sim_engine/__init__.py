"""Game math engines."""
