"""Logging helpers shared by every nomadops component."""
