"""File-backed data store for a personal Lorcana card catalog."""

__version__ = "0.1.0"
