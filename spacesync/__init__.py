"""SpaceSync: offline-first sync backend for spaces, categories, items and preferences."""

__version__ = "1.0.0"
