"""Interactive directory tree explorer."""

__version__ = "1.0.0"
