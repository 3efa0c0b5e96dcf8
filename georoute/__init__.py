"""Location detection and multi-modal route computation."""

__version__ = "0.1.0"
