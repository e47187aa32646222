"""TanLink: link-in-bio profiles with click and view analytics."""

__version__ = "0.1.0"
