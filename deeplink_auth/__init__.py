"""Deep-link-preserving authentication context for the competition platform."""

__version__ = "0.1.0"
