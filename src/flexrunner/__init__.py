"""flexrunner — package organizer for delivery drivers."""

__version__ = "0.10.0"
