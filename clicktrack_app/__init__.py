"""Click tracking and stats for a two-destination URL shortener."""

__version__ = "1.0.0"
