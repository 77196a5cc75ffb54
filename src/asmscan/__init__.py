"""asmscan - interface snapshot diffing with semantic version recommendations."""

__version__ = "0.1.0"
