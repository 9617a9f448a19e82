"""scanwatch - scan coordinator for polling agents."""

__version__ = "1.0.0"
