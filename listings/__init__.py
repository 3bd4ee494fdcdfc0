"""Live-music show feed for Kelowna and Nelson."""

__version__ = "0.1.0"
