"""HeyChat relay: real-time 1-to-1 messaging backend."""

__version__ = "0.1.0"
