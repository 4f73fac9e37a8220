"""Pulse Aggregator: sliding number windows and social analytics rankings."""

__version__ = "0.1.0"
